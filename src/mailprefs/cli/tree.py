"""Folder tree commands: expanded and polled folders."""

import click
from click import argument, echo

from ..context import open_context

from .utils import AliasGroup, require_init


@click.group(cls=AliasGroup, aliases={
    'l': 'ls',
})
def tree():
    """Manage expanded and polled folders."""
    pass


@tree.command("ls")
@require_init
def tree_ls():
    """Show expanded and polled folders."""
    ctx = open_context()
    expanded = ctx.expanded.names()
    echo("Expanded:" + (" (locked)" if ctx.expanded.is_locked() else ""))
    for name in sorted(expanded, key=str.lower):
        echo(f"  {name}")
    if not expanded:
        echo("  (none)")

    polled = ctx.polled
    if polled.poll_all:
        echo("Polled: all folders")
        return
    echo("Polled:" + (" (locked)" if polled.is_locked() else ""))
    for name in polled.poll_list(sort=True):
        echo(f"  {name}")


def _update(attr: str, names: tuple[str, ...], value: bool) -> None:
    with open_context() as ctx:
        flags = getattr(ctx, attr)
        if flags.is_locked():
            echo(f"Preference '{flags.pref_name}' is locked; nothing changed.")
            return
        for name in names:
            flags.set(name, value)
        echo(f"{flags.pref_name}: {', '.join(names)} -> {'on' if value else 'off'}")


@tree.command("expand", no_args_is_help=True)
@require_init
@argument('names', nargs=-1, required=True)
def tree_expand(names: tuple[str, ...]):
    """Mark folders as expanded."""
    _update("expanded", names, True)


@tree.command("collapse", no_args_is_help=True)
@require_init
@argument('names', nargs=-1, required=True)
def tree_collapse(names: tuple[str, ...]):
    """Mark folders as collapsed."""
    _update("expanded", names, False)


@tree.command("poll", no_args_is_help=True)
@require_init
@argument('names', nargs=-1, required=True)
def tree_poll(names: tuple[str, ...]):
    """Check folders for new mail."""
    _update("polled", names, True)


@tree.command("unpoll", no_args_is_help=True)
@require_init
@argument('names', nargs=-1, required=True)
def tree_unpoll(names: tuple[str, ...]):
    """Stop checking folders for new mail (INBOX is always checked)."""
    _update("polled", names, False)
