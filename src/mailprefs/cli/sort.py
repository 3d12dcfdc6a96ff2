"""Per-mailbox sort preference commands."""

import sys

import click
from click import argument, echo, option, style
from rich.console import Console
from rich.table import Table

from ..constants import SORT_DESCENDING, sort_name
from ..context import open_context
from ..exceptions import ImapError, PreferenceLocked

from .utils import AliasGroup, err, require_init, validate_sort_by, validate_sort_dir


def dir_name(code: int | None) -> str:
    if code is None:
        return "-"
    return "desc" if code == SORT_DESCENDING else "asc"


@click.group(cls=AliasGroup, aliases={
    'g': 'get',
    'l': 'ls',
    's': 'set',
})
def sort():
    """Manage per-mailbox sort preferences."""
    pass


@sort.command("ls")
@require_init
def sort_ls():
    """List stored sort preferences."""
    ctx = open_context()
    store = ctx.sort
    if not len(store):
        echo("No sort preferences stored.")
        return

    table = Table(title="Sort preferences")
    table.add_column("Mailbox", style="cyan")
    table.add_column("Sort by")
    table.add_column("Direction")
    for mailbox, entry in store:
        entry = entry if isinstance(entry, dict) else {}
        table.add_row(str(mailbox), sort_name(entry.get("b")), dir_name(entry.get("d")))
    Console().print(table)


@sort.command("get", no_args_is_help=True)
@require_init
@argument('mailbox')
def sort_get(mailbox: str):
    """Show the effective sort settings of a mailbox.

    Values coming from the global defaults are marked "(default)".
    """
    ctx = open_context()
    spec = ctx.sort.get(mailbox)
    by = sort_name(spec.resolved_sort_by(ctx.prefs))
    dir = dir_name(spec.resolved_sort_dir(ctx.prefs))
    if spec.sort_by is None:
        by += " (default)"
    if spec.sort_dir is None:
        dir += " (default)"
    echo(f"{mailbox}: sort={by} dir={dir}")


@sort.command("set", no_args_is_help=True)
@require_init
@option('-b', '--by', 'sort_by', callback=validate_sort_by, help="Sort criterion (date, arrival, thread, ... or a code)")
@option('-d', '--dir', 'sort_dir', callback=validate_sort_dir, help="Sort direction (asc, desc)")
@argument('mailbox')
def sort_set(sort_by: int | None, sort_dir: int | None, mailbox: str):
    """Set the sort criterion and/or direction of a mailbox.

    \b
    Examples:
      mailprefs sort set INBOX -b date -d desc
      mailprefs sort s Sent -b thread
    """
    if sort_by is None and sort_dir is None:
        echo("Nothing to change. Use -b and/or -d.")
        return
    ctx = open_context()
    try:
        ctx.sort.set(mailbox, sort_by=sort_by, sort_dir=sort_dir)
    except PreferenceLocked as e:
        err(str(e))
        sys.exit(1)
    spec = ctx.sort.get(mailbox)
    echo(f"{mailbox}: sort={sort_name(spec.sort_by)} dir={dir_name(spec.sort_dir)}")


@sort.command("rm", no_args_is_help=True)
@require_init
@argument('mailbox')
def sort_rm(mailbox: str):
    """Remove the sort preference of a mailbox."""
    ctx = open_context()
    if not ctx.sort.contains(mailbox):
        echo(f"No sort preference for '{mailbox}'.")
        return
    try:
        ctx.sort.delete(mailbox)
    except PreferenceLocked as e:
        err(str(e))
        sys.exit(1)
    echo(f"Removed sort preference for '{mailbox}'.")


@sort.command("gc")
@require_init
@option('-a', '--account', help="Check folders on this IMAP account")
@option('-m', '--mailbox', 'mailboxes', multiple=True, help="Existing mailbox (repeatable; default: config.yaml mailboxes)")
def sort_gc(account: str | None, mailboxes: tuple[str, ...]):
    """Purge preferences of deleted mailboxes and search queries.

    \b
    Examples:
      mailprefs sort gc                    # use mailboxes from config.yaml
      mailprefs sort gc -m INBOX -m Sent   # explicit folder list
      mailprefs sort gc -a work            # ask the IMAP server
    """
    ctx = open_context()
    if account:
        try:
            resolver = ctx.imap_resolver(account)
        except KeyError as e:
            err(e.args[0])
            sys.exit(1)
        except (ImapError, ValueError) as e:
            err(f"IMAP error: {e}")
            sys.exit(1)
    else:
        resolver = ctx.resolver(list(mailboxes) if mailboxes else None)

    try:
        removed = ctx.sort.gc(resolver)
    except ImapError as e:
        err(f"IMAP error: {e}")
        sys.exit(1)
    except PreferenceLocked as e:
        err(str(e))
        sys.exit(1)
    finally:
        if account:
            resolver.client.disconnect()

    for mailbox in removed:
        echo(f"  removed {mailbox}")
    echo(style(f"Purged {len(removed)} sort preference(s).", fg="green"))


@sort.command("upgrade")
@require_init
def sort_upgrade():
    """Convert sort codes written by the previous client generation."""
    ctx = open_context()
    try:
        converted = ctx.sort.upgrade()
    except PreferenceLocked as e:
        err(str(e))
        sys.exit(1)
    echo(f"Converted {converted} sort preference(s).")
