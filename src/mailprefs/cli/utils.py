"""Shared CLI utilities and helpers."""

import sys
from functools import wraps

import click
from click import prompt

from ..config import find_prefs_root
from ..constants import SORT_DIR_NAMES, SORT_NAMES


def err(*args, **kwargs):
    """Print to stderr."""
    print(*args, file=sys.stderr, **kwargs)


def get_password(password_opt: str | None) -> str:
    """Get password from option, stdin (if piped), or prompt."""
    if password_opt:
        return password_opt
    elif not sys.stdin.isatty():
        return sys.stdin.readline().rstrip("\n")
    else:
        return prompt("Password", hide_input=True)


def require_init(f):
    """Decorator that requires .mailprefs directory to exist."""
    @wraps(f)
    def wrapper(*args, **kwargs):
        if not find_prefs_root():
            err("Not in a mailprefs project. Run 'mailprefs init' first.")
            sys.exit(1)
        return f(*args, **kwargs)
    return wrapper


def parse_code(value: str | None, names: dict[str, int], what: str) -> int | None:
    """Accept a symbolic name or an integer code."""
    if value is None:
        return None
    if value.lower() in names:
        return names[value.lower()]
    try:
        return int(value)
    except ValueError:
        raise click.BadParameter(
            f"Unknown {what} '{value}'. Use one of: {', '.join(names)} or a number"
        )


def validate_sort_by(ctx, param, value):
    return parse_code(value, SORT_NAMES, "sort criterion")


def validate_sort_dir(ctx, param, value):
    return parse_code(value, SORT_DIR_NAMES, "sort direction")


class AliasGroup(click.Group):
    """Click Group that supports command aliases."""

    def __init__(self, *args, aliases: dict[str, str] | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.aliases = aliases or {}
        # Build reverse mapping: command -> list of aliases
        self._cmd_aliases: dict[str, list[str]] = {}
        for alias, cmd in self.aliases.items():
            self._cmd_aliases.setdefault(cmd, []).append(alias)

    def get_command(self, ctx, cmd_name):
        cmd_name = self.aliases.get(cmd_name, cmd_name)
        return super().get_command(ctx, cmd_name)

    def resolve_command(self, ctx, args):
        _, cmd_name, args = super().resolve_command(ctx, args)
        cmd_name = self.aliases.get(cmd_name, cmd_name)
        return _, cmd_name, args

    def format_commands(self, ctx, formatter):
        """Write all commands with their aliases to the formatter."""
        commands = []
        for subcommand in self.list_commands(ctx):
            cmd = self.get_command(ctx, subcommand)
            if cmd is None or cmd.hidden:
                continue
            aliases = self._cmd_aliases.get(subcommand, [])
            if aliases:
                name = f"{subcommand} ({', '.join(sorted(aliases))})"
            else:
                name = subcommand
            help_text = cmd.get_short_help_str(limit=formatter.width)
            commands.append((name, help_text))

        if commands:
            with formatter.section("Commands"):
                formatter.write_dl(commands)
