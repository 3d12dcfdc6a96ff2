"""init, pref and account commands."""

import sys
from pathlib import Path

import click
import yaml
from click import argument, echo, option

from ..config import (
    CONFIG_FILE,
    PREFS_DIR,
    AccountConfig,
    PrefsConfig,
    find_prefs_root,
    load_config,
    save_config,
)
from ..context import open_context
from ..exceptions import PreferenceLocked

from .utils import AliasGroup, err, get_password, require_init


@click.command()
@option('-s', '--server-name', default="localhost", help="Server name used in generated MDNs")
def init(server_name: str):
    """Initialize a mailprefs project directory.

    \b
    Examples:
      mailprefs init
      mailprefs init -s mail.example.com
    """
    root = Path.cwd()
    prefs_dir = root / PREFS_DIR
    config_path = prefs_dir / CONFIG_FILE

    if config_path.exists():
        echo(f"Already initialized: {prefs_dir}")
        return

    prefs_dir.mkdir(parents=True, exist_ok=True)
    save_config(PrefsConfig(server_name=server_name), root)
    echo(f"Initialized mailprefs project: {prefs_dir}")


# =============================================================================
# pref
# =============================================================================


@click.group(cls=AliasGroup, aliases={
    'g': 'get',
    'l': 'ls',
    's': 'set',
})
def pref():
    """Read and change raw preference values."""
    pass


@pref.command("ls")
@require_init
def pref_ls():
    """List all preferences with their current values."""
    ctx = open_context()
    for key in ctx.prefs.keys():
        marks = []
        if ctx.prefs.is_default(key):
            marks.append("default")
        if ctx.prefs.is_locked(key):
            marks.append("locked")
        suffix = f"  ({', '.join(marks)})" if marks else ""
        echo(f"{key}: {ctx.prefs.get_value(key)!r}{suffix}")


@pref.command("get", no_args_is_help=True)
@require_init
@argument('key')
def pref_get(key: str):
    """Print one preference value."""
    ctx = open_context()
    echo(repr(ctx.prefs.get_value(key)))


@pref.command("set", no_args_is_help=True)
@require_init
@argument('key')
@argument('value')
def pref_set(key: str, value: str):
    """Set a preference. VALUE is parsed as YAML (numbers, true/false)."""
    ctx = open_context()
    try:
        parsed = yaml.safe_load(value)
    except yaml.YAMLError:
        parsed = value
    if parsed is None or isinstance(parsed, (dict, list)):
        parsed = value
    try:
        ctx.prefs.set_value(key, parsed)
    except PreferenceLocked as e:
        err(str(e))
        sys.exit(1)
    echo(f"{key}: {parsed!r}")


@pref.command("reset", no_args_is_help=True)
@require_init
@argument('key')
def pref_reset(key: str):
    """Revert a preference to its default."""
    ctx = open_context()
    try:
        ctx.prefs.reset(key)
    except PreferenceLocked as e:
        err(str(e))
        sys.exit(1)
    echo(f"{key}: {ctx.prefs.get_value(key)!r} (default)")


# =============================================================================
# account
# =============================================================================


@click.group(cls=AliasGroup, aliases={
    'a': 'add',
    'l': 'ls',
})
def account():
    """Manage IMAP accounts used to look up folders."""
    pass


@account.command("add", no_args_is_help=True)
@require_init
@option('-H', '--host', help="IMAP host (for generic imap type)")
@option('-p', '--password', 'password_opt', help="Password (prompts if not provided)")
@option('-P', '--port', type=int, default=993, help="IMAP port")
@option('-t', '--type', 'acct_type', help="Account type (gmail, zoho, imap)")
@argument('name')
@argument('user')
def account_add(
    host: str | None,
    password_opt: str | None,
    port: int,
    acct_type: str | None,
    name: str,
    user: str,
):
    """Add or update an account.

    \b
    Examples:
      mailprefs account add gmail user@gmail.com
      mailprefs account add work user@example.com -t imap -H imap.example.com
    """
    password = get_password(password_opt)

    # Infer type from name if not specified
    if not acct_type:
        if "gmail" in name.lower():
            acct_type = "gmail"
        elif "zoho" in name.lower():
            acct_type = "zoho"
        elif host:
            acct_type = "imap"
        else:
            err(f"Cannot infer account type from '{name}'. Use -t to specify.")
            sys.exit(1)

    root = find_prefs_root()
    config = load_config(root)
    config.accounts[name] = AccountConfig(
        name=name,
        type=acct_type,
        user=user,
        password=password,
        host=host,
        port=port,
    )
    save_config(config, root)
    echo(f"Account '{name}' saved ({acct_type}: {user})")


@account.command("ls")
@require_init
def account_ls():
    """List accounts."""
    config = load_config(find_prefs_root())
    if not config.accounts:
        echo("No accounts configured.")
        return
    for name, acct in config.accounts.items():
        host = f" @ {acct.host}" if acct.host else ""
        echo(f"  {name}: {acct.type} ({acct.user}){host}")


@account.command("rm", no_args_is_help=True)
@require_init
@argument('name')
def account_rm(name: str):
    """Remove an account."""
    root = find_prefs_root()
    config = load_config(root)
    if name not in config.accounts:
        err(f"Account '{name}' not found.")
        sys.exit(1)
    del config.accounts[name]
    save_config(config, root)
    echo(f"Account '{name}' removed.")
