"""CLI package for mailprefs.

This package organizes CLI commands into modules:
- sort.py: Per-mailbox sort preferences (ls, get, set, rm, gc, upgrade)
- tree.py: Expanded/polled folders
- misc.py: init, pref, account
- utils.py: Shared utilities and helpers
"""

import logging

import click
from dotenv import load_dotenv

from .utils import AliasGroup

from .misc import account, init, pref
from .sort import sort
from .tree import tree


@click.group(cls=AliasGroup, aliases={
    'a': 'account',
    'i': 'init',
    'p': 'pref',
    's': 'sort',
    't': 'tree',
})
@click.option('-v', '--verbose', count=True, help="Log more (-v info, -vv debug)")
def main(verbose: int):
    """Mail client preference tools."""
    load_dotenv()
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


main.add_command(account)
main.add_command(init)
main.add_command(pref)
main.add_command(sort)
main.add_command(tree)


__all__ = [
    'main',
    'account',
    'init',
    'pref',
    'sort',
    'tree',
]
