"""Mailbox metadata lookups used by preference garbage collection."""

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Protocol, runtime_checkable

# LIST attributes marking names that cannot be opened as folders.
UNSELECTABLE_FLAGS = {"\\noselect", "\\nonexistent"}


@dataclass
class MailboxInfo:
    """What the client knows about one mailbox name."""
    name: str
    exists: bool = True
    is_saved_query: bool = False  # search result, not a virtual folder
    readonly: bool = False
    permanent_flags: frozenset[str] = field(default_factory=frozenset)
    hide_deleted: bool = False

    def __str__(self) -> str:
        return str(self.name)

    def allows_flag(self, flag: str) -> bool:
        """Can ``flag`` be stored permanently in this mailbox?"""
        flags = {f.lower() for f in self.permanent_flags}
        return flag.lower() in flags or "\\*" in flags


@runtime_checkable
class MailboxResolver(Protocol):
    """Resolves mailbox names to MailboxInfo records."""

    def resolve(self, names: Iterable[str]) -> Iterable[MailboxInfo]:
        ...


class FolderListResolver:
    """Resolve names against a known folder list and saved searches.

    ``searches`` maps a saved search name to whether it is a virtual folder.
    Virtual folders are kept like real folders; plain search queries are not.
    """

    def __init__(self, folders: Iterable[str], searches: dict[str, bool] | None = None):
        self.folders = set(folders)
        self.searches = dict(searches or {})

    def resolve(self, names: Iterable[str]) -> Iterator[MailboxInfo]:
        for name in names:
            if name in self.searches:
                yield MailboxInfo(name, exists=True, is_saved_query=not self.searches[name])
            else:
                yield MailboxInfo(name, exists=name in self.folders)


class ImapMailboxResolver:
    """Resolve names against the folders an IMAP server LISTs."""

    def __init__(self, client, searches: dict[str, bool] | None = None):
        self.client = client
        self.searches = dict(searches or {})
        self._folders: set[str] | None = None

    def _selectable_folders(self) -> set[str]:
        if self._folders is None:
            self._folders = {
                name
                for flags, _delim, name in self.client.list_folders()
                if not UNSELECTABLE_FLAGS & {f.lower() for f in flags.split()}
            }
        return self._folders

    def resolve(self, names: Iterable[str]) -> Iterator[MailboxInfo]:
        folders = self._selectable_folders()
        for name in names:
            if name in self.searches:
                yield MailboxInfo(name, exists=True, is_saved_query=not self.searches[name])
            else:
                yield MailboxInfo(name, exists=name in folders)
