"""Per-mailbox sort preferences (the ``sortpref`` preference).

All entries live in one serialized mapping ``{mailbox: {"b": sortby,
"d": sortdir}}`` stored as a single preference value. Every change is written
straight back to the preference backend.
"""

import logging
from dataclasses import dataclass
from typing import Iterator

from .codec import encode_mapping, load_mapping
from .constants import (
    IMAP_SORT_DATE,
    LEGACY_SORTARRIVAL,
    LEGACY_SORTDATE,
    LEGACY_SORTTHREAD,
    SORT_SEQUENCE,
    SORT_THREAD,
    SORTBY,
    SORTDIR,
    SORTPREF,
)
from .hooks import MBOX_SORT, HookRegistry
from .mailbox import MailboxResolver

logger = logging.getLogger("mailprefs.sort")


@dataclass
class SortSpec:
    """Sort settings for one mailbox. None means "use the default"."""
    mailbox: str
    sort_by: int | None = None
    sort_dir: int | None = None

    def to_dict(self) -> dict:
        """Stored form: only the fields that are set, keyed ``b``/``d``."""
        ret = {}
        if self.sort_by is not None:
            ret["b"] = self.sort_by
        if self.sort_dir is not None:
            ret["d"] = self.sort_dir
        return ret

    def resolved_sort_by(self, prefs) -> int:
        return self.sort_by if self.sort_by is not None else prefs.get_value(SORTBY)

    def resolved_sort_dir(self, prefs) -> int:
        return self.sort_dir if self.sort_dir is not None else prefs.get_value(SORTDIR)


def new_sortby_value(sortby) -> int | None:
    """Map a legacy sort code to the current one; None means no change."""
    if isinstance(sortby, bool) or not isinstance(sortby, int):
        return None
    if sortby == LEGACY_SORTARRIVAL:
        # Legacy arrival sort was the same thing as sequence sort.
        return SORT_SEQUENCE
    if sortby == LEGACY_SORTDATE:
        return IMAP_SORT_DATE
    if sortby == LEGACY_SORTTHREAD:
        return SORT_THREAD
    return None


class SortPreferenceStore:
    """Manages the sortpref preference for all mailboxes."""

    def __init__(self, prefs, hooks: HookRegistry | None = None):
        self.prefs = prefs
        self.hooks = hooks
        # Mailbox names are strings even when the blob has e.g. `{2024: ...}`.
        self._sortpref: dict = {
            str(k): v for k, v in load_mapping(prefs.get_value(SORTPREF)).items()
        }

    def _save(self, sortpref: dict) -> None:
        """Persist a new mapping, and only then adopt it."""
        self.prefs.set_value(SORTPREF, encode_mapping(sortpref))
        self._sortpref = sortpref

    def _entry(self, mailbox: str) -> dict:
        entry = self._sortpref.get(mailbox)
        return entry if isinstance(entry, dict) else {}

    def get(self, mailbox: str) -> SortSpec:
        """Sort settings for a mailbox, after the ``mbox_sort`` hook ran."""
        entry = self._entry(mailbox)
        spec = SortSpec(mailbox, entry.get("b"), entry.get("d"))
        if self.hooks is not None and self.hooks.has_hook(MBOX_SORT):
            self.hooks.call(MBOX_SORT, spec)
        return spec

    def set(self, mailbox: str, sort_by: int | None = None, sort_dir: int | None = None) -> None:
        """Change the sort criterion and/or direction for a mailbox."""
        if sort_by is None and sort_dir is None:
            return

        spec = self.get(mailbox)
        if sort_by is not None:
            spec.sort_by = sort_by
        if sort_dir is not None:
            spec.sort_dir = sort_dir

        sortpref = dict(self._sortpref)
        sortpref[mailbox] = spec.to_dict()
        self._save(sortpref)

    def delete(self, mailbox: str) -> None:
        if mailbox in self._sortpref:
            sortpref = dict(self._sortpref)
            del sortpref[mailbox]
            self._save(sortpref)

    def contains(self, mailbox: str) -> bool:
        """Is there a stored entry for the mailbox?"""
        return mailbox in self._sortpref

    def items(self) -> Iterator[tuple[str, dict]]:
        """(mailbox, raw entry) pairs, over a snapshot of the mapping."""
        for mailbox, entry in list(self._sortpref.items()):
            yield mailbox, entry

    __iter__ = items

    def __len__(self) -> int:
        return len(self._sortpref)

    def is_locked(self) -> bool:
        return self.prefs.is_locked(SORTPREF)

    def gc(self, resolver: MailboxResolver) -> list[str]:
        """Drop entries for missing mailboxes and search queries.

        Returns the removed mailbox names.
        """
        removed = []
        for info in resolver.resolve(list(self._sortpref)):
            # Virtual folders are kept; plain search queries are not.
            if not info.exists or info.is_saved_query:
                self.delete(info.name)
                removed.append(info.name)
        if removed:
            logger.info("Purged sort preferences for %d mailbox(es)", len(removed))
        return removed

    def upgrade(self) -> int:
        """Convert legacy sort codes in place. Returns the number converted."""
        if self.prefs.is_default(SORTPREF):
            return 0

        converted = 0
        sortpref = {}
        for mailbox, entry in self._sortpref.items():
            if isinstance(entry, dict):
                sortby = new_sortby_value(entry.get("b"))
                if sortby is not None:
                    entry = {**entry, "b": sortby}
                    converted += 1
            sortpref[mailbox] = entry

        self._save(sortpref)
        logger.debug("Upgraded %d sort preference(s)", converted)
        return converted

    new_sortby_value = staticmethod(new_sortby_value)
