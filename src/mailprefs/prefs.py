"""User preference backend persisted to a YAML file."""

import logging
from pathlib import Path

import yaml

from .constants import (
    ADD_SOURCE,
    DATE_FORMAT,
    EXPANDED_FOLDERS,
    IMAP_SORT_DATE,
    MAIL_HDR,
    NAV_POLL,
    NAV_POLL_ALL,
    SEND_MDN,
    SORT_ASCENDING,
    SORTBY,
    SORTDIR,
    SORTPREF,
    TIME_FORMAT,
    USE_TRASH,
)
from .exceptions import PreferenceLocked

logger = logging.getLogger("mailprefs.prefs")

DEFAULTS = {
    SORTPREF: "",
    SORTBY: IMAP_SORT_DATE,
    SORTDIR: SORT_ASCENDING,
    EXPANDED_FOLDERS: "",
    NAV_POLL: "",
    NAV_POLL_ALL: False,
    SEND_MDN: 0,  # 0 = never, 1 = always ask, 2 = ask only when required
    MAIL_HDR: "",
    TIME_FORMAT: "%H:%M",
    DATE_FORMAT: "%x",
    ADD_SOURCE: "",
    USE_TRASH: False,
}


class Prefs:
    """Key/value preference store with factory defaults and locks.

    Only values the user changed are written to ``path``; everything else is
    answered from the defaults. With ``path=None`` values live in memory only.
    """

    def __init__(
        self,
        path: Path | None = None,
        defaults: dict | None = None,
        locked: set[str] | list[str] | tuple = (),
    ):
        self.path = Path(path) if path else None
        self.defaults = dict(DEFAULTS)
        if defaults:
            self.defaults.update(defaults)
        self.locked = set(locked)
        self._values: dict = self._load()

    def _load(self) -> dict:
        if not self.path or not self.path.exists():
            return {}
        with open(self.path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            logger.warning("Ignoring malformed preferences file %s", self.path)
            return {}
        return data

    def _save(self) -> None:
        if not self.path:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            yaml.dump(self._values, f, default_flow_style=False, sort_keys=False)

    def get_value(self, key: str):
        """Get the user's value, else the default, else None."""
        if key in self._values:
            return self._values[key]
        return self.defaults.get(key)

    def set_value(self, key: str, value) -> None:
        """Store a value and write the preferences file."""
        if self.is_locked(key):
            raise PreferenceLocked(key)
        self._values[key] = value
        self._save()

    def reset(self, key: str) -> None:
        """Forget the user's value so the default applies again."""
        if self.is_locked(key):
            raise PreferenceLocked(key)
        if key in self._values:
            del self._values[key]
            self._save()

    def is_default(self, key: str) -> bool:
        return key not in self._values

    def is_locked(self, key: str) -> bool:
        return key in self.locked

    def keys(self) -> list[str]:
        """All known preference names (defaults plus stored)."""
        return list(dict.fromkeys([*self.defaults, *self._values]))
