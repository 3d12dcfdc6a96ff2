"""Boolean per-folder preferences of the folder tree (expanded, polled)."""

from .codec import encode_mapping, load_mapping
from .constants import EXPANDED_FOLDERS, INBOX, NAV_POLL, NAV_POLL_ALL
from .shutdown import ShutdownQueue


class FolderTreePrefs:
    """A set of folder names stored as one preference value.

    Changes are kept in memory and written once by ``shutdown()``, which is
    queued on the first change.
    """

    pref_name: str = ""

    def __init__(self, prefs, shutdown: ShutdownQueue | None = None):
        self.prefs = prefs
        self.shutdown_queue = shutdown
        self._data: dict[str, bool] = {
            str(k): True for k, v in load_mapping(prefs.get_value(self.pref_name)).items() if v
        }
        self._locked = prefs.is_locked(self.pref_name)

    def is_locked(self) -> bool:
        return self._locked

    def get(self, name: str) -> bool:
        return str(name) in self._data

    def set(self, name: str, value: bool) -> None:
        if self.is_locked() or self.get(name) == bool(value):
            return
        if value:
            self._data[str(name)] = True
        else:
            del self._data[str(name)]
        if self.shutdown_queue is not None:
            self.shutdown_queue.add(self)

    def delete(self, name: str) -> None:
        self.set(name, False)

    def names(self) -> list[str]:
        return list(self._data)

    def shutdown(self) -> None:
        self.prefs.set_value(self.pref_name, encode_mapping(self._data))


class ExpandedFolders(FolderTreePrefs):
    """Folders shown expanded in the folder tree."""

    pref_name = EXPANDED_FOLDERS


class PolledFolders(FolderTreePrefs):
    """Folders checked for new mail.

    With ``nav_poll_all`` every folder is polled and the list can't be edited.
    INBOX is always polled.
    """

    pref_name = NAV_POLL

    def __init__(self, prefs, shutdown: ShutdownQueue | None = None):
        super().__init__(prefs, shutdown)
        self.poll_all = bool(prefs.get_value(NAV_POLL_ALL))
        if self.poll_all:
            self._locked = True
        self._data[INBOX] = True

    def get(self, name: str) -> bool:
        return self.poll_all or super().get(name)

    def set(self, name: str, value: bool) -> None:
        if str(name) == INBOX and not value:
            return
        super().set(name, value)

    def poll_list(self, sort: bool = False) -> list[str]:
        names = self.names()
        if sort:
            # INBOX first, then case-insensitive.
            names.sort(key=lambda n: (n != INBOX, n.lower()))
        return names
