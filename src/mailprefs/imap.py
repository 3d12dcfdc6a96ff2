"""Small IMAP client: folder listing and per-message flags."""

import imaplib
import re

from .exceptions import ImapError

GMAIL_IMAP_HOST = "imap.gmail.com"
ZOHO_IMAP_HOST = "imap.zoho.com"
IMAP_PORT = 993

LIST_RE = re.compile(r'\(([^)]*)\)\s+(?:"([^"]*)"|NIL)\s+(?:"((?:[^"\\]|\\.)*)"|(\S+))')


def parse_list_response(item: bytes | str) -> tuple[str, str | None, str] | None:
    """Parse one LIST line, e.g. ``(\\HasNoChildren) "/" "INBOX"``."""
    decoded = item.decode() if isinstance(item, bytes) else item
    match = LIST_RE.match(decoded)
    if not match:
        return None
    flags, delim, quoted, atom = match.groups()
    name = quoted.replace('\\"', '"').replace("\\\\", "\\") if quoted is not None else atom
    return flags, delim, name


class IMAPClient:
    """Base IMAP client with the few operations mailprefs needs."""

    def __init__(self, host: str, port: int = IMAP_PORT):
        self.host = host
        self.port = port
        self._conn: imaplib.IMAP4_SSL | None = None

    def connect(self, user: str, password: str) -> None:
        try:
            self._conn = imaplib.IMAP4_SSL(self.host, self.port)
            self._conn.login(user, password)
        except (imaplib.IMAP4.error, OSError) as e:
            self._conn = None
            raise ImapError(f"Failed to connect to {self.host}: {e}") from e

    def disconnect(self) -> None:
        if self._conn:
            try:
                self._conn.logout()
            except (imaplib.IMAP4.error, OSError):
                pass
            self._conn = None

    @property
    def conn(self) -> imaplib.IMAP4_SSL:
        if not self._conn:
            raise ImapError("Not connected")
        return self._conn

    def list_folders(self) -> list[tuple[str, str | None, str]]:
        """List all folders. Returns [(flags, delimiter, name), ...]."""
        typ, data = self.conn.list()
        if typ != "OK":
            raise ImapError(f"Failed to list folders: {data}")

        folders = []
        for item in data:
            if item is None:
                continue
            parsed = parse_list_response(item)
            if parsed:
                folders.append(parsed)
        return folders

    def select_folder(self, folder: str, readonly: bool = True) -> int:
        """Select a folder, return message count."""
        typ, data = self.conn.select(_quote(folder), readonly=readonly)
        if typ != "OK":
            raise ImapError(f"Failed to select {folder}: {data}")
        return int(data[0])

    def fetch_flags(self, folder: str, uid: int | str) -> set[str]:
        """Flags of one message, lowercased."""
        self.select_folder(folder, readonly=True)
        try:
            typ, data = self.conn.uid("FETCH", str(uid), "(FLAGS)")
        except imaplib.IMAP4.error as e:
            raise ImapError(str(e)) from e
        if typ != "OK" or not data or data[0] is None:
            raise ImapError(f"Failed to fetch flags for UID {uid}")
        raw = data[0] if isinstance(data[0], bytes) else data[0][0]
        return {f.decode().lower() for f in imaplib.ParseFlags(raw)}

    def add_flags(self, folder: str, uid: int | str, flags: list[str]) -> None:
        self.select_folder(folder, readonly=False)
        try:
            typ, data = self.conn.uid("STORE", str(uid), "+FLAGS", f"({' '.join(flags)})")
        except imaplib.IMAP4.error as e:
            raise ImapError(str(e)) from e
        if typ != "OK":
            raise ImapError(f"Failed to set flags on UID {uid}: {data}")

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.disconnect()


def _quote(folder: str) -> str:
    return '"' + folder.replace("\\", "\\\\").replace('"', '\\"') + '"'


def get_imap_client(type: str, host: str | None = None, port: int = IMAP_PORT) -> IMAPClient:
    """Get an IMAP client for an account type ("gmail", "zoho", "imap")."""
    if host:
        return IMAPClient(host, port)
    if type == "gmail":
        return IMAPClient(GMAIL_IMAP_HOST, IMAP_PORT)
    if type == "zoho":
        return IMAPClient(ZOHO_IMAP_HOST, IMAP_PORT)
    raise ValueError(f"Account type '{type}' needs a host")
