"""Per-request wiring of configuration, preferences and stores.

One ``PrefsContext`` is created per request (or CLI command) and owns every
object that used to be looked up globally: the preference backend, hook
registry, sort and folder tree stores, and the queue of shutdown tasks.
"""

import logging
from pathlib import Path

from .config import MAILLOG_DIR, PREFS_DIR, SENTMAIL_FILE, PrefsConfig, get_prefs_path, get_prefs_root, load_config
from .ftree import ExpandedFolders, PolledFolders
from .hooks import HookRegistry
from .imap import get_imap_client
from .mailbox import FolderListResolver, ImapMailboxResolver, MailboxResolver
from .maillog import Maillog, Sentmail
from .message_ui import MessageUi
from .prefs import Prefs
from .shutdown import ShutdownQueue
from .sort import SortPreferenceStore

logger = logging.getLogger("mailprefs.context")


class PrefsContext:
    def __init__(self, root: Path | None = None, config: PrefsConfig | None = None):
        self.root = root or get_prefs_root()
        self.config = config or load_config(self.root)
        self.prefs = Prefs(
            get_prefs_path(self.root),
            defaults=self.config.defaults,
            locked=self.config.locked,
        )
        self.hooks = HookRegistry()
        self.hooks.load(self.config.hooks)
        self.shutdown_queue = ShutdownQueue()
        self._sort: SortPreferenceStore | None = None
        self._expanded: ExpandedFolders | None = None
        self._polled: PolledFolders | None = None

    @property
    def sort(self) -> SortPreferenceStore:
        if self._sort is None:
            self._sort = SortPreferenceStore(self.prefs, self.hooks)
        return self._sort

    @property
    def expanded(self) -> ExpandedFolders:
        if self._expanded is None:
            self._expanded = ExpandedFolders(self.prefs, self.shutdown_queue)
        return self._expanded

    @property
    def polled(self) -> PolledFolders:
        if self._polled is None:
            self._polled = PolledFolders(self.prefs, self.shutdown_queue)
        return self._polled

    @property
    def maillog(self) -> Maillog:
        return Maillog(self.root / PREFS_DIR / MAILLOG_DIR)

    @property
    def sentmail(self) -> Sentmail:
        return Sentmail(self.root / PREFS_DIR / SENTMAIL_FILE)

    def message_ui(self, mailer=None, imap=None, from_addr: str | None = None) -> MessageUi:
        return MessageUi(
            self.prefs,
            hooks=self.hooks,
            maillog=self.maillog,
            sentmail=self.sentmail,
            mailer=mailer,
            imap=imap,
            server_name=self.config.server_name,
            from_addr=from_addr,
        )

    def resolver(self, folders: list[str] | None = None) -> MailboxResolver:
        """Resolver over explicit folders, else the configured mailbox list."""
        if folders is None:
            folders = self.config.mailboxes
        return FolderListResolver(folders, self.config.searches)

    def imap_resolver(self, account: str, client=None) -> ImapMailboxResolver:
        """Resolver backed by the folder list of a configured IMAP account.

        The caller disconnects ``resolver.client`` when done.
        """
        acct = self.config.accounts.get(account)
        if acct is None:
            raise KeyError(f"Account '{account}' not found")
        if client is None:
            client = get_imap_client(acct.type, acct.host, acct.port)
            client.connect(acct.user, acct.password)
        return ImapMailboxResolver(client, self.config.searches)

    def shutdown(self) -> None:
        """Run queued shutdown tasks (writes deferred preference changes)."""
        self.shutdown_queue.run()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.shutdown()


def open_context(root: Path | None = None) -> PrefsContext:
    return PrefsContext(root)
