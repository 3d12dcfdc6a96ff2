"""Mail client preference stores and message display helpers."""

from .context import PrefsContext, open_context
from .ftree import ExpandedFolders, PolledFolders
from .hooks import HookRegistry
from .mailbox import FolderListResolver, ImapMailboxResolver, MailboxInfo
from .message_ui import MessageUi
from .prefs import Prefs
from .sort import SortPreferenceStore, SortSpec

__all__ = [
    "ExpandedFolders",
    "FolderListResolver",
    "HookRegistry",
    "ImapMailboxResolver",
    "MailboxInfo",
    "MessageUi",
    "PolledFolders",
    "Prefs",
    "PrefsContext",
    "SortPreferenceStore",
    "SortSpec",
    "open_context",
]
