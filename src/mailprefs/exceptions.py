"""Exceptions shared across mailprefs modules."""


class MailprefsError(Exception):
    """Base class for mailprefs errors."""


class PrefDecodeError(MailprefsError):
    """A persisted preference blob could not be decoded into primitive data."""


class PreferenceLocked(MailprefsError):
    """Attempt to change a preference the administrator has locked."""

    def __init__(self, key: str):
        super().__init__(f"Preference '{key}' is locked")
        self.key = key


class HookNotSet(MailprefsError):
    """No callback is registered for the requested hook."""

    def __init__(self, name: str):
        super().__init__(f"Hook '{name}' is not set")
        self.name = name


class ImapError(MailprefsError):
    """An IMAP command failed."""
