"""Project configuration and preference file locations (YAML files)."""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

PREFS_DIR = ".mailprefs"
CONFIG_FILE = "config.yaml"
PREFS_FILE = "prefs.yaml"
MAILLOG_DIR = "maillog"
SENTMAIL_FILE = "sentmail.yaml"


@dataclass
class AccountConfig:
    """An IMAP account used to look up which folders exist."""
    name: str
    type: str  # "gmail", "zoho", "imap"
    user: str
    password: str
    host: str | None = None
    port: int = 993


@dataclass
class PrefsConfig:
    """Top-level mailprefs project configuration."""
    server_name: str = "localhost"
    defaults: dict = field(default_factory=dict)  # overrides of factory defaults
    locked: list[str] = field(default_factory=list)
    hooks: dict[str, str] = field(default_factory=dict)  # name -> "module:function"
    mailboxes: list[str] = field(default_factory=list)
    searches: dict[str, bool] = field(default_factory=dict)  # name -> is virtual folder
    accounts: dict[str, AccountConfig] = field(default_factory=dict)


def find_prefs_root(start: Path | None = None) -> Path | None:
    """Find project root (directory containing .mailprefs/).

    First checks MAILPREFS_ROOT environment variable, then walks up from start/cwd.
    """
    env_root = os.environ.get("MAILPREFS_ROOT")
    if env_root:
        env_path = Path(env_root).resolve()
        if (env_path / PREFS_DIR).is_dir():
            return env_path

    path = (start or Path.cwd()).resolve()
    while path != path.parent:
        if (path / PREFS_DIR).is_dir():
            return path
        path = path.parent
    return None


def get_prefs_root(require: bool = True) -> Path:
    """Get project root, raising if not found and require=True."""
    root = find_prefs_root()
    if not root and require:
        raise FileNotFoundError(
            "Not in a mailprefs project. Run 'mailprefs init' first."
        )
    return root or Path.cwd()


def get_config_path(root: Path | None = None) -> Path:
    root = root or get_prefs_root()
    return root / PREFS_DIR / CONFIG_FILE


def get_prefs_path(root: Path | None = None) -> Path:
    root = root or get_prefs_root()
    return root / PREFS_DIR / PREFS_FILE


def load_config(root: Path | None = None) -> PrefsConfig:
    """Load config from config.yaml."""
    config_path = get_config_path(root)
    if not config_path.exists():
        return PrefsConfig()

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    accounts = {}
    for name, acct_data in (data.get("accounts") or {}).items():
        accounts[name] = AccountConfig(
            name=name,
            type=acct_data.get("type", "imap"),
            user=acct_data.get("user", ""),
            password=acct_data.get("password", ""),
            host=acct_data.get("host"),
            port=acct_data.get("port", 993),
        )

    return PrefsConfig(
        server_name=data.get("server_name", "localhost"),
        defaults=data.get("defaults") or {},
        locked=list(data.get("locked") or []),
        hooks=data.get("hooks") or {},
        mailboxes=list(data.get("mailboxes") or []),
        searches={k: bool(v) for k, v in (data.get("searches") or {}).items()},
        accounts=accounts,
    )


def save_config(config: PrefsConfig, root: Path | None = None) -> None:
    """Save config to config.yaml, omitting empty sections."""
    config_path = get_config_path(root)
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data: dict = {"server_name": config.server_name}
    for key in ("defaults", "locked", "hooks", "mailboxes", "searches"):
        value = getattr(config, key)
        if value:
            data[key] = value
    if config.accounts:
        data["accounts"] = {}
        for name, acct in config.accounts.items():
            acct_data = {
                "type": acct.type,
                "user": acct.user,
                "password": acct.password,
            }
            if acct.host:
                acct_data["host"] = acct.host
            if acct.port != 993:
                acct_data["port"] = acct.port
            data["accounts"][name] = acct_data

    with open(config_path, "w") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)
