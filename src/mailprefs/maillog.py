"""Logs of actions taken on messages (MDNs sent) and of sent mail."""

from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path

import yaml

MDN = "mdn"


class Maillog:
    """Per-action manifests of Message-IDs, one file per action/type.

    ``.mailprefs/maillog/mdn-displayed.txt`` lists every message an MDN of
    type "displayed" has been sent for.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def _manifest(self, action: str, type: str) -> Path:
        return self.path / f"{action}-{type}.txt"

    def load(self, action: str, type: str) -> set[str]:
        path = self._manifest(action, type)
        if not path.exists():
            return set()
        with open(path) as f:
            return {line.strip() for line in f if line.strip()}

    def log(self, action: str, message_id: str, type: str) -> None:
        """Record that ``action`` was taken for a message."""
        if not message_id:
            return
        ids = self.load(action, type)
        if message_id in ids:
            return
        ids.add(message_id)
        path = self._manifest(action, type)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            for msg_id in sorted(ids):
                f.write(f"{msg_id}\n")

    def sent_mdn(self, message_id: str, type: str) -> bool:
        """Has an MDN of this type already been sent for the message?"""
        return bool(message_id) and message_id in self.load(MDN, type)


@dataclass
class SentmailEntry:
    action: str
    message_id: str
    recipient: str
    success: bool
    timestamp: str | None = None


class Sentmail:
    """Append-only YAML log of outgoing mail."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def entries(self) -> list[SentmailEntry]:
        if not self.path.exists():
            return []
        with open(self.path) as f:
            data = yaml.safe_load(f) or []
        return [SentmailEntry(**item) for item in data if isinstance(item, dict)]

    def log(self, action: str, message_id: str, recipient: str, success: bool) -> None:
        entries = self.entries()
        entries.append(SentmailEntry(
            action=action,
            message_id=message_id,
            recipient=recipient,
            success=success,
            timestamp=datetime.now().isoformat(),
        ))
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            yaml.dump([asdict(e) for e in entries], f, default_flow_style=False, sort_keys=False)
