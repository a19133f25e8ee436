"""In-process conversation store keyed by (sender, recipient) (thread-safe)."""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol, Tuple


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class MessageEntry:
    """One relayed message. Never mutated after it is appended."""
    sender: str
    recipient: str
    message: str                 # rephrased text
    original_message: str
    category: str
    category_prompt: Optional[str] = None
    timestamp: datetime = field(default_factory=_utc_now)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "sender": self.sender,
            "recipient": self.recipient,
            "message": self.message,
            "originalMessage": self.original_message,
            "category": self.category,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.category_prompt is not None:
            out["categoryPrompt"] = self.category_prompt
        return out


# -----------------------------
# Storage backends
# -----------------------------
class StorageBackend(Protocol):
    def get(self, sender: str, recipient: str) -> List[MessageEntry]: ...

    def append(self, sender: str, recipient: str, entry: MessageEntry) -> None: ...

    def pairs(self) -> List[Tuple[str, str]]: ...


class InMemoryBackend:
    """sender -> recipient -> entries, lost when the process exits."""

    def __init__(self) -> None:
        self._data: Dict[str, Dict[str, List[MessageEntry]]] = {}

    def get(self, sender: str, recipient: str) -> List[MessageEntry]:
        return list(self._data.get(sender, {}).get(recipient, []))

    def append(self, sender: str, recipient: str, entry: MessageEntry) -> None:
        self._data.setdefault(sender, {}).setdefault(recipient, []).append(entry)

    def pairs(self) -> List[Tuple[str, str]]:
        return [(s, r) for s, inner in self._data.items() for r in inner]


# -----------------------------
# ConversationStore
# -----------------------------
class ConversationStore:
    """Append-only conversation log with symmetric reads.

    Entries are stored under the (sender, recipient) that sent them. Reading
    the pair (a, b) returns the (a, b) log if it has entries, otherwise the
    (b, a) log, otherwise an empty list.
    """

    def __init__(self, backend: Optional[StorageBackend] = None) -> None:
        self.backend: StorageBackend = backend if backend is not None else InMemoryBackend()
        self._lock = threading.RLock()

    def append(self, entry: MessageEntry) -> None:
        with self._lock:
            self.backend.append(entry.sender, entry.recipient, entry)

    def load(self, user1: str, user2: str) -> List[MessageEntry]:
        with self._lock:
            return self.backend.get(user1, user2) or self.backend.get(user2, user1)

    def count_pairs(self) -> int:
        with self._lock:
            return len(self.backend.pairs())
