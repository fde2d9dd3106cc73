"""Buffer store: per (channel, sender) history of recent messages.

Design goals:
  - Bounded per key: only the most recent messages are kept, oldest first out
  - Per-key locking: senders in different channels never contend, and a
    key keeps the same lock for the life of the store
  - Snapshots: readers get immutable ConversationBuffer values

The store never evicts keys on its own.  Hosts that care about memory
should call discard() or clear() when a chat session ends.
"""

from __future__ import annotations
import threading
import time
from dataclasses import replace
from typing import Iterable

from .types import BufferKey, ConversationBuffer

DEFAULT_CAPACITY = 10


class BufferStore:
    """In-memory conversation buffers keyed by (channel_id, sender_id)."""

    __slots__ = ("_buffers", "_locks", "_capacity")

    def __init__(self, *, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._buffers: dict[BufferKey, ConversationBuffer] = {}
        self._locks: dict[BufferKey, threading.RLock] = {}
        self._capacity = capacity

    # ------------------------------------------------------------------
    # Core API
    # ------------------------------------------------------------------

    def lock(self, key: BufferKey) -> threading.RLock:
        """Return the lock guarding read-modify-write on one key."""
        # dict.setdefault is atomic, so two first-time callers get the same lock
        return self._locks.setdefault(key, threading.RLock())

    def update(self, key: BufferKey, messages: Iterable[str]) -> ConversationBuffer:
        """Replace the key's history with the last `capacity` messages."""
        kept = tuple(messages)[-self._capacity:]
        with self.lock(key):
            current = self._buffers.get(key)
            score = current.risk_score if current else 0
            buf = ConversationBuffer(key, kept, score, time.time())
            self._buffers[key] = buf
        return buf

    def append(self, key: BufferKey, message: str) -> ConversationBuffer:
        """Add one message, dropping the oldest past capacity."""
        with self.lock(key):
            current = self._buffers.get(key) or ConversationBuffer(key)
            kept = (current.messages + (message,))[-self._capacity:]
            buf = replace(current, messages=kept)
            self._buffers[key] = buf
        return buf

    def get(self, key: BufferKey) -> ConversationBuffer | None:
        return self._buffers.get(key)

    def set_risk_score(self, key: BufferKey, score: int) -> None:
        """Record the latest computed score.  Does not affect later decisions."""
        with self.lock(key):
            current = self._buffers.get(key) or ConversationBuffer(key)
            self._buffers[key] = replace(
                current, risk_score=score, last_analysis_at=time.time(),
            )

    # ------------------------------------------------------------------
    # Lifecycle / introspection
    # ------------------------------------------------------------------

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def size(self) -> int:
        return len(self._buffers)

    def keys(self) -> list[BufferKey]:
        return list(self._buffers)

    def discard(self, key: BufferKey) -> None:
        # the lock stays: a caller may be holding or waiting on it
        with self.lock(key):
            self._buffers.pop(key, None)

    def clear(self, channel_id: str | None = None) -> None:
        """Drop every buffer, or only those of one channel.  Locks are kept."""
        keys = [k for k in list(self._buffers) if channel_id is None or k[0] == channel_id]
        for key in keys:
            self.discard(key)

    def dump(self) -> dict[str, dict]:
        """Return a JSON-friendly copy of all buffers (for debugging)."""
        return {
            f"{buf.key[0]}:{buf.key[1]}": {
                "messages": list(buf.messages),
                "risk_score": buf.risk_score,
                "last_analysis_at": buf.last_analysis_at,
            }
            for buf in list(self._buffers.values())
        }
