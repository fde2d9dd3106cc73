"""Channel middleware: drop-in guard for a chat transport's send path.

Usage:

    guard = ChannelFilter.create("booking-42")

    # transcript: every message already in the channel, oldest first
    result = guard.screen(
        {"sender_id": "talent-7", "content": "my number is"},
        transcript,
        is_sender_restricted_party=True,
    )
    if result.is_blocked:
        show(result.reason)
    else:
        transport.send(...)

The transcript may hold both parties' messages; only the sender's own
messages are kept for analysis.
"""

from __future__ import annotations
from dataclasses import dataclass

from .engine import ContactFilter, FilterConfig
from .types import FilterResult


@dataclass
class ChannelFilter:
    """Binds a ContactFilter to a single chat channel."""

    contact_filter: ContactFilter
    channel_id: str
    sender_key: str = "sender_id"
    content_key: str = "content"

    @classmethod
    def create(cls, channel_id: str, *, config: FilterConfig | None = None) -> "ChannelFilter":
        """Factory: creates a guard with its own fresh filter."""
        return cls(contact_filter=ContactFilter(config), channel_id=channel_id)

    def sync(self, sender_id: str, transcript: list[dict]) -> None:
        """Load this sender's last messages from a channel transcript."""
        own = [
            msg.get(self.content_key)
            for msg in transcript
            if msg.get(self.sender_key) == sender_id
        ]
        own = [c for c in own if isinstance(c, str) and c]
        self.contact_filter.record_for_analysis(
            self.channel_id, sender_id, own[-self.contact_filter.store.capacity:],
        )

    def screen(
        self,
        message: dict,
        transcript: list[dict] | None = None,
        *,
        is_sender_restricted_party: bool = False,
        bypass: bool = False,
    ) -> FilterResult:
        """Sync history (if a transcript is given) and evaluate one message."""
        sender_id = message.get(self.sender_key)
        content = message.get(self.content_key)
        if bypass or not isinstance(content, str) or sender_id is None:
            return FilterResult.allowed()
        if transcript is not None:
            self.sync(sender_id, transcript)
        return self.contact_filter.evaluate(
            content,
            self.channel_id,
            sender_id,
            is_sender_restricted_party=is_sender_restricted_party,
        )

    @property
    def stats(self) -> dict:
        store = self.contact_filter.store
        mine = {k: v for k, v in store.dump().items() if k.startswith(f"{self.channel_id}:")}
        return {"buffers": len(mine), "state": mine}
