"""ContactFilter: the main API.  Layered: exact evidence first, then
conversation analysis.

Usage:
    from contact_shield import ContactFilter

    cf = ContactFilter()          # one per process, shared across channels

    # host keeps the buffer in sync with what this sender actually sent
    cf.record_for_analysis("chan-1", "talent-7", ["hi!", "call me at 555"])

    result = cf.evaluate("1234", "chan-1", "talent-7",
                         is_sender_restricted_party=True)
    result.is_blocked   # True
    result.reason       # "Phone numbers are not allowed. Upgrade to Pro ..."
"""

from __future__ import annotations
import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Iterable

from .analyzer import DEFAULT_WINDOW, analyze
from .buffer import DEFAULT_CAPACITY, BufferStore
from .scanner import assessment_for, scan_single
from .types import FilterResult, PatternHit, RiskAssessment, RoleContext
from .verdict import compose

logger = logging.getLogger(__name__)


@dataclass
class FilterConfig:
    """Configuration for the ContactFilter."""
    history_size: int = DEFAULT_CAPACITY   # messages kept per (channel, sender)
    window_size: int = DEFAULT_WINDOW      # history messages joined for analysis
    # Extra evidence scanners run after the built-in catalog
    custom_scanners: list[Callable[[str], list[PatternHit]]] = field(default_factory=list)
    # Values that are never contact info (e.g. the platform's own domain)
    allow_list: set[str] = field(default_factory=set)


class ContactFilter:
    """Contact-information leak detector.

    Layer 1: Exact evidence in the message itself (phones, URLs, emails, handles)
    Layer 2: Custom evidence scanners (user-provided callables)
    Layer 3: Split-pattern analysis over the sender's recent messages
    """

    def __init__(self, config: FilterConfig | None = None,
                 store: BufferStore | None = None) -> None:
        self.config = config or FilterConfig()
        if self.config.window_size < 0:
            raise ValueError(f"window_size must not be negative, got {self.config.window_size}")
        self.store = store or BufferStore(capacity=self.config.history_size)
        self._allowed = _compile_allow_list(self.config.allow_list)

    def record_for_analysis(self, channel_id: str, sender_id: str,
                            history: Iterable[str]) -> None:
        """Replace the buffer with this sender's own prior messages.

        `history` must hold only this sender's messages in this channel,
        oldest first, and must not include the message about to be evaluated.
        """
        self.store.update((channel_id, sender_id), [m for m in history if m])

    def evaluate(
        self,
        text: str | None,
        channel_id: str,
        sender_id: str,
        is_sender_restricted_party: bool = False,
        bypass: bool = False,
    ) -> FilterResult:
        """Decide whether a message may be sent.

        An allowed message is appended to the sender's buffer after it has
        been scored, so the next evaluate() sees it as history.  Blocked
        messages are never delivered and never become history.
        """
        role = RoleContext(is_sender_restricted_party, bypass)
        if role.bypass:
            return FilterResult.allowed()
        if not text or not text.strip():
            return FilterResult.allowed()

        key = (channel_id, sender_id)
        scan_text = self._strip_allowed(text)

        assessment = scan_single(scan_text) or self._run_custom(scan_text)
        with self.store.lock(key):
            if assessment is None:
                buffer = self.store.get(key)
                history = [self._strip_allowed(m) for m in buffer.messages] if buffer else []
                assessment = analyze(scan_text, history, window_size=self.config.window_size)
            self.store.set_risk_score(key, assessment.risk_score)
            if not assessment.is_blocked:
                self.store.append(key, text)

        if assessment.is_blocked:
            logger.debug(
                "blocked message in channel=%s sender=%s score=%d patterns=%s",
                channel_id, sender_id, assessment.risk_score, ",".join(assessment.patterns),
            )
        return compose(assessment, role)

    def clear_buffers(self, channel_id: str | None = None,
                      sender_id: str | None = None) -> None:
        """Forget history for one sender, one channel, or everything."""
        if channel_id is not None and sender_id is not None:
            self.store.discard((channel_id, sender_id))
        else:
            self.store.clear(channel_id)

    # ------------------------------------------------------------------

    def _run_custom(self, text: str) -> RiskAssessment | None:
        for scanner in self.config.custom_scanners:
            hits = scanner(text)
            if hits:
                return assessment_for(hits[0])
        return None

    def _strip_allowed(self, text: str) -> str:
        if self._allowed is None:
            return text
        return self._allowed.sub(" ", text)


def _compile_allow_list(values: Iterable[str]) -> re.Pattern | None:
    values = sorted((v for v in values if v), key=len, reverse=True)
    if not values:
        return None
    # whole tokens only: "qtalent.com" must not strip the tail of "xqtalent.com"
    alternation = "|".join(re.escape(v) for v in values)
    return re.compile(rf"(?<![\w.-])(?:{alternation})(?![\w-])", re.IGNORECASE)
