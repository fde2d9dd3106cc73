"""Core types."""

from __future__ import annotations
import re
from dataclasses import dataclass
from enum import Enum

BufferKey = tuple[str, str]    # (channel_id, sender_id)


class Category(str, Enum):
    """What kind of contact detail a rule looks for."""
    PHONE = "phone"
    WEBSITE = "website"
    EMAIL = "email"
    SOCIAL = "social"
    INTENT = "intent"


class RuleKind(str, Enum):
    EVIDENCE = "evidence"    # specific enough to block on its own
    FRAGMENT = "fragment"    # weak split-evidence, needs intent
    INTENT = "intent"        # desire to move off-platform
    SPACING = "spacing"      # deliberately spaced-out shapes


@dataclass(frozen=True, slots=True)
class PatternRule:
    """A single immutable lexical matcher."""
    name: str
    category: Category
    kind: RuleKind
    regex: re.Pattern

    def matches(self, text: str) -> bool:
        return self.regex.search(text) is not None


@dataclass(frozen=True, slots=True)
class PatternHit:
    """One evidence rule firing on a span of text."""
    category: Category
    rule: str
    start: int
    end: int
    text: str

    @property
    def tag(self) -> str:
        return f"single_{self.category.value}"


@dataclass(frozen=True, slots=True)
class RiskAssessment:
    """Score and tags before a reason has been attached."""
    risk_score: int
    patterns: tuple[str, ...] = ()
    is_blocked: bool = False


@dataclass(frozen=True, slots=True)
class RoleContext:
    """Per-evaluation role flags supplied by the host."""
    is_sender_restricted_party: bool = False
    bypass: bool = False


@dataclass(frozen=True, slots=True)
class FilterResult:
    """Final verdict for one message."""
    is_blocked: bool
    risk_score: int = 0
    patterns: tuple[str, ...] = ()
    reason: str | None = None

    @classmethod
    def allowed(cls) -> "FilterResult":
        return cls(is_blocked=False, risk_score=0, patterns=())

    def to_dict(self) -> dict:
        return {
            "is_blocked": self.is_blocked,
            "risk_score": self.risk_score,
            "patterns": list(self.patterns),
            "reason": self.reason,
        }


@dataclass(frozen=True, slots=True)
class ConversationBuffer:
    """Snapshot of one sender's recent messages in one channel."""
    key: BufferKey
    messages: tuple[str, ...] = ()
    risk_score: int = 0
    last_analysis_at: float = 0.0
