"""Conversation analyzer: scores split-pattern evasion across recent messages.

A sender who types "call me at 555" and then "1234" never trips the
single-message scanner.  Here the sender's recent messages are joined with
the new one into one window and scored with weaker fragment rules.

Scoring is additive, every signal is independent:

    contact_intent               +15
    split_phone   (with intent)  +30   two or more phone fragment shapes
    split_domain  (with intent)  +25
    split_email   (with intent)  +25
    split_social  (with intent)  +20
    number_sequence              +40   two or more 2-4 digit tokens
    number_sequence_with_intent  +25   exactly one such token, intent present
    suspicious_spacing           +20

A window blocks at BLOCK_THRESHOLD or above.
"""

from __future__ import annotations
from typing import Sequence

from .patterns import (
    count_fragments,
    has_contact_intent,
    has_suspicious_spacing,
    number_tokens,
)
from .types import Category, RiskAssessment

BLOCK_THRESHOLD = 40
DEFAULT_WINDOW = 5

W_INTENT = 15
W_SPLIT_PHONE = 30
W_SPLIT_DOMAIN = 25
W_SPLIT_EMAIL = 25
W_SPLIT_SOCIAL = 20
W_NUMBER_SEQUENCE = 40
W_NUMBER_WITH_INTENT = 25
W_SPACING = 20


def build_window(history: Sequence[str], message: str, *, size: int = DEFAULT_WINDOW) -> str:
    """Join the last `size` history texts and the new message, lower-cased."""
    recent = list(history[-size:]) if size > 0 else []
    return " ".join(recent + [message]).lower()


def score_window(window: str) -> RiskAssessment:
    """Score an already-built analysis window."""
    score = 0
    tags: list[str] = []

    intent = has_contact_intent(window)
    if intent:
        score += W_INTENT
        tags.append("contact_intent")

        if count_fragments(Category.PHONE, window) >= 2:
            score += W_SPLIT_PHONE
            tags.append("split_phone")
        if count_fragments(Category.WEBSITE, window) >= 1:
            score += W_SPLIT_DOMAIN
            tags.append("split_domain")
        if count_fragments(Category.EMAIL, window) >= 1:
            score += W_SPLIT_EMAIL
            tags.append("split_email")
        if count_fragments(Category.SOCIAL, window) >= 1:
            score += W_SPLIT_SOCIAL
            tags.append("split_social")

    numbers = len(number_tokens(window))
    if numbers >= 2:
        score += W_NUMBER_SEQUENCE
        tags.append("number_sequence")
    elif numbers == 1 and intent:
        # a lone number without intent is a price or a duration
        score += W_NUMBER_WITH_INTENT
        tags.append("number_sequence_with_intent")

    if has_suspicious_spacing(window):
        score += W_SPACING
        tags.append("suspicious_spacing")

    return RiskAssessment(
        risk_score=score,
        patterns=tuple(tags),
        is_blocked=score >= BLOCK_THRESHOLD,
    )


def analyze(message: str, history: Sequence[str] = (), *,
            window_size: int = DEFAULT_WINDOW) -> RiskAssessment:
    """Score `message` in the context of the sender's earlier messages.

    `history` must not already contain `message`.
    """
    return score_window(build_window(history, message, size=window_size))
