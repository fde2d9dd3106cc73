"""Verdict composer: attaches a role-specific reason to an assessment."""

from __future__ import annotations
from typing import Iterable

from .types import Category, FilterResult, RiskAssessment, RoleContext

# Tag -> category, checked in this order; first category present wins.
_TAG_CATEGORIES: tuple[tuple[Category, frozenset[str]], ...] = (
    (Category.PHONE, frozenset({
        "single_phone", "split_phone", "number_sequence", "number_sequence_with_intent",
    })),
    (Category.WEBSITE, frozenset({"single_website", "split_domain"})),
    (Category.EMAIL, frozenset({"single_email", "split_email"})),
    (Category.SOCIAL, frozenset({"single_social", "split_social"})),
)

# Sender is the restricted party: tell them to upgrade.
_SENDER_REASONS: dict[Category | None, str] = {
    Category.PHONE: "Phone numbers are not allowed. Upgrade to Pro to share contact details.",
    Category.WEBSITE: "Website links are not allowed. Upgrade to Pro to share links.",
    Category.EMAIL: "Email addresses are not allowed. Upgrade to Pro to share contact details.",
    Category.SOCIAL: "Social media handles are not allowed. "
                     "Upgrade to Pro for unlimited messaging access.",
    None: "This message appears to contain contact information, which is a Pro feature. "
          "Upgrade to Pro to share it.",
}

# Sender is the counterparty: the recipient's plan is the limit.
_RECIPIENT_REASONS: dict[Category | None, str] = {
    Category.PHONE: "The other party's plan does not allow receiving phone numbers.",
    Category.WEBSITE: "The other party's plan does not allow receiving website links.",
    Category.EMAIL: "The other party's plan does not allow receiving email addresses.",
    Category.SOCIAL: "The other party's plan does not allow receiving social media handles.",
    None: "This message contains contact details that the other party's plan "
          "does not allow receiving.",
}


def reason_category(patterns: Iterable[str]) -> Category | None:
    tags = set(patterns)
    for category, members in _TAG_CATEGORIES:
        if tags & members:
            return category
    return None


def block_reason(patterns: Iterable[str], *, sender_is_restricted: bool) -> str:
    table = _SENDER_REASONS if sender_is_restricted else _RECIPIENT_REASONS
    return table[reason_category(patterns)]


def compose(assessment: RiskAssessment, role: RoleContext) -> FilterResult:
    """Build the final FilterResult.  A reason is only attached when blocked."""
    reason = None
    if assessment.is_blocked:
        reason = block_reason(
            assessment.patterns,
            sender_is_restricted=role.is_sender_restricted_party,
        )
    return FilterResult(
        is_blocked=assessment.is_blocked,
        risk_score=assessment.risk_score,
        patterns=assessment.patterns,
        reason=reason,
    )
