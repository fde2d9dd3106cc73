"""Pattern catalog: static lexical rules for contact-information shapes.

Evidence rules are specific enough to block a message on their own.
Fragment, intent and spacing rules are weaker signals that only the
conversation analyzer uses, and only in combination.

All rules are compiled once at import time and shared read-only.
"""

from __future__ import annotations
import re

from .types import Category, PatternHit, PatternRule, RuleKind

_PLATFORMS = (
    r"instagram|insta|ig|facebook|fb|twitter|x\.com|whatsapp|telegram"
    r"|snapchat|tiktok|youtube|discord"
)


def _rule(name: str, category: Category, kind: RuleKind, pattern: str,
          flags: int = 0) -> PatternRule:
    return PatternRule(name, category, kind, re.compile(pattern, flags))


_E, _F = RuleKind.EVIDENCE, RuleKind.FRAGMENT

# Order inside a category does not matter; category order does (see EVIDENCE_ORDER).
EVIDENCE_RULES: tuple[PatternRule, ...] = (
    # Phone
    _rule("grouped_10", Category.PHONE, _E, r"\b\d{3}[-.\s]?\d{3}[-.\s]?\d{4}\b"),
    _rule("long_run", Category.PHONE, _E, r"\b\d{10,}\b"),
    _rule("area_code", Category.PHONE, _E, r"\(\d{3}\)\s?\d{3}[-.\s]?\d{4}"),
    _rule("intl_prefix", Category.PHONE, _E, r"\+\d{1,3}[-.\s]?\d{3,}"),
    _rule("digit_run", Category.PHONE, _E, r"\b\d{7,15}\b"),
    _rule("phone_label", Category.PHONE, _E,
          r"phone\s*:?\s*\d(?:[-.\s]?\d){4,}", re.IGNORECASE),
    _rule("number_label", Category.PHONE, _E,
          r"number\s*:?\s*\d(?:[-.\s]?\d){4,}", re.IGNORECASE),
    _rule("call_me_at", Category.PHONE, _E,
          r"call\s+me\s+at\s+\d(?:[-.\s]?\d){4,}", re.IGNORECASE),

    # Website
    _rule("scheme", Category.WEBSITE, _E, r"https?://\S+"),
    _rule("www", Category.WEBSITE, _E, r"www\.\S+"),
    _rule("dot_com", Category.WEBSITE, _E,
          r"\b[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?\.com\b", re.IGNORECASE),
    _rule("other_tld", Category.WEBSITE, _E,
          r"\b[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?\.(?:net|org|io|app|dev)\b",
          re.IGNORECASE),

    # Email
    _rule("address", Category.EMAIL, _E,
          r"\b[A-Za-z0-9._%+\-]+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,}\b"),
    _rule("spaced_address", Category.EMAIL, _E,
          r"\b[A-Za-z0-9._%+\-]+\s*@\s*[A-Za-z0-9.\-]+\s*\.\s*[A-Za-z]{2,}\b"),

    # Social
    _rule("at_handle", Category.SOCIAL, _E, r"@\w+"),
    _rule("platform", Category.SOCIAL, _E, rf"\b(?:{_PLATFORMS})\b", re.IGNORECASE),
)

EVIDENCE_ORDER: tuple[Category, ...] = (
    Category.PHONE, Category.WEBSITE, Category.EMAIL, Category.SOCIAL,
)

INTENT_RULES: tuple[PatternRule, ...] = (
    _rule("contact_words", Category.INTENT, RuleKind.INTENT,
          r"\b(?:contact|reach|call|text|phone|number|website|link|email|handle"
          r"|find|follow|add|dm|message)\b", re.IGNORECASE),
    _rule("platform_names", Category.INTENT, RuleKind.INTENT,
          r"\b(?:instagram|insta|ig|facebook|fb|twitter|x\.com|whatsapp|telegram"
          r"|snapchat|tiktok|youtube)\b", re.IGNORECASE),
    _rule("off_platform", Category.INTENT, RuleKind.INTENT,
          r"\b(?:outside|off)\s+(?:platform|app|site|here)\b", re.IGNORECASE),
    _rule("pointers", Category.INTENT, RuleKind.INTENT,
          r"\b(?:my|check|visit|look|see)\b", re.IGNORECASE),
)

FRAGMENT_RULES: dict[Category, tuple[PatternRule, ...]] = {
    Category.PHONE: (
        _rule("three_digits", Category.PHONE, _F, r"\b\d{3}\b"),
        _rule("three_four", Category.PHONE, _F, r"\b\d{3}[-.\s]*\d{4}\b"),
        _rule("four_digits", Category.PHONE, _F, r"\b\d{4}\b"),
        _rule("short_pair", Category.PHONE, _F, r"\b\d{2,3}[-.\s]*\d{2,4}\b"),
    ),
    Category.WEBSITE: (
        _rule("word_dot_tld", Category.WEBSITE, _F,
              r"\b\w+\s*(?:dot|\.)\s*(?:com|net|org|io|co|uk|app|dev)\b", re.IGNORECASE),
        _rule("spaced_www", Category.WEBSITE, _F, r"\bwww\s*\.\s*\w+", re.IGNORECASE),
        _rule("spaced_scheme", Category.WEBSITE, _F,
              r"\bhttps?\s*:\s*/\s*/\s*\w+", re.IGNORECASE),
        _rule("three_labels", Category.WEBSITE, _F,
              r"\b\w+\s*\.\s*\w+\s*\.\s*\w+", re.IGNORECASE),
    ),
    Category.EMAIL: (
        _rule("at_word", Category.EMAIL, _F, r"@\s*\w+"),
        _rule("word_at", Category.EMAIL, _F, r"\w+\s*@"),
        _rule("spelled_out", Category.EMAIL, _F,
              r"\b\w+\s*(?:at|@)\s*\w+\s*(?:dot|\.)\s*(?:com|net|org|gmail|yahoo|hotmail)",
              re.IGNORECASE),
    ),
    Category.SOCIAL: (
        _rule("at_word", Category.SOCIAL, _F, r"@\s*\w+"),
        _rule("handle_label", Category.SOCIAL, _F, r"\bhandle\s*[:@]?\s*\w+", re.IGNORECASE),
        _rule("platform_label", Category.SOCIAL, _F,
              r"\b(?:instagram|ig|facebook|fb|twitter|x)\s*[:@]?\s*\w+", re.IGNORECASE),
    ),
}

SPACING_RULES: tuple[PatternRule, ...] = (
    _rule("spaced_digits", Category.PHONE, RuleKind.SPACING, r"\d\s+\d\s+\d"),
    _rule("spaced_dot", Category.WEBSITE, RuleKind.SPACING, r"\w+\s+dot\s+\w+", re.IGNORECASE),
    _rule("spaced_at", Category.EMAIL, RuleKind.SPACING, r"\w+\s+at\s+\w+", re.IGNORECASE),
)

_NUMBER_TOKEN = re.compile(r"\b\d{2,4}\b")


def first_evidence(text: str) -> PatternHit | None:
    """Return the first evidence hit in category priority order, or None."""
    for category in EVIDENCE_ORDER:
        for rule in EVIDENCE_RULES:
            if rule.category is not category:
                continue
            m = rule.regex.search(text)
            if m:
                return PatternHit(category, rule.name, m.start(), m.end(), m.group())
    return None


def scan_evidence(text: str) -> list[PatternHit]:
    """Run every evidence rule against text. Returns all hits, ordered by
    category priority then position."""
    hits: list[PatternHit] = []
    for rule in EVIDENCE_RULES:
        for m in rule.regex.finditer(text):
            hits.append(PatternHit(rule.category, rule.name, m.start(), m.end(), m.group()))
    rank = {c: i for i, c in enumerate(EVIDENCE_ORDER)}
    return sorted(hits, key=lambda h: (rank[h.category], h.start))


def has_contact_intent(text: str) -> bool:
    return any(rule.matches(text) for rule in INTENT_RULES)


def count_fragments(category: Category, text: str) -> int:
    """Number of distinct fragment rules of a category that match."""
    return sum(1 for rule in FRAGMENT_RULES[category] if rule.matches(text))


def number_tokens(text: str) -> list[str]:
    """Standalone 2-4 digit tokens."""
    return _NUMBER_TOKEN.findall(text)


def has_suspicious_spacing(text: str) -> bool:
    return any(rule.matches(text) for rule in SPACING_RULES)
