"""Single-message scanner: exact evidence, no history."""

from __future__ import annotations

from .patterns import first_evidence
from .types import PatternHit, RiskAssessment

MAX_RISK = 100


def scan_single(text: str) -> RiskAssessment | None:
    """Check one message against the evidence rules.

    Returns a blocking assessment at maximal risk for the first category
    that hits (phone, website, email, social), or None to pass the
    message on to conversation analysis.  Intent words alone never block.
    """
    if not text:
        return None
    hit = first_evidence(text)
    if hit is None:
        return None
    return assessment_for(hit)


def assessment_for(hit: PatternHit) -> RiskAssessment:
    return RiskAssessment(risk_score=MAX_RISK, patterns=(hit.tag,), is_blocked=True)
