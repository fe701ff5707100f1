"""Retention filter: only serious, high-priority harm is persisted.

A record is retained when all of these hold:

- the classifier answer was parsed (no ``classification_error``)
- the classifier flagged the post
- risk level is high or critical
- priority score is at least PRIORITY_THRESHOLD
- at least one serious-harm indicator is present (score, keyword or action)

Keyword matching is case-insensitive substring containment, so "grooming"
also matches "grooming-adjacent".
"""

import logging
from dataclasses import dataclass

from shared.models.record import AnalysisRecord

logger = logging.getLogger(__name__)

SERIOUS_CRIME_KEYWORDS = (
    "child trafficking",
    "human trafficking",
    "sexual exploitation",
    "grooming",
    "csam",
    "child abuse",
    "online sexual exploitation",
    "child sexual abuse",
    "commercial sexual exploitation",
    "child predator",
    "online predator",
    "solicitation",
    "child solicitation",
    "minor exploitation",
)

SERIOUS_HARM_THRESHOLD = 0.5
PRIORITY_THRESHOLD = 70
RETAINED_RISK_LEVELS = {"high", "critical"}


def _contains_keyword(text: str) -> bool:
    text = text.lower()
    return any(keyword in text for keyword in SERIOUS_CRIME_KEYWORDS)


@dataclass(frozen=True)
class RetentionDecision:
    """Per-criterion breakdown of a retention decision."""

    parsed: bool
    flagged: bool
    risk_level: str
    high_risk: bool
    priority_score: int
    high_priority: bool
    trafficking: bool
    grooming: bool
    csam: bool
    keyword_in_reasons: bool
    keyword_in_explanation: bool
    immediate_alert: bool

    @property
    def serious_harm(self) -> bool:
        return (
            self.trafficking
            or self.grooming
            or self.csam
            or self.keyword_in_reasons
            or self.keyword_in_explanation
            or self.immediate_alert
        )

    @property
    def retain(self) -> bool:
        return self.parsed and self.flagged and self.high_risk and self.high_priority and self.serious_harm


def evaluate(record: AnalysisRecord) -> RetentionDecision:
    risk_level = (record.risk_level or "").lower()
    scores = record.risk_scores
    return RetentionDecision(
        parsed=record.classification_error is None,
        flagged=bool(record.flagged),
        risk_level=risk_level,
        high_risk=risk_level in RETAINED_RISK_LEVELS,
        priority_score=record.priority_score,
        high_priority=record.priority_score >= PRIORITY_THRESHOLD,
        trafficking=scores.trafficking >= SERIOUS_HARM_THRESHOLD,
        grooming=scores.grooming >= SERIOUS_HARM_THRESHOLD,
        csam=scores.csam >= SERIOUS_HARM_THRESHOLD,
        keyword_in_reasons=_contains_keyword(" ".join(record.flag_reason)),
        keyword_in_explanation=_contains_keyword(record.explanation or ""),
        immediate_alert=record.recommended_action == "alert_immediate",
    )


def should_retain(record: AnalysisRecord) -> bool:
    decision = evaluate(record)
    if decision.retain:
        logger.info(
            "Retaining post %s: risk=%s priority=%d trafficking=%s grooming=%s csam=%s "
            "keywords=%s immediate_alert=%s",
            record.post.id, decision.risk_level, decision.priority_score,
            decision.trafficking, decision.grooming, decision.csam,
            decision.keyword_in_reasons or decision.keyword_in_explanation,
            decision.immediate_alert,
        )
    else:
        logger.info(
            "Discarding post %s: does not meet serious-harm criteria (risk=%s, priority=%d)",
            record.post.id, decision.risk_level, decision.priority_score,
        )
    return decision.retain
