"""Data models for juvo-ai."""

from shared.models.event import EventType, NotificationEvent
from shared.models.item import ItemResult, ItemStatus
from shared.models.post import MediaRef, RawScrapedPost
from shared.models.record import AnalysisRecord
from shared.models.verdict import (
    ParsedVerdict,
    RecommendedAction,
    RiskLevel,
    RiskScores,
    RiskVerdict,
    UnparsedVerdict,
)

__all__ = [
    "AnalysisRecord",
    "EventType",
    "ItemResult",
    "ItemStatus",
    "MediaRef",
    "NotificationEvent",
    "ParsedVerdict",
    "RawScrapedPost",
    "RecommendedAction",
    "RiskLevel",
    "RiskScores",
    "RiskVerdict",
    "UnparsedVerdict",
]
