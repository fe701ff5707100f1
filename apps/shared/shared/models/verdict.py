"""Risk verdict returned by the LLM classifier.

The classifier answers with free-form JSON that is usually, but not always,
well formed. A verdict is therefore one of two shapes:

    ParsedVerdict: the JSON parsed into a normalized object
    UnparsedVerdict: the parse failed; carries the error and the raw text

Downstream code checks the shape with isinstance() and treats an
UnparsedVerdict as "no risk signal".
"""

import math
from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class RecommendedAction(str, Enum):
    NO_ACTION = "no_action"
    REVIEW = "review"
    ALERT = "alert"
    ALERT_IMMEDIATE = "alert_immediate"


RISK_CATEGORIES = ("grooming", "trafficking", "csam", "harassment")


def _score(value: Any) -> float:
    """Coerce a score to a float rounded to 2 decimals (missing or non-finite → 0.0)."""
    if value is None or value == "":
        return 0.0
    score = float(value)
    if not math.isfinite(score):
        return 0.0
    return round(score, 2)


class RiskScores(BaseModel):
    """Independent per-category scores in [0.0, 1.0]."""

    model_config = ConfigDict(frozen=True)

    grooming: float = 0.0
    trafficking: float = 0.0
    csam: float = 0.0
    harassment: float = 0.0

    @field_validator(*RISK_CATEGORIES, mode="before")
    @classmethod
    def _round(cls, v: Any) -> float:
        return _score(v)


class Compliance(BaseModel):
    """Compliance booleans as returned by the classifier (None = not stated)."""

    model_config = ConfigDict(frozen=True)

    ra11930: bool | None = None
    data_privacy_exemption: bool | None = None


class ParsedVerdict(BaseModel):
    """A successfully parsed classifier answer."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    language_detected: str = "unknown"
    mentioned_people: list[str] = Field(default_factory=list)
    location_detected: str | None = None
    keywords_matched: list[str] = Field(default_factory=list)
    risk_scores: RiskScores = Field(default_factory=RiskScores)
    risk_level: str = RiskLevel.LOW.value
    flagged: bool = False
    flag_reason: list[str] = Field(default_factory=list)
    explanation: str = "Automated analysis completed"
    recommended_action: str = RecommendedAction.NO_ACTION.value
    priority_score: int = 0
    compliance: Compliance = Field(default_factory=Compliance)

    # The JSON object exactly as the model returned it, kept for audit.
    raw: dict[str, Any] = Field(default_factory=dict)

    @field_validator("language_detected", "explanation", mode="before")
    @classmethod
    def _blank_to_default(cls, v: Any, info) -> Any:
        if v is None or v == "":
            return cls.model_fields[info.field_name].default
        return v

    @field_validator("risk_level", "recommended_action", mode="before")
    @classmethod
    def _normalize_label(cls, v: Any, info) -> Any:
        if v is None or v == "":
            return cls.model_fields[info.field_name].default
        return str(v).strip().lower()

    @field_validator("mentioned_people", "keywords_matched", "flag_reason", mode="before")
    @classmethod
    def _as_list(cls, v: Any) -> list:
        if isinstance(v, str):
            return [v] if v.strip() else []
        if not isinstance(v, list):
            return []
        return [str(item) for item in v if item is not None]

    @field_validator("risk_scores", "compliance", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return v if isinstance(v, dict) else {}

    @field_validator("location_detected", mode="before")
    @classmethod
    def _blank_location(cls, v: Any) -> Any:
        return v or None

    @field_validator("flagged", mode="before")
    @classmethod
    def _none_flagged(cls, v: Any) -> Any:
        return False if v is None else v

    @field_validator("priority_score", mode="before")
    @classmethod
    def _int_priority(cls, v: Any) -> int:
        if v is None or v == "":
            return 0
        score = float(v)
        if not math.isfinite(score):
            raise ValueError(f"priority_score must be finite, got {v!r}")
        return int(score)

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> "ParsedVerdict":
        """Build a verdict from the decoded JSON object, keeping it verbatim."""
        return cls.model_validate({**raw, "raw": raw})


class UnparsedVerdict(BaseModel):
    """Sentinel for a classifier answer that could not be parsed."""

    model_config = ConfigDict(frozen=True)

    error: str
    raw_response: str = ""

    @property
    def raw(self) -> dict[str, Any]:
        return {"error": self.error, "raw_response": self.raw_response}


RiskVerdict = Union[ParsedVerdict, UnparsedVerdict]
