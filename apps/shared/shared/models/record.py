"""Analysis record: the canonical, persisted output of classifying one post.

A record is built once by the risk analyzer, never mutated, written at most
once to the analysis store (only when retained) and read many times by the
dashboard. Field names match the JSON documents in analyzed_data/.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from shared.models.verdict import Compliance, RiskScores


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class SourceInfo(_Frozen):
    platform: str
    collection_method: str
    scrape_session_id: str


class MediaRecord(_Frozen):
    url: str
    type: str  # image | video | unknown
    hash_sha256: str


class PostInfo(_Frozen):
    id: str
    permalink: str
    scraped_at: str
    published_at: str
    full_text: str
    media: list[MediaRecord] = Field(default_factory=list)


class Actor(_Frozen):
    name: str
    profile_id: str = ""
    profile_url: str = ""


class Actors(_Frozen):
    poster: Actor
    sharers: list[Actor] = Field(default_factory=list)
    mentioned_people: list[str] = Field(default_factory=list)


class ComplianceFlags(_Frozen):
    ra11930: bool = True
    data_privacy_exemption: bool = True

    @classmethod
    def from_verdict(cls, compliance: Compliance) -> "ComplianceFlags":
        """Flags are true unless the classifier explicitly said false."""
        return cls(
            ra11930=compliance.ra11930 is not False,
            data_privacy_exemption=compliance.data_privacy_exemption is not False,
        )


class AnalysisRecord(_Frozen):
    """One analyzed post.

    ``signature`` is the first 8 hex chars of
    sha256(analysis_id + post.id + processing_ms). It helps spot accidental
    edits and duplicate documents but anyone holding those three values can
    recompute it, so it proves nothing about who produced the record.
    """

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    analysis_id: str
    source: SourceInfo
    post: PostInfo
    actors: Actors

    language_detected: str = "unknown"
    location_detected: str | None = None
    keywords_matched: list[str] = Field(default_factory=list)
    risk_scores: RiskScores = Field(default_factory=RiskScores)
    risk_level: str = "low"
    flagged: bool = False
    flag_reason: list[str] = Field(default_factory=list)
    explanation: str = "Automated analysis completed"
    recommended_action: str = "no_action"
    priority_score: int = 0
    compliance: ComplianceFlags = Field(default_factory=ComplianceFlags)

    # Set when the classifier answer could not be parsed.
    classification_error: str | None = None

    model_outputs: dict[str, Any] = Field(default_factory=dict)
    matched_hashes: list[str] = Field(default_factory=list)
    ai_version: dict[str, str] = Field(default_factory=dict)
    processing_ms: int
    signature: str
