"""Canned inputs for the ``test`` and ``test-filter`` commands."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from shared.models.post import RawScrapedPost
from shared.models.record import Actor, Actors, AnalysisRecord, PostInfo, SourceInfo


def sample_post(now: datetime | None = None) -> RawScrapedPost:
    """A synthetic post with obvious grooming/exploitation signals."""
    now = now or datetime.now(timezone.utc)
    return RawScrapedPost.model_validate({
        "postId": "test123456789",
        "permalink": "https://www.facebook.com/test/posts/123456789",
        "scrapedAt": now.isoformat().replace("+00:00", "Z"),
        "publishedAt": (now - timedelta(hours=1)).isoformat().replace("+00:00", "Z"),
        "fullText": (
            "Looking for young models for photo shoot. Good pay! DM me for details. "
            "Must be 16-18 years old. Private sessions available."
        ),
        "mediaUrls": [
            {
                "originalUrl": "https://example.com/image.jpg",
                "localPath": "/path/to/local/image.jpg",
                "filename": "test_image.jpg",
            }
        ],
        "posterName": "Test User",
        "posterProfileId": "100000000000000",
        "posterProfileUrl": "https://www.facebook.com/profile.php?id=100000000000000",
    })


@dataclass(frozen=True)
class FilterCase:
    name: str
    fields: dict[str, Any]
    expected_retain: bool

    def record(self) -> AnalysisRecord:
        post_id = self.fields.get("post_id", "filter-test")
        return AnalysisRecord(
            analysis_id=f"filter-{post_id}",
            source=SourceInfo(
                platform="facebook",
                collection_method="browser_use",
                scrape_session_id="sess-2024-01-01T00:00Z",
            ),
            post=PostInfo(
                id=post_id,
                permalink="",
                scraped_at="2024-01-01T00:00:00.000Z",
                published_at="2024-01-01T00:00:00.000Z",
                full_text="",
            ),
            actors=Actors(poster=Actor(name="Unknown")),
            processing_ms=0,
            signature="",
            **{k: v for k, v in self.fields.items() if k != "post_id"},
        )


FILTER_CASES = [
    FilterCase(
        name="High Risk - Trafficking Indicators",
        fields={
            "post_id": "test1",
            "flagged": True,
            "risk_level": "high",
            "risk_scores": {"trafficking": 0.8, "grooming": 0.2, "csam": 0.1, "harassment": 0.1},
            "flag_reason": ["trafficking indicators", "suspicious contact"],
            "explanation": "Post contains trafficking indicators and suspicious contact patterns",
            "priority_score": 85,
        },
        expected_retain=True,
    ),
    FilterCase(
        # Strong grooming score, but medium risk level is below the retention bar.
        name="Medium Risk - Grooming Indicators",
        fields={
            "post_id": "test2",
            "flagged": True,
            "risk_level": "medium",
            "risk_scores": {"trafficking": 0.1, "grooming": 0.7, "csam": 0.2, "harassment": 0.1},
            "flag_reason": ["grooming behavior", "inappropriate contact with minor"],
            "explanation": "Potential grooming behavior detected",
            "priority_score": 75,
        },
        expected_retain=False,
    ),
    FilterCase(
        name="Low Risk - General Harassment",
        fields={
            "post_id": "test3",
            "flagged": True,
            "risk_level": "low",
            "risk_scores": {"trafficking": 0.1, "grooming": 0.1, "csam": 0.0, "harassment": 0.6},
            "flag_reason": ["mild harassment"],
            "explanation": "General harassment detected but not serious crime related",
            "priority_score": 40,
        },
        expected_retain=False,
    ),
    FilterCase(
        name="Not Flagged - Safe Content",
        fields={
            "post_id": "test4",
            "flagged": False,
            "risk_level": "low",
            "risk_scores": {"trafficking": 0.0, "grooming": 0.0, "csam": 0.0, "harassment": 0.0},
            "flag_reason": [],
            "explanation": "Content appears safe",
            "priority_score": 0,
        },
        expected_retain=False,
    ),
    FilterCase(
        name="Critical Risk - CSAM Indicators",
        fields={
            "post_id": "test5",
            "flagged": True,
            "risk_level": "critical",
            "risk_scores": {"trafficking": 0.2, "grooming": 0.3, "csam": 0.9, "harassment": 0.1},
            "flag_reason": ["csam", "child abuse material"],
            "explanation": "Critical CSAM indicators detected",
            "priority_score": 95,
        },
        expected_retain=True,
    ),
]
