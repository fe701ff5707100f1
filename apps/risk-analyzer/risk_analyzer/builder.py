"""Assemble the canonical AnalysisRecord from a scraped post and its verdict."""

import hashlib
import logging
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from urllib.parse import urlparse

from shared.models.post import MediaRef, RawScrapedPost
from shared.models.record import (
    Actor,
    Actors,
    AnalysisRecord,
    ComplianceFlags,
    MediaRecord,
    PostInfo,
    SourceInfo,
)
from shared.models.verdict import ParsedVerdict, RiskVerdict

logger = logging.getLogger(__name__)

PLATFORM_BASE_URLS = {
    "facebook": "https://www.facebook.com",
}

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}
VIDEO_EXTENSIONS = {".mp4", ".avi", ".mov", ".webm"}

EMPTY_SHA256 = hashlib.sha256(b"").hexdigest()


# ──────────────────────────────────────────────
# Field helpers
# ──────────────────────────────────────────────


def _utc_iso(dt: datetime) -> str:
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _parse_iso(value: str) -> datetime:
    """Parse ISO-8601, accepting a trailing ``Z``; naive times are UTC."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def scrape_session_id(scraped_at: str | datetime) -> str:
    """Bucket a scrape time into its UTC hour: ``sess-YYYY-MM-DDTHH:00Z``."""
    dt = scraped_at if isinstance(scraped_at, datetime) else _parse_iso(scraped_at)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return f"sess-{dt:%Y-%m-%dT%H}:00Z"


def detect_media_type(url: str) -> str:
    suffix = Path(urlparse(url or "").path).suffix.lower()
    if suffix in IMAGE_EXTENSIONS:
        return "image"
    if suffix in VIDEO_EXTENSIONS:
        return "video"
    return "unknown"


def hash_media_file(path: str | None) -> str:
    """sha256 of a local media file; the empty-input digest when unavailable."""
    if not path:
        return EMPTY_SHA256
    file_path = Path(path)
    if not file_path.is_file():
        return EMPTY_SHA256
    try:
        return hashlib.sha256(file_path.read_bytes()).hexdigest()
    except OSError as e:
        logger.warning("Could not read media file %s: %s", path, e)
        return EMPTY_SHA256


def make_signature(analysis_id: str, post_id: str, processing_ms: int) -> str:
    return hashlib.sha256(f"{analysis_id}{post_id}{processing_ms}".encode()).hexdigest()[:8]


def profile_url_for(profile_id: str | None, platform: str = "facebook") -> str:
    if not profile_id:
        return ""
    base = PLATFORM_BASE_URLS.get(platform, PLATFORM_BASE_URLS["facebook"])
    return f"{base}/profile.php?id={profile_id}"


def _media_record(media: MediaRef) -> MediaRecord:
    url = media.url or ""
    return MediaRecord(
        url=url,
        type=detect_media_type(url),
        hash_sha256=hash_media_file(media.local_path or media.filename),
    )


# ──────────────────────────────────────────────
# Record assembly
# ──────────────────────────────────────────────


def build_record(
    post: RawScrapedPost,
    verdict: RiskVerdict,
    started: float,
    *,
    platform: str = "facebook",
    collection_method: str = "browser_use",
    model: str = "gemini-2.0-flash-exp",
) -> AnalysisRecord:
    """Build the record for one classified post.

    ``started`` is a ``time.monotonic()`` reading taken just before the
    classifier call; the elapsed time becomes ``processing_ms``.
    """
    analysis_id = str(uuid.uuid4())
    post_id = post.post_id or "unknown"

    if post.scraped_at:
        scraped_at = post.scraped_at
        session_id = scrape_session_id(scraped_at)
    else:
        now = datetime.now(timezone.utc)
        scraped_at = _utc_iso(now)
        session_id = scrape_session_id(now)

    base_url = PLATFORM_BASE_URLS.get(platform, PLATFORM_BASE_URLS["facebook"])

    poster = Actor(
        name=post.poster_name or "Unknown",
        profile_id=post.poster_profile_id or "",
        profile_url=post.poster_profile_url or profile_url_for(post.poster_profile_id, platform),
    )
    sharers = []
    if post.sharer_name:
        sharers.append(Actor(
            name=post.sharer_name,
            profile_id=post.sharer_profile_id or "",
            profile_url=post.sharer_profile_url or profile_url_for(post.sharer_profile_id, platform),
        ))

    if isinstance(verdict, ParsedVerdict):
        verdict_fields = {
            "language_detected": verdict.language_detected,
            "location_detected": verdict.location_detected,
            "keywords_matched": list(verdict.keywords_matched),
            "risk_scores": verdict.risk_scores,
            "risk_level": verdict.risk_level,
            "flagged": verdict.flagged,
            "flag_reason": list(verdict.flag_reason),
            "explanation": verdict.explanation,
            "recommended_action": verdict.recommended_action,
            "priority_score": verdict.priority_score,
            "compliance": ComplianceFlags.from_verdict(verdict.compliance),
        }
        mentioned_people = list(verdict.mentioned_people)
        classification_error = None
    else:
        verdict_fields = {}
        mentioned_people = []
        classification_error = verdict.error

    processing_ms = int((time.monotonic() - started) * 1000)

    return AnalysisRecord(
        analysis_id=analysis_id,
        source=SourceInfo(
            platform=platform,
            collection_method=collection_method,
            scrape_session_id=session_id,
        ),
        post=PostInfo(
            id=post_id,
            permalink=post.permalink or f"{base_url}/{post_id}",
            scraped_at=scraped_at,
            published_at=post.published_at or scraped_at,
            full_text=post.full_text or "",
            media=[_media_record(m) for m in post.media],
        ),
        actors=Actors(poster=poster, sharers=sharers, mentioned_people=mentioned_people),
        **verdict_fields,
        classification_error=classification_error,
        model_outputs={"classifier": verdict.raw},
        matched_hashes=[],
        ai_version={"model": model},
        processing_ms=processing_ms,
        signature=make_signature(analysis_id, post_id, processing_ms),
    )
