import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from shared.config.settings import Settings, get_settings
from shared.models.post import RawScrapedPost

HIGH_RISK_ANSWER = {
    "language_detected": "en",
    "mentioned_people": ["@recruiter"],
    "location_detected": "Manila, Philippines",
    "keywords_matched": ["young models", "DM me", "private sessions"],
    "risk_scores": {"grooming": 0.856, "trafficking": 0.71, "csam": 0.2, "harassment": 0.05},
    "risk_level": "HIGH",
    "flagged": True,
    "flag_reason": ["Possible child trafficking", "Grooming language"],
    "explanation": "Recruitment of minors for private sessions suggests sexual exploitation.",
    "recommended_action": "alert_immediate",
    "priority_score": 88,
    "compliance": {"ra11930": True, "data_privacy_exemption": False},
}

SAFE_ANSWER = {
    "language_detected": "en",
    "risk_scores": {"grooming": 0.0, "trafficking": 0.0, "csam": 0.0, "harassment": 0.0},
    "risk_level": "low",
    "flagged": False,
    "flag_reason": [],
    "explanation": "Community bake sale announcement.",
    "recommended_action": "no_action",
    "priority_score": 3,
}


def chat_response(content: str):
    """Shape of an openai chat completion, as far as the classifier reads it."""
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def fake_llm(*contents) -> MagicMock:
    """LLM client whose successive completions return ``contents`` in order.

    An exception instance in ``contents`` is raised by that call instead.
    """
    client = MagicMock()
    client.chat.completions.create = AsyncMock(side_effect=[
        c if isinstance(c, BaseException) else chat_response(c) for c in contents
    ])
    return client


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        gemini_api_key="test-key",
        scraped_posts_dir=str(tmp_path / "scraped_posts"),
        analyzed_data_dir=str(tmp_path / "analyzed_data"),
        batch_delay_seconds=0.0,
        watch_settle_seconds=0.0,
        watch_poll_seconds=0.01,
        notify_enabled=False,
    )


@pytest.fixture
def raw_post() -> dict:
    return {
        "postId": "pfbid02abc",
        "permalink": "https://www.facebook.com/groups/1/posts/2",
        "scrapedAt": "2024-03-01T10:05:00.000Z",
        "publishedAt": "2024-03-01T09:00:00.000Z",
        "fullText": "Looking for young models, DM me. Private sessions available.",
        "posterName": "Jane Recruiter",
        "posterProfileId": "100012345",
        "mediaUrls": [
            {"originalUrl": "https://cdn.example.com/p/abc.JPG?x=1", "localPath": None, "filename": None},
        ],
    }


@pytest.fixture
def post(raw_post) -> RawScrapedPost:
    return RawScrapedPost.model_validate(raw_post)


@pytest.fixture
def write_post(tmp_path):
    """Write a scraped-post document and return its path."""

    def _write(name: str, data: dict, directory=None):
        directory = directory or tmp_path / "scraped_posts"
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def make_llm():
    return fake_llm


@pytest.fixture
def high_risk_answer() -> str:
    return json.dumps(HIGH_RISK_ANSWER)


@pytest.fixture
def safe_answer() -> str:
    return json.dumps(SAFE_ANSWER)
