"""LLM risk classifier: one chat completion per post."""

import json
import logging
import math
import re

from openai import AsyncOpenAI
from pydantic import ValidationError

from shared.config.settings import Settings
from shared.models.post import RawScrapedPost
from shared.models.verdict import ParsedVerdict, RiskVerdict, UnparsedVerdict

from risk_analyzer.prompts import build_risk_prompt

logger = logging.getLogger(__name__)

_OPENING_FENCE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_CLOSING_FENCE = re.compile(r"\s*```$")


def make_llm_client(settings: Settings) -> AsyncOpenAI:
    """OpenAI-compatible client for the configured endpoint.

    Retries are disabled: a failed call surfaces to the item that made it.
    """
    return AsyncOpenAI(
        api_key=settings.gemini_api_key,
        base_url=settings.llm_base_url,
        timeout=settings.llm_timeout,
        max_retries=0,
    )


def strip_code_fence(text: str) -> str:
    """Remove a surrounding ```json ... ``` or ``` ... ``` fence, if any."""
    raw = _OPENING_FENCE.sub("", text.strip())
    return _CLOSING_FENCE.sub("", raw).strip()


def _reject_constant(token: str) -> float:
    raise ValueError(f"non-finite number {token} is not allowed")


def _finite_float(token: str) -> float:
    value = float(token)
    if not math.isfinite(value):
        raise ValueError(f"number {token} is out of range")
    return value


def parse_verdict(text: str) -> RiskVerdict:
    """Turn the model's answer into a verdict. Never raises."""
    raw = strip_code_fence(text or "")
    try:
        decoded = json.loads(raw, parse_constant=_reject_constant, parse_float=_finite_float)
    except ValueError as e:
        return UnparsedVerdict(error=f"Invalid JSON: {e}", raw_response=text or "")

    if not isinstance(decoded, dict):
        return UnparsedVerdict(
            error=f"Expected a JSON object, got {type(decoded).__name__}",
            raw_response=text,
        )

    try:
        return ParsedVerdict.from_raw(decoded)
    except (ValidationError, TypeError, ValueError, OverflowError) as e:
        return UnparsedVerdict(error=f"Unexpected verdict shape: {e}", raw_response=text)


class RiskClassifier:
    """Classifies a post's child-safety risk with a chat model."""

    def __init__(self, llm_client: AsyncOpenAI, model: str, platform: str = "facebook") -> None:
        self.llm_client = llm_client
        self.model = model
        self.platform = platform

    async def classify(self, post: RawScrapedPost) -> RiskVerdict:
        """Classify one post.

        Parse problems come back as an UnparsedVerdict; transport errors
        (timeouts, API errors) propagate.
        """
        prompt = build_risk_prompt(post, self.platform)
        response = await self.llm_client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=0,
        )
        content = response.choices[0].message.content or ""
        verdict = parse_verdict(content)
        if isinstance(verdict, UnparsedVerdict):
            logger.warning("Could not parse classifier answer for post %s: %s", post.post_id, verdict.error)
        else:
            logger.debug(
                "Post %s classified: risk=%s flagged=%s priority=%d",
                post.post_id, verdict.risk_level, verdict.flagged, verdict.priority_score,
            )
        return verdict
