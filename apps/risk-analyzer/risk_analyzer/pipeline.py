"""Per-post analysis pipeline: classify → build record → retain or discard.

Each stage is a separate component so it can be swapped or tested alone:
1. RiskClassifier: one LLM call, returns a verdict
2. build_record: deterministic assembly of the AnalysisRecord
3. should_retain: serious-harm filter
4. AnalysisStore.write: only for retained records
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path

from shared.config.settings import Settings
from shared.models.post import RawScrapedPost
from shared.models.record import AnalysisRecord
from shared.store.analysis_store import AnalysisStore

from risk_analyzer.builder import build_record
from risk_analyzer.classifier import RiskClassifier
from risk_analyzer.retention import should_retain

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisOutcome:
    record: AnalysisRecord
    retained: bool
    stored_path: Path | None = None


class ContentAnalyzer:
    """Runs one post through the full pipeline."""

    def __init__(self, classifier: RiskClassifier, store: AnalysisStore, settings: Settings) -> None:
        self.classifier = classifier
        self.store = store
        self.platform = settings.platform
        self.collection_method = settings.collection_method
        self.model = settings.llm_model

    async def analyze_post(self, post: RawScrapedPost) -> AnalysisOutcome:
        """Classify a post and persist it if it meets the retention criteria.

        LLM transport errors and store write errors propagate; a verdict that
        could not be parsed yields a discarded record.
        """
        started = time.monotonic()
        verdict = await self.classifier.classify(post)
        record = build_record(
            post,
            verdict,
            started,
            platform=self.platform,
            collection_method=self.collection_method,
            model=self.model,
        )

        if not should_retain(record):
            return AnalysisOutcome(record=record, retained=False)

        path = self.store.write(record)
        return AnalysisOutcome(record=record, retained=True, stored_path=path)
