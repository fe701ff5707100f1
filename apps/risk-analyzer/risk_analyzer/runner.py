"""Batch / watch / single-file orchestration of the analysis pipeline.

Every mode funnels through BatchProcessor.process_file, one item at a time:

    discovered → classifying → retained | discarded | failed

Items are never retried and never run concurrently.
"""

import asyncio
import json
import logging
from collections.abc import AsyncIterable, Awaitable, Callable, Iterable
from pathlib import Path
from typing import Generic, TypeVar

from shared.models.item import ItemResult, ItemStatus
from shared.models.post import RawScrapedPost
from shared.notify.client import NotificationClient

from risk_analyzer.pipeline import AnalysisOutcome, ContentAnalyzer
from risk_analyzer.sources import NewItemSource, discover_json_files

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class SequentialQueue(Generic[T, R]):
    """Work queue with concurrency 1 and a pause between consecutive items.

    The handler is expected to capture its own failures; an exception it
    raises stops the queue.
    """

    def __init__(self, handler: Callable[[T], Awaitable[R]], delay_seconds: float = 0.0) -> None:
        self.handler = handler
        self.delay_seconds = delay_seconds
        self._handled = 0

    async def _handle(self, item: T) -> R:
        if self._handled and self.delay_seconds > 0:
            await asyncio.sleep(self.delay_seconds)
        self._handled += 1
        return await self.handler(item)

    async def run(self, items: Iterable[T]) -> list[R]:
        """Process a finite backlog in order and return every result."""
        return [await self._handle(item) for item in items]

    async def consume(self, feed: AsyncIterable[T]) -> None:
        """Process a live feed until it is exhausted or the task is cancelled."""
        async for item in feed:
            await self._handle(item)


def load_post(path: Path) -> RawScrapedPost:
    with open(path, encoding="utf-8") as f:
        return RawScrapedPost.model_validate(json.load(f))


class BatchProcessor:
    """Drives the ContentAnalyzer over scraped-post files."""

    def __init__(
        self,
        analyzer: ContentAnalyzer,
        scraped_dir: str | Path,
        notifier: NotificationClient | None = None,
        delay_seconds: float = 1.0,
    ) -> None:
        self.analyzer = analyzer
        self.scraped_dir = Path(scraped_dir)
        self.notifier = notifier
        self.delay_seconds = delay_seconds

    async def _analyze(self, path: Path, result: ItemResult) -> AnalysisOutcome:
        post = load_post(path)
        result.post_id = post.post_id

        if self.notifier:
            await self.notifier.notify_analysis_started(path.name)

        result.status = ItemStatus.CLASSIFYING
        outcome = await self.analyzer.analyze_post(post)
        record = outcome.record

        result.post_id = record.post.id
        result.analysis_id = record.analysis_id
        result.risk_level = record.risk_level
        result.flagged = record.flagged
        result.priority_score = record.priority_score
        if outcome.retained:
            result.status = ItemStatus.RETAINED
            result.stored_path = str(outcome.stored_path)
        else:
            result.status = ItemStatus.DISCARDED

        if self.notifier:
            await self.notifier.notify_analysis_completed(
                path.name, record.risk_level, record.flagged, outcome.retained,
            )
        return outcome

    async def process_file(self, path: str | Path) -> ItemResult:
        """Run one file through the pipeline; failures are recorded, not raised."""
        path = Path(path)
        result = ItemResult(source=str(path))
        logger.info("Processing: %s", path.name)
        try:
            await self._analyze(path, result)
        except Exception as e:
            result.status = ItemStatus.FAILED
            result.error = str(e) or type(e).__name__
            logger.error("Error processing %s: %s", path, result.error, exc_info=True)
        else:
            logger.info("Processed %s: %s", path.name, result.status.value)
        return result

    async def process_all(self) -> list[ItemResult]:
        """Process every scraped-post file under the scraped root, in order."""
        logger.info("Starting batch processing of %s", self.scraped_dir)
        files = discover_json_files(self.scraped_dir)
        logger.info("Found %d JSON files to process", len(files))
        results = await SequentialQueue(self.process_file, self.delay_seconds).run(files)
        logger.info("Batch processing completed. Processed %d files.", len(results))
        return results

    async def process_single(self, path: str | Path) -> ItemResult:
        """Process one file; unlike batch mode, errors reach the caller."""
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"File not found: {path}")
        logger.info("Processing single file: %s", path)
        result = ItemResult(source=str(path))
        await self._analyze(path, result)
        return result

    async def watch(self, source: NewItemSource) -> None:
        """Process files from a live source until cancelled."""
        logger.info("File watcher is now active. Press Ctrl+C to stop.")
        await SequentialQueue(self.process_file, self.delay_seconds).consume(source)
