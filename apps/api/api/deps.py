"""Shared dependencies for API endpoints."""

import asyncio
import logging

from shared.config.settings import get_settings
from shared.models.event import EventType
from shared.notify.registry import SubscriberRegistry
from shared.store.analysis_store import AnalysisStore

logger = logging.getLogger(__name__)

_store: AnalysisStore | None = None
_registry: SubscriberRegistry | None = None
_watch_tasks: list[asyncio.Task] = []


async def init_deps() -> None:
    """Initialize shared dependencies (called on app startup)."""
    global _store, _registry, _watch_tasks
    settings = get_settings()
    _store = AnalysisStore(settings.analyzed_data_dir)
    _registry = SubscriberRegistry()

    from api.watchers import watch_directory

    _watch_tasks = [
        asyncio.create_task(watch_directory(
            _registry,
            settings.analyzed_data_dir,
            EventType.NEW_ANALYSIS,
            "New analysis data available: {filename}",
            poll_seconds=settings.watch_poll_seconds,
        )),
        asyncio.create_task(watch_directory(
            _registry,
            settings.scraped_posts_dir,
            EventType.DATA_SCRAPED,
            "Data scraped and saved: {filename}",
            poll_seconds=settings.watch_poll_seconds,
        )),
    ]


async def close_deps() -> None:
    """Close shared dependencies (called on app shutdown)."""
    global _store, _registry, _watch_tasks
    for task in _watch_tasks:
        task.cancel()
    if _watch_tasks:
        await asyncio.gather(*_watch_tasks, return_exceptions=True)
    _watch_tasks = []
    if _registry:
        await _registry.close()
    _registry = None
    _store = None


def get_store() -> AnalysisStore:
    """Get the shared AnalysisStore."""
    assert _store is not None, "AnalysisStore not initialized, call init_deps() first"
    return _store


def get_registry() -> SubscriberRegistry:
    """Get the shared SubscriberRegistry."""
    assert _registry is not None, "SubscriberRegistry not initialized, call init_deps() first"
    return _registry
