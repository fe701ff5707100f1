"""Where scraped-post files come from: a finite backlog or a live directory."""

import abc
import asyncio
import logging
from collections.abc import AsyncIterator
from pathlib import Path

logger = logging.getLogger(__name__)


def _is_json(path: Path) -> bool:
    return path.is_file() and path.suffix.lower() == ".json"


def discover_json_files(root: str | Path) -> list[Path]:
    """All ``*.json`` files under ``root`` (recursive, case-insensitive), sorted.

    A missing root is logged and yields an empty list.
    """
    root = Path(root)
    if not root.is_dir():
        logger.warning("Scraped posts directory not found: %s", root)
        return []
    return sorted(p for p in root.rglob("*") if _is_json(p))


class NewItemSource(abc.ABC):
    """An unbounded feed of newly arrived item paths, each yielded once."""

    @abc.abstractmethod
    def __aiter__(self) -> AsyncIterator[Path]:
        ...


class PollingDirectorySource(NewItemSource):
    """Polls a directory tree for new ``*.json`` files.

    Files present when iteration starts are treated as already seen. A new
    file is yielded after ``settle_seconds`` (so the writer can finish) and
    only if it still exists then. Runs until the consumer stops iterating or
    the task is cancelled.
    """

    def __init__(
        self,
        directory: str | Path,
        poll_seconds: float = 1.0,
        settle_seconds: float = 2.0,
    ) -> None:
        self.directory = Path(directory)
        self.poll_seconds = poll_seconds
        self.settle_seconds = settle_seconds
        self._seen: set[Path] = set()

    def _scan(self) -> list[Path]:
        if not self.directory.is_dir():
            return []
        return sorted(p for p in self.directory.rglob("*") if _is_json(p))

    def snapshot(self) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        self._seen = set(self._scan())
        logger.info("Watching %s (%d existing files ignored)", self.directory, len(self._seen))

    def __aiter__(self) -> AsyncIterator[Path]:
        self.snapshot()
        return self._poll()

    async def _poll(self) -> AsyncIterator[Path]:
        while True:
            for path in self._scan():
                if path in self._seen:
                    continue
                self._seen.add(path)
                logger.info("New file detected: %s", path.name)
                await asyncio.sleep(self.settle_seconds)
                if not path.exists():
                    logger.warning("File disappeared before processing: %s", path.name)
                    continue
                yield path
            await asyncio.sleep(self.poll_seconds)
