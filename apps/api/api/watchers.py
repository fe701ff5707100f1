"""Background directory tailing: broadcast an event for each new JSON file."""

import asyncio
import logging
from pathlib import Path

from shared.models.event import EventType
from shared.notify.registry import SubscriberRegistry

logger = logging.getLogger(__name__)


def _json_files(directory: Path) -> set[Path]:
    if not directory.is_dir():
        return set()
    return {
        p for p in directory.rglob("*.json")
        if p.is_file() and not any(part.startswith(".") for part in p.relative_to(directory).parts)
    }


async def watch_directory(
    registry: SubscriberRegistry,
    directory: str | Path,
    event_type: EventType,
    message: str,
    poll_seconds: float = 1.0,
) -> None:
    """Poll ``directory`` and publish ``event_type`` for each file that appears.

    Files already present at startup are not announced. ``message`` is
    formatted with ``filename``. Runs until cancelled.
    """
    directory = Path(directory)
    seen = _json_files(directory)
    logger.info("Watching %s for new files (%s)", directory, event_type.value)
    while True:
        await asyncio.sleep(poll_seconds)
        try:
            current = _json_files(directory)
            for path in sorted(current - seen):
                await registry.publish(
                    event_type,
                    message.format(filename=path.name),
                    {"filename": path.name, "filePath": str(path)},
                )
            seen = current
        except Exception:
            logger.warning("Directory watch tick failed for %s", directory, exc_info=True)
