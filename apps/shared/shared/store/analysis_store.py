"""File-backed store for retained analysis records.

One pretty-printed JSON document per record:
    analyzed_data/analysis_{post_id}_{timestamp}.json

The directory is append-only. Documents are created exclusively and never
rewritten, so concurrent writers (a batch run and a live watcher) never
contend as long as each picks its own file name.
"""

import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from shared.models.record import AnalysisRecord

logger = logging.getLogger(__name__)

DOCUMENT_SUFFIX = ".json"

_UNSAFE_ID_CHARS = re.compile(r"[^A-Za-z0-9_-]")


class InvalidFilename(ValueError):
    """Requested name is not a store document or tries to leave the store."""


class RecordNotFound(LookupError):
    """No document with the requested name."""


def validate_filename(filename: str) -> str:
    """Reject anything that is not a bare ``*.json`` name inside the store.

    Runs before any filesystem access.
    """
    if (
        not filename
        or not filename.endswith(DOCUMENT_SUFFIX)
        or ".." in filename
        or "/" in filename
        or "\\" in filename
        or "\x00" in filename
    ):
        raise InvalidFilename(f"Invalid filename: {filename!r}")
    return filename


def _safe_timestamp(now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    iso = now.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return iso.replace(":", "-").replace(".", "-")


def _file_metadata(path: Path) -> dict[str, Any]:
    stat = path.stat()
    return {
        "filename": path.name,
        "filesize": stat.st_size,
        "modified": datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc).isoformat(),
    }


class AnalysisStore:
    """Append-only persistence and read surface for analysis records."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def __repr__(self) -> str:
        return f"AnalysisStore({str(self.directory)!r})"

    # ──────────────────────────────────────────────
    # Write
    # ──────────────────────────────────────────────

    def filename_for(self, record: AnalysisRecord, now: datetime | None = None) -> str:
        post_id = _UNSAFE_ID_CHARS.sub("_", record.post.id) or "unknown"
        return f"analysis_{post_id}_{_safe_timestamp(now)}{DOCUMENT_SUFFIX}"

    def write(self, record: AnalysisRecord) -> Path:
        """Persist a record as a new document and return its path.

        Raises FileExistsError rather than overwrite an existing document;
        any other OSError propagates to the caller.
        """
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.directory / self.filename_for(record)
        payload = json.dumps(record.model_dump(mode="json"), ensure_ascii=False, indent=2)
        with open(path, "x", encoding="utf-8") as f:
            f.write(payload)
        logger.info("Stored analysis %s for post %s → %s", record.analysis_id, record.post.id, path)
        return path

    # ──────────────────────────────────────────────
    # Read
    # ──────────────────────────────────────────────

    def list_records(self) -> list[dict[str, Any]]:
        """Return every stored document with file metadata attached.

        A missing directory is reported in the log and yields an empty list.
        Unreadable documents are skipped.
        """
        if not self.directory.is_dir():
            logger.warning("Analysis store directory not found: %s", self.directory)
            return []

        documents = []
        for path in sorted(self.directory.glob(f"*{DOCUMENT_SUFFIX}")):
            try:
                documents.append(self._read_document(path))
            except (OSError, ValueError) as e:
                logger.warning("Skipping unreadable analysis file %s: %s", path.name, e)
        return documents

    def get_record(self, filename: str) -> dict[str, Any]:
        """Fetch one document by file name, with file metadata attached."""
        validate_filename(filename)
        path = self.directory / filename
        if not path.is_file():
            raise RecordNotFound(filename)
        return self._read_document(path)

    def load(self, filename: str) -> AnalysisRecord:
        """Fetch one document by file name as a typed record."""
        document = self.get_record(filename)
        document.pop("_metadata", None)
        return AnalysisRecord.model_validate(document)

    def list_files(self) -> list[dict[str, Any]]:
        """List every file in the store directory (debugging aid)."""
        if not self.directory.is_dir():
            return []
        files = []
        for path in sorted(self.directory.iterdir()):
            if not path.is_file():
                continue
            meta = _file_metadata(path)
            files.append({
                "name": meta["filename"],
                "size": meta["filesize"],
                "modified": meta["modified"],
                "is_json": path.name.endswith(DOCUMENT_SUFFIX),
            })
        return files

    def _read_document(self, path: Path) -> dict[str, Any]:
        with open(path, encoding="utf-8") as f:
            document = json.load(f)
        if not isinstance(document, dict):
            raise ValueError("document is not a JSON object")
        document["_metadata"] = _file_metadata(path)
        return document
