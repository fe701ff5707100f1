"""Read-only access to retained analysis records."""

import logging

from fastapi import APIRouter, HTTPException

from api.deps import get_store
from shared.store.analysis_store import InvalidFilename, RecordNotFound

logger = logging.getLogger(__name__)

router = APIRouter(tags=["analyses"])


@router.get("/analyzed-data")
async def list_analyzed_data() -> dict:
    """All stored records, each with a ``_metadata`` block."""
    records = get_store().list_records()
    return {"success": True, "count": len(records), "data": records}


@router.get("/analyzed-data/{filename}")
async def get_analyzed_data(filename: str) -> dict:
    """One stored record by file name."""
    try:
        record = get_store().get_record(filename)
    except InvalidFilename:
        raise HTTPException(status_code=400, detail="Invalid filename")
    except RecordNotFound:
        raise HTTPException(status_code=404, detail="File not found")
    except (OSError, ValueError) as e:
        logger.error("Error reading %s: %s", filename, e)
        raise HTTPException(status_code=500, detail=f"Could not read {filename}")
    return {"success": True, "data": record}


@router.get("/files")
async def list_files() -> dict:
    """Every file in the store directory (debugging aid)."""
    files = get_store().list_files()
    return {
        "files": files,
        "totalFiles": len(files),
        "jsonFiles": sum(1 for f in files if f["is_json"]),
    }
