"""Health check endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter, Request

from shared.config.settings import get_settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request) -> dict:
    """Basic health check, reporting the port this request was served on."""
    server = request.scope.get("server")
    port = server[1] if server and server[1] else get_settings().api_port
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "port": port,
    }
