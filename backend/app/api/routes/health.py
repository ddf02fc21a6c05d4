from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.api.deps import get_sync_server
from app.services.sync_server import SyncServer

router = APIRouter()


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/health/live")
def health_live() -> dict:
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/health/ready")
def health_ready(server: SyncServer = Depends(get_sync_server)) -> JSONResponse:
    repository = server.repository
    last_saved = repository.last_saved_at.isoformat() if repository.last_saved_at else None
    state_dir_ok = repository.path.parent.exists()

    payload = {
        "status": "ok" if state_dir_ok else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "persistence": {
            "path": str(repository.path),
            "directory_exists": state_dir_ok,
            "last_saved_at": last_saved,
            "pending_changes": server.dirty,
        },
        "sync": {
            "connected_clients": server.hub.connection_count,
        },
    }
    return JSONResponse(status_code=200 if state_dir_ok else 503, content=payload)
