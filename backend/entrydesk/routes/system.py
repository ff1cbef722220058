from __future__ import annotations
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from datetime import datetime, timezone
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
import structlog
from entrydesk.config import settings
from entrydesk.db import engine

router = APIRouter()
log = structlog.get_logger()

@router.get("/health")
async def health(request: Request):
    return {
        "status": "ok",
        "env": settings.environment,
        "time": datetime.now(timezone.utc).isoformat(),
        "deadline_timezone": settings.deadline_timezone,
        "request_id": request.headers.get("x-request-id") or request.state.request_id,
    }

@router.get("/ready")
async def ready():
    """Readiness: the database answers a trivial query."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("select 1"))
    except (SQLAlchemyError, OSError) as e:
        log.warning("readiness_failed", error=str(e))
        return JSONResponse(status_code=503, content={"status": "unavailable", "database": False})
    return {"status": "ok", "database": True}

@router.get("/version")
async def version():
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "git_sha": settings.git_sha,
    }
