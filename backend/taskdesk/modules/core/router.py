import logging
import time

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from taskdesk.core.logging import format_frontend_message
from taskdesk.core.migrations import CurrentRevision, HeadRevision
from taskdesk.db import GetEngine

router = APIRouter(prefix="/api", tags=["health"])
logger = logging.getLogger("core.health")
frontend_logger = logging.getLogger("frontend")

FRONTEND_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


@router.get("/health")
async def api_health() -> dict:
    return {"status": "ok"}


@router.get("/health/db")
def api_health_db() -> dict:
    """Round-trip the database and report whether the schema is at head."""
    try:
        with GetEngine().connect() as connection:
            connection.execute(text("SELECT 1")).scalar()
            revision = CurrentRevision(connection)
    except (SQLAlchemyError, RuntimeError):
        logger.exception("db check failed")
        return {"status": "error", "detail": "database unavailable"}

    try:
        head = HeadRevision()
    except RuntimeError:
        logger.warning("schema head unknown: alembic config missing")
        head = None
    return {"status": "ok", "revision": revision, "upToDate": head is not None and revision == head}


class FrontendLogPayload(BaseModel):
    level: str = Field(default="info", max_length=16)
    message: str = Field(..., max_length=2000)
    context: dict | None = None


@router.post("/logs")
async def api_logs(payload: FrontendLogPayload, request: Request) -> dict:
    metadata = {
        "ip": request.client.host if request.client else "unknown",
        "ua": request.headers.get("user-agent", "unknown"),
    }
    message = format_frontend_message(payload.message, {**metadata, **(payload.context or {})})
    frontend_logger.log(FRONTEND_LEVELS.get(payload.level.lower(), logging.INFO), message)
    return {"status": "ok", "timestamp": time.time()}
