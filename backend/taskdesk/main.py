import logging
import os
import time
import uuid

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from taskdesk.core.logging import setup_logging
from taskdesk.core.migrations import RunMigrations
from taskdesk.modules.admin.router import router as admin_router
from taskdesk.modules.auth.router import router as auth_router
from taskdesk.modules.categories.router import router as categories_router
from taskdesk.modules.core.router import router as core_router
from taskdesk.modules.events.router import router as events_router
from taskdesk.modules.lists.router import router as lists_router
from taskdesk.modules.notes.routes.notes import router as notes_router
from taskdesk.modules.profile.router import router as profile_router
from taskdesk.modules.reminders.router import router as reminders_router
from taskdesk.modules.tasks.router import router as tasks_router

setup_logging()

app = FastAPI(title="Taskdesk API")
logger = logging.getLogger("app.request")
startup_logger = logging.getLogger("app.startup")

SECURITY_HEADERS = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
}

allowed_origins = os.getenv("ALLOWED_ORIGINS", "")
origin_list = [origin.strip() for origin in allowed_origins.split(",") if origin.strip()]
if origin_list:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origin_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With", "X-Request-Id"],
    )


@app.on_event("startup")
def run_startup_migrations() -> None:
    if os.getenv("RUN_MIGRATIONS_ON_STARTUP", "").strip().lower() in {"1", "true", "yes", "on"}:
        RunMigrations()
    startup_logger.info("startup complete")


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("storage error | %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Storage unavailable"},
    )


@app.middleware("http")
async def request_logger(request: Request, call_next):
    request_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = int((time.perf_counter() - start) * 1000)

    parts = [f"{request.method} {request.url.path}"]
    if request.url.query:
        parts.append(f"query={request.url.query}")

    status_code = response.status_code
    if status_code >= 400:
        if status_code == 404:
            parts.append("ERROR: not found")
        elif status_code >= 500:
            parts.append("ERROR: server error")
        else:
            parts.append("ERROR: client error")

    parts.append(f"status={status_code}")
    parts.append(f"{duration_ms}ms")

    log_msg = " | ".join(parts)
    if status_code >= 500:
        logger.error(log_msg)
    elif status_code >= 400:
        logger.warning(log_msg)
    else:
        logger.info(log_msg)

    response.headers["X-Request-Id"] = request_id
    for header, value in SECURITY_HEADERS.items():
        response.headers.setdefault(header, value)
    return response


app.include_router(core_router)
app.include_router(auth_router)
app.include_router(profile_router)
app.include_router(lists_router)
app.include_router(categories_router)
app.include_router(tasks_router)
app.include_router(notes_router)
app.include_router(reminders_router)
app.include_router(events_router)
app.include_router(admin_router)
