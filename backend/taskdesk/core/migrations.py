from pathlib import Path
import logging
import os
import threading
import time
import traceback

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy.engine import Connection

from taskdesk.db import BuildAdminConnectionUrl

logger = logging.getLogger("app.migrations")

BACKEND_DIR = Path(__file__).resolve().parents[2]


def _read_int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("ignoring non-integer %s=%r", name, raw)
        return default


def _write_fallback_log(message: str) -> None:
    # Startup may fail before handlers are flushed; keep a line on disk.
    log_path = os.getenv("LOG_FILE_PATH", "/app/logs/backend.log").strip()
    if not log_path:
        return
    path = Path(log_path).resolve()
    path.parent.mkdir(parents=True, exist_ok=True)
    timestamp = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime())
    with path.open("a", encoding="utf-8") as handle:
        handle.write(f"{timestamp} ERROR app.migrations {message}\n")


def BuildAlembicConfig() -> Config:
    config_path = BACKEND_DIR / "alembic.ini"
    if not config_path.exists():
        raise RuntimeError("Missing alembic.ini for migrations")
    alembic_cfg = Config(str(config_path))
    # Config values go through ConfigParser interpolation
    alembic_cfg.set_main_option("sqlalchemy.url", BuildAdminConnectionUrl().replace("%", "%%"))
    alembic_cfg.set_main_option("script_location", str(BACKEND_DIR / "alembic"))
    return alembic_cfg


def HeadRevision() -> str | None:
    return ScriptDirectory.from_config(BuildAlembicConfig()).get_current_head()


def CurrentRevision(connection: Connection) -> str | None:
    return MigrationContext.configure(connection).get_current_revision()


def RunMigrations() -> None:
    """Upgrade the schema to head.

    The upgrade runs on a worker thread so a stuck lock is reported every
    MIGRATIONS_PROGRESS_LOG_SECONDS and aborted after MIGRATIONS_TIMEOUT_SECONDS.
    """
    alembic_cfg = BuildAlembicConfig()
    timeout_seconds = _read_int_env("MIGRATIONS_TIMEOUT_SECONDS", 600)
    progress_seconds = max(_read_int_env("MIGRATIONS_PROGRESS_LOG_SECONDS", 20), 1)
    logger.info("upgrading schema to head", extra={"timeout": timeout_seconds})

    failure: list[str] = []
    finished = threading.Event()

    def _upgrade() -> None:
        try:
            command.upgrade(alembic_cfg, "head")
        except Exception:  # noqa: BLE001
            failure.append(traceback.format_exc())
        finally:
            finished.set()

    worker = threading.Thread(target=_upgrade, name="alembic-upgrade", daemon=True)
    worker.start()
    started = time.monotonic()

    while not finished.wait(timeout=progress_seconds):
        elapsed = int(time.monotonic() - started)
        if timeout_seconds > 0 and elapsed >= timeout_seconds:
            logger.error("schema upgrade timed out after %ss", elapsed)
            _write_fallback_log(f"schema upgrade timed out after {elapsed}s")
            raise TimeoutError(f"schema upgrade timed out after {elapsed}s")
        logger.info("schema upgrade still running (%ss elapsed)", elapsed)

    if failure:
        logger.error("schema upgrade failed:\n%s", failure[0])
        _write_fallback_log("schema upgrade failed (see traceback in logs)")
        raise RuntimeError("schema upgrade failed")

    logger.info("schema at head")
