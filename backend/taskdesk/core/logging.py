import json
import logging
import os
import time
from logging.handlers import RotatingFileHandler

DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class LocalTimeFormatter(logging.Formatter):
    converter = time.localtime


def _read_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _file_handler(path: str, level: str, formatter: logging.Formatter) -> RotatingFileHandler:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    handler = RotatingFileHandler(
        path,
        maxBytes=_read_int("LOG_MAX_BYTES", 5_000_000),
        backupCount=_read_int("LOG_BACKUP_COUNT", 5),
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging() -> None:
    """Configure root and frontend loggers.

    An empty LOG_FILE_PATH or FRONTEND_LOG_FILE_PATH keeps that stream on the
    console only.
    """
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    log_file_path = os.getenv("LOG_FILE_PATH", "/app/logs/backend.log").strip()
    frontend_log_file_path = os.getenv("FRONTEND_LOG_FILE_PATH", "/app/logs/frontend.log").strip()

    formatter = LocalTimeFormatter(DEFAULT_FORMAT, datefmt=DEFAULT_DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)
    if log_file_path:
        root_logger.addHandler(_file_handler(log_file_path, log_level, formatter))

    frontend_logger = logging.getLogger("frontend")
    frontend_logger.handlers.clear()
    frontend_logger.propagate = False
    frontend_logger.setLevel(log_level)
    frontend_logger.addHandler(console_handler)
    if frontend_log_file_path:
        frontend_logger.addHandler(_file_handler(frontend_log_file_path, log_level, formatter))

    logging.getLogger("uvicorn.access").handlers.clear()


def format_frontend_message(message: str, context: dict | None = None) -> str:
    if not context:
        return message
    payload = {"message": message, "context": context}
    return json.dumps(payload, separators=(",", ":"), default=str)
