import os
from urllib.parse import quote_plus

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()
engine = None
SessionLocal = None

SQLSERVER_PARTS = ("SQLSERVER_HOST", "SQLSERVER_PORT", "SQLSERVER_DB", "SQLSERVER_DRIVER")
POOL_DEFAULTS = {
    "pool_size": ("SQLALCHEMY_POOL_SIZE", 10),
    "max_overflow": ("SQLALCHEMY_MAX_OVERFLOW", 20),
    "pool_timeout": ("SQLALCHEMY_POOL_TIMEOUT", 60),
}


def _read_int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer") from exc


def _first_env(*names: str) -> str:
    for name in names:
        value = os.getenv(name, "").strip()
        if value:
            return value
    return ""


def _sqlserver_url(login_env: str, password_env: str) -> str:
    names = (*SQLSERVER_PARTS, login_env, password_env)
    values = {name: os.getenv(name, "") for name in names}
    missing = [name for name in names if not values[name]]
    if missing:
        raise RuntimeError(f"Missing database configuration: {', '.join(missing)}")

    return (
        f"mssql+pyodbc://{values[login_env]}:{quote_plus(values[password_env])}"
        f"@{values['SQLSERVER_HOST']}:{values['SQLSERVER_PORT']}/{values['SQLSERVER_DB']}"
        f"?driver={quote_plus(values['SQLSERVER_DRIVER'])}&Encrypt=yes&TrustServerCertificate=yes"
    )


def BuildConnectionUrl() -> str:
    """Runtime URL: DATABASE_URL when set, otherwise the SQL Server app login."""
    return _first_env("DATABASE_URL") or _sqlserver_url("SQLSERVER_USER_LOGIN", "SQLSERVER_USER_PASSWORD")


def BuildAdminConnectionUrl() -> str:
    """URL used for schema upgrades."""
    return _first_env("DATABASE_ADMIN_URL", "DATABASE_URL") or _sqlserver_url(
        "SQLSERVER_ADMIN_LOGIN", "SQLSERVER_ADMIN_PASSWORD"
    )


def _ensure_engine():
    global engine, SessionLocal
    if engine is not None:
        return
    url = BuildConnectionUrl()
    options = {"pool_pre_ping": True}
    # sqlite uses a single-connection pool without sizing knobs
    if not url.startswith("sqlite"):
        for option, (name, default) in POOL_DEFAULTS.items():
            options[option] = _read_int_env(name, default)
    engine = create_engine(url, **options)
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


def GetEngine():
    _ensure_engine()
    return engine


def GetDb():
    _ensure_engine()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
