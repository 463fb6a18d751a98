"""
Configuration settings for the Biodata API
"""

import os
import logging
from urllib.parse import quote

logger = logging.getLogger(__name__)

STORAGE_BACKENDS = ("orm", "sql")


def build_database_url(host: str, port: int, name: str, user: str, password: str = "") -> str:
    """Build a postgresql:// DSN from its parts"""
    credentials = quote(user, safe="")
    if password:
        credentials += f":{quote(password, safe='')}"
    return f"postgresql://{credentials}@{host}:{port}/{name}"


def to_async_driver_url(url: str) -> str:
    """Rewrite a plain postgres DSN so SQLAlchemy uses the asyncpg dialect"""
    for prefix in ("postgresql+asyncpg://", "postgresql://", "postgres://"):
        if url.startswith(prefix):
            return "postgresql+asyncpg://" + url[len(prefix):]
    raise ValueError(f"Unsupported database URL scheme: {url.split('://')[0]}")


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# Database configuration
DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = int(os.getenv("DB_PORT", 5432))
DB_NAME = os.getenv("DB_NAME", "mahasiswa")
DB_USER = os.getenv("DB_USER", "postgres")
DB_PASS = os.getenv("DB_PASS", "")
DATABASE_URL = os.getenv("DATABASE_URL") or build_database_url(DB_HOST, DB_PORT, DB_NAME, DB_USER, DB_PASS)

DB_POOL_MIN_SIZE = int(os.getenv("DB_POOL_MIN_SIZE", 1))
DB_POOL_MAX_SIZE = int(os.getenv("DB_POOL_MAX_SIZE", 10))
DB_COMMAND_TIMEOUT = float(os.getenv("DB_COMMAND_TIMEOUT", 60))
DB_LOGGING = _env_flag("DB_LOGGING")  # echo SQL statements to the log

# Storage variant: "orm" (SQLAlchemy) or "sql" (raw asyncpg)
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "orm").strip().lower()

# Server configuration
PORT = int(os.getenv("PORT", 3000))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# CORS settings
ALLOWED_ORIGINS = [origin.strip() for origin in os.getenv("ALLOWED_ORIGINS", "*").split(",") if origin.strip()]

if STORAGE_BACKEND not in STORAGE_BACKENDS:
    raise ValueError(f"STORAGE_BACKEND must be one of {STORAGE_BACKENDS}, got '{STORAGE_BACKEND}'")

logger.info(f"Storage backend: {STORAGE_BACKEND}, database: {DB_HOST}:{DB_PORT}/{DB_NAME}")
