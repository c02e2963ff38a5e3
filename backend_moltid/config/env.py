"""
Environment variable loading for MoltID.

- MOLTID_DB_URL / DATABASE_URL: SQLAlchemy URL (PostgreSQL in production)
- DATABASE_PATH: SQLite file used when no URL is set (default: moltid.db)
- MOLTBOOK_API_URL: Moltbook public API base (default: https://www.moltbook.com/api/v1)
- MOLTBOOK_TIMEOUT_SEC: profile lookup timeout; Moltbook can be slow (default: 300)
- SCORE_REFRESH_INTERVAL_SEC: background rescoring interval, 0 disables (default: 3600)
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

_CONFIG_DIR = Path(__file__).resolve().parent
_BACKEND_DIR = _CONFIG_DIR.parent
_ROOT = _BACKEND_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEFAULT_SQLITE_PATH = "moltid.db"
DEFAULT_MOLTBOOK_API_URL = "https://www.moltbook.com/api/v1"
DEFAULT_MOLTBOOK_TIMEOUT_SEC = 300.0
DEFAULT_SCORE_REFRESH_INTERVAL_SEC = 3600.0


def load_moltid_env() -> None:
    """Load .env from project root. Safe to call multiple times; existing env wins."""
    from dotenv import load_dotenv

    load_dotenv(_ENV_PATH, override=False)


def _float_env(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def get_database_url() -> str:
    """Return MOLTID_DB_URL or DATABASE_URL if set; else SQLite from DATABASE_PATH or default."""
    load_moltid_env()
    url = (os.getenv("MOLTID_DB_URL") or os.getenv("DATABASE_URL") or "").strip()
    if url:
        return url
    path = (os.getenv("DATABASE_PATH") or "").strip() or DEFAULT_SQLITE_PATH
    return f"sqlite:///{path}"


def get_moltbook_api_url() -> str:
    load_moltid_env()
    url = (os.getenv("MOLTBOOK_API_URL") or "").strip() or DEFAULT_MOLTBOOK_API_URL
    return url.rstrip("/")


def get_moltbook_timeout_sec() -> float:
    load_moltid_env()
    return _float_env("MOLTBOOK_TIMEOUT_SEC", DEFAULT_MOLTBOOK_TIMEOUT_SEC)


def get_score_refresh_interval_sec() -> float:
    """Seconds between background rescoring passes. 0 or negative disables the loop."""
    load_moltid_env()
    return _float_env("SCORE_REFRESH_INTERVAL_SEC", DEFAULT_SCORE_REFRESH_INTERVAL_SEC)


def mask_database_url(url: str) -> str:
    """Strip credentials and query string from a DB URL for logging."""
    return url.split("?")[0].split("@")[-1].split("//")[-1]
