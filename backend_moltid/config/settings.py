"""
Application settings.

Typed view over the environment (see config.env) used by the API server,
the score refresh worker, and the tools.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from backend_moltid.config.env import (
    get_database_url,
    get_moltbook_api_url,
    get_moltbook_timeout_sec,
    get_score_refresh_interval_sec,
    load_moltid_env,
)


@dataclass(frozen=True)
class Settings:
    """Service configuration resolved from environment variables."""

    database_url: str
    moltbook_api_url: str
    moltbook_timeout_sec: float
    score_refresh_interval_sec: float
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "INFO"


def get_settings() -> Settings:
    """
    Return the current application settings.

    Read on every call so tests can monkeypatch the environment.
    """
    load_moltid_env()
    try:
        api_port = int((os.getenv("API_PORT") or "8000").strip() or "8000")
    except ValueError:
        api_port = 8000
    return Settings(
        database_url=get_database_url(),
        moltbook_api_url=get_moltbook_api_url(),
        moltbook_timeout_sec=get_moltbook_timeout_sec(),
        score_refresh_interval_sec=get_score_refresh_interval_sec(),
        api_host=(os.getenv("API_HOST") or "0.0.0.0").strip(),
        api_port=api_port,
        log_level=(os.getenv("LOG_LEVEL") or "INFO").strip().upper(),
    )
