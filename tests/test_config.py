"""
Pytest tests for environment-driven configuration.
"""

from __future__ import annotations

from backend_moltid.config import get_settings
from backend_moltid.config.env import get_database_url, mask_database_url


def test_database_url_precedence(monkeypatch, tmp_path):
    monkeypatch.delenv("MOLTID_DB_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "x.db"))
    assert get_database_url() == f"sqlite:///{tmp_path / 'x.db'}"

    monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@db:5432/moltid")
    assert get_database_url() == "postgresql://u:p@db:5432/moltid"

    monkeypatch.setenv("MOLTID_DB_URL", "postgresql://u:p@primary:5432/moltid")
    assert get_database_url() == "postgresql://u:p@primary:5432/moltid"


def test_mask_database_url_strips_credentials():
    assert mask_database_url("postgresql://user:secret@db:5432/moltid?sslmode=require") == "db:5432/moltid"


def test_settings_defaults_and_overrides(monkeypatch):
    for name in ("MOLTBOOK_API_URL", "MOLTBOOK_TIMEOUT_SEC", "SCORE_REFRESH_INTERVAL_SEC", "API_PORT"):
        monkeypatch.delenv(name, raising=False)
    s = get_settings()
    assert s.moltbook_api_url == "https://www.moltbook.com/api/v1"
    assert s.moltbook_timeout_sec == 300.0
    assert s.score_refresh_interval_sec == 3600.0
    assert s.api_port == 8000

    monkeypatch.setenv("SCORE_REFRESH_INTERVAL_SEC", "0")
    monkeypatch.setenv("MOLTBOOK_TIMEOUT_SEC", "not-a-number")
    monkeypatch.setenv("API_PORT", "9001")
    s = get_settings()
    assert s.score_refresh_interval_sec == 0.0
    assert s.moltbook_timeout_sec == 300.0
    assert s.api_port == 9001
