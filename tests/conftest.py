"""
Pytest fixtures for MoltID tests. Uses a temporary SQLite DB per test.
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from backend_moltid.integrations.moltbook import VerificationResult


class FakeProvider:
    """Verification provider double: usernames in `accounts` verify with the given karma."""

    def __init__(self) -> None:
        self.accounts: dict[str, int] = {}
        self.calls: list[tuple[str, str]] = []

    def lookup(self, username: str, verification_code: str) -> VerificationResult:
        self.calls.append((username, verification_code))
        if username in self.accounts:
            return VerificationResult(verified=True, karma=self.accounts[username])
        return VerificationResult(verified=False)


@pytest.fixture
def moltid_db(tmp_path, monkeypatch):
    """
    Point the store at a temporary SQLite DB and init tables.
    Resets engine cache so each test gets a fresh DB. Unset DB URLs so we use SQLite.
    """
    monkeypatch.delenv("MOLTID_DB_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "moltid.db"))
    monkeypatch.setenv("SCORE_REFRESH_INTERVAL_SEC", "0")

    from backend_moltid.database import engine

    engine.reset_engine_for_test()
    engine.init_db()
    yield engine
    engine.reset_engine_for_test()


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def client(moltid_db, provider):
    """FastAPI TestClient. Depends on moltid_db so temp DB is set before app runs."""
    from fastapi.testclient import TestClient

    from backend_moltid.api_server.agents import get_verification_provider
    from backend_moltid.api_server.server import app

    app.dependency_overrides[get_verification_provider] = lambda: provider
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_agent(moltid_db):
    """
    Create an agent directly in the store.

    make_agent("alice", verified=True, karma=1500, age_days=10) returns the Agent;
    verified agents are marked active without going through Moltbook.
    """
    from backend_moltid.database.agents import create_agent, load_agent
    from backend_moltid.database.models import STATUS_ACTIVE
    from backend_moltid.database.tables import utcnow

    def _make(username=None, verified=False, karma=None, age_days=0, capabilities=None):
        agent, _ = create_agent(moltbook_username=username, capabilities=capabilities)
        with moltid_db.session_scope() as session:
            row = load_agent(session, agent.id)
            row.moltbook_verified = verified
            row.moltbook_karma = karma
            if verified:
                row.status = STATUS_ACTIVE
            row.created_at = utcnow() - timedelta(days=age_days, minutes=1 if age_days else 0)
            session.flush()
            return row.to_model()

    return _make
