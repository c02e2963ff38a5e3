"""
Database layer: agents (identity store) and vouches (vouch graph store).

SQLAlchemy over SQLite by default; PostgreSQL via MOLTID_DB_URL / DATABASE_URL.
"""

from backend_moltid.database.engine import init_db, ping, reset_engine_for_test, session_scope
from backend_moltid.database.models import Agent, IncomingVouch, VouchEdge

__all__ = [
    "Agent",
    "IncomingVouch",
    "VouchEdge",
    "init_db",
    "ping",
    "reset_engine_for_test",
    "session_scope",
]
