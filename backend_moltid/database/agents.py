"""
Identity store: agent registration, lookup, search, and score persistence.

Functions without a session argument open their own unit of work. The
session-level helpers (load_agent, save_score) are used by the services that
need several reads and writes inside one transaction.
"""

from __future__ import annotations

import hashlib
import json
import secrets
import string
from typing import Any, Iterable

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend_moltid.core.exceptions import UsernameTakenError
from backend_moltid.core.validation import validate_capabilities
from backend_moltid.database.engine import session_scope
from backend_moltid.database.models import STATUS_ACTIVE, Agent
from backend_moltid.database.tables import AgentRow, utcnow
from backend_moltid.moltid_logging import get_logger

logger = get_logger(__name__)

AGENT_ID_PREFIX = "mlt_"
API_KEY_PREFIX = "moltid_key_"
VERIFICATION_CODE_PREFIX = "moltid-verify:"
ID_LENGTH = 12
API_KEY_LENGTH = 32
SEARCH_MAX_LIMIT = 100

_ID_ALPHABET = string.ascii_letters + string.digits + "_-"
_KEY_ALPHABET = string.ascii_letters + string.digits


def random_id(prefix: str, length: int = ID_LENGTH) -> str:
    return prefix + "".join(secrets.choice(_ID_ALPHABET) for _ in range(length))


def generate_api_key() -> str:
    return API_KEY_PREFIX + "".join(secrets.choice(_KEY_ALPHABET) for _ in range(API_KEY_LENGTH))


def hash_api_key(api_key: str) -> str:
    """SHA-256 hex digest; only the digest is stored."""
    return hashlib.sha256(api_key.encode("utf-8")).hexdigest()


def verification_code_for(agent_id: str) -> str:
    return f"{VERIFICATION_CODE_PREFIX}{agent_id}"


# -----------------------------------------------------------------------------
# Session-level helpers
# -----------------------------------------------------------------------------


def load_agent(session: Session, agent_id: str, *, for_update: bool = False) -> AgentRow | None:
    """Fetch the agent row, optionally locking it (SELECT ... FOR UPDATE) for the transaction."""
    if not agent_id:
        return None
    return session.get(
        AgentRow,
        agent_id,
        with_for_update=True if for_update else None,
        populate_existing=for_update,
    )


def save_score(session: Session, agent_id: str, total: int) -> None:
    """Persist a computed trust score on the agent row."""
    row = session.get(AgentRow, agent_id)
    if row is None:
        return
    row.trust_score = int(total)
    row.updated_at = utcnow()
    session.flush()


# -----------------------------------------------------------------------------
# Public store API
# -----------------------------------------------------------------------------


def create_agent(
    moltbook_username: str | None = None,
    public_key: str | None = None,
    capabilities: Iterable[str] | None = None,
) -> tuple[Agent, str]:
    """
    Register a new agent. Returns (agent, api_key); the key is not recoverable later.
    Raises UsernameTakenError if the Moltbook username is already registered.
    """
    caps = validate_capabilities(capabilities)
    username = (moltbook_username or "").strip() or None
    agent_id = random_id(AGENT_ID_PREFIX)
    api_key = generate_api_key()
    now = utcnow()
    try:
        with session_scope() as session:
            row = AgentRow(
                id=agent_id,
                moltbook_username=username,
                moltbook_verified=False,
                public_key=public_key,
                capabilities=json.dumps(caps),
                trust_score=0,
                vouch_count=0,
                verification_code=verification_code_for(agent_id),
                api_key_hash=hash_api_key(api_key),
                created_at=now,
                updated_at=now,
            )
            session.add(row)
            session.flush()
            agent = row.to_model()
    except IntegrityError as e:
        logger.info("agent_username_taken", moltbook_username=username)
        raise UsernameTakenError() from e
    logger.info("agent_registered", agent_id=agent_id, moltbook_username=username)
    return agent, api_key


def get_agent(agent_id: str) -> Agent | None:
    with session_scope() as session:
        row = load_agent(session, agent_id)
        return row.to_model() if row else None


def get_agent_by_username(username: str) -> Agent | None:
    username = (username or "").strip()
    if not username:
        return None
    with session_scope() as session:
        row = session.execute(
            select(AgentRow).where(AgentRow.moltbook_username == username)
        ).scalar_one_or_none()
        return row.to_model() if row else None


def get_agent_by_api_key(api_key: str) -> Agent | None:
    if not api_key:
        return None
    with session_scope() as session:
        row = session.execute(
            select(AgentRow).where(AgentRow.api_key_hash == hash_api_key(api_key))
        ).scalar_one_or_none()
        return row.to_model() if row else None


def search_agents(
    verified: bool | None = None,
    min_trust: int | None = None,
    capability: str | None = None,
    limit: int = 20,
    offset: int = 0,
) -> list[Agent]:
    """
    Active agents only, highest trust first. capability matches one exact token
    inside the stored JSON array.
    """
    limit = max(0, min(int(limit), SEARCH_MAX_LIMIT))
    offset = max(0, int(offset))
    stmt = select(AgentRow).where(AgentRow.status == STATUS_ACTIVE)
    if verified is not None:
        stmt = stmt.where(AgentRow.moltbook_verified.is_(verified))
    if min_trust is not None:
        stmt = stmt.where(AgentRow.trust_score >= min_trust)
    if capability:
        token = capability.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        stmt = stmt.where(AgentRow.capabilities.like(f'%"{token}"%', escape="\\"))
    stmt = stmt.order_by(AgentRow.trust_score.desc(), AgentRow.created_at).limit(limit).offset(offset)
    with session_scope() as session:
        rows = session.execute(stmt).scalars().all()
        return [r.to_model() for r in rows]


def update_agent(agent_id: str, **updates: Any) -> Agent | None:
    """
    Update owner-editable fields (capabilities, public_key). Returns the updated
    agent or None if it does not exist. Unknown fields are ignored.
    """
    with session_scope() as session:
        row = load_agent(session, agent_id, for_update=True)
        if row is None:
            return None
        changed = False
        if updates.get("capabilities") is not None:
            row.capabilities = json.dumps(validate_capabilities(updates["capabilities"]))
            changed = True
        if "public_key" in updates and updates["public_key"] is not None:
            row.public_key = updates["public_key"]
            changed = True
        if changed:
            row.updated_at = utcnow()
            session.flush()
            logger.info("agent_updated", agent_id=agent_id, fields=sorted(k for k, v in updates.items() if v is not None))
        return row.to_model()


def list_agent_ids() -> list[str]:
    with session_scope() as session:
        return list(session.execute(select(AgentRow.id).order_by(AgentRow.created_at)).scalars())
