"""
SQLAlchemy models for agents and vouches.

The vouches table carries the uniqueness constraint on (from_agent_id, to_agent_id)
and a self-loop check, so duplicate inserts fail at the storage layer even under
concurrent requests.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base

from backend_moltid.database.models import (
    AGENT_STATUSES,
    STATUS_PENDING,
    Agent,
    VouchEdge,
)

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime | None) -> datetime | None:
    """SQLite drops tzinfo on the way back; stored values are always UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class AgentRow(Base):
    """One row per registered agent."""

    __tablename__ = "agents"
    __table_args__ = (
        CheckConstraint(
            "status IN ({})".format(", ".join(f"'{s}'" for s in AGENT_STATUSES)),
            name="ck_agents_status",
        ),
    )

    id = Column(String(32), primary_key=True)
    moltbook_username = Column(String(64), unique=True, nullable=True, index=True)
    moltbook_verified = Column(Boolean, nullable=False, default=False)
    moltbook_karma = Column(Integer, nullable=True)
    public_key = Column(Text, nullable=True)
    capabilities = Column(Text, nullable=False, default="[]")  # JSON array of capability strings
    trust_score = Column(Integer, nullable=False, default=0, index=True)
    vouch_count = Column(Integer, nullable=False, default=0)
    status = Column(String(16), nullable=False, default=STATUS_PENDING, index=True)
    verification_code = Column(String(64), nullable=True)
    api_key_hash = Column(String(64), nullable=True, unique=True, index=True)  # SHA-256 hex
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def capability_list(self) -> list[str]:
        try:
            caps = json.loads(self.capabilities or "[]")
        except (TypeError, ValueError):
            return []
        return [c for c in caps if isinstance(c, str)] if isinstance(caps, list) else []

    def to_model(self) -> Agent:
        return Agent(
            id=self.id,
            moltbook_username=self.moltbook_username,
            moltbook_verified=bool(self.moltbook_verified),
            moltbook_karma=self.moltbook_karma,
            public_key=self.public_key,
            capabilities=self.capability_list(),
            trust_score=self.trust_score or 0,
            vouch_count=self.vouch_count or 0,
            status=self.status,
            verification_code=self.verification_code,
            created_at=ensure_utc(self.created_at),
            updated_at=ensure_utc(self.updated_at),
        )


class VouchRow(Base):
    """
    Vouch edge voucher -> recipient. Append-only; the core never updates or deletes.
    """

    __tablename__ = "vouches"
    __table_args__ = (
        UniqueConstraint("from_agent_id", "to_agent_id", name="uq_vouches_from_to"),
        CheckConstraint("from_agent_id <> to_agent_id", name="ck_vouches_no_self"),
    )

    id = Column(String(32), primary_key=True)
    from_agent_id = Column(String(32), ForeignKey("agents.id"), nullable=False, index=True)
    to_agent_id = Column(String(32), ForeignKey("agents.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def to_model(self) -> VouchEdge:
        return VouchEdge(
            id=self.id,
            from_agent_id=self.from_agent_id,
            to_agent_id=self.to_agent_id,
            created_at=ensure_utc(self.created_at),
        )
