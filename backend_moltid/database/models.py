"""
Domain models for database entities.

Agent snapshots and vouch edges handed to the trust engine and the API.
No ORM coupling so the scorer stays a pure function over plain data.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

STATUS_PENDING = "pending"
STATUS_ACTIVE = "active"
STATUS_SUSPENDED = "suspended"
AGENT_STATUSES = (STATUS_PENDING, STATUS_ACTIVE, STATUS_SUSPENDED)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


@dataclass
class Agent:
    """Stored agent identity and reputation snapshot."""

    id: str
    moltbook_username: str | None = None
    moltbook_verified: bool = False
    moltbook_karma: int | None = None
    """Karma imported from Moltbook at verification time; null until verified."""
    public_key: str | None = None
    capabilities: list[str] = field(default_factory=list)
    trust_score: int = 0
    """Last computed composite score (0-100)."""
    vouch_count: int = 0
    """Denormalized count of incoming vouch edges, qualifying or not."""
    status: str = STATUS_PENDING
    verification_code: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_public(self) -> dict[str, Any]:
        """Public representation (no verification code, no key material)."""
        return {
            "id": self.id,
            "moltbook_username": self.moltbook_username,
            "moltbook_verified": self.moltbook_verified,
            "capabilities": list(self.capabilities),
            "trust_score": self.trust_score,
            "vouch_count": self.vouch_count,
            "status": self.status,
            "created_at": _iso(self.created_at),
        }

    def to_dict(self) -> dict[str, Any]:
        """Owner representation returned at registration."""
        data = self.to_public()
        data.update(
            {
                "moltbook_karma": self.moltbook_karma,
                "public_key": self.public_key,
                "verification_code": self.verification_code,
                "updated_at": _iso(self.updated_at),
            }
        )
        return data


@dataclass(frozen=True)
class VouchEdge:
    """Directed, immutable endorsement from one agent to another."""

    id: str
    from_agent_id: str
    to_agent_id: str
    created_at: datetime | None = None


@dataclass(frozen=True)
class IncomingVouch:
    """Incoming edge annotated with the voucher's current verification state."""

    from_agent_id: str
    created_at: datetime | None
    voucher_is_verified: bool
