"""
Moltbook verification orchestration.

Looks up the agent's Moltbook profile once. On success marks the agent verified,
imports karma, activates a pending agent, and recomputes its score. Because
vouches qualify by the voucher's current verification state, every agent this
agent has already vouched for is rescored in the same transaction.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from backend_moltid.core.exceptions import (
    AgentNotFoundError,
    NoExternalAccountError,
    VerificationFailedError,
)
from backend_moltid.database.agents import get_agent, load_agent
from backend_moltid.database.engine import session_scope
from backend_moltid.database.models import STATUS_ACTIVE, STATUS_PENDING, Agent
from backend_moltid.database.tables import utcnow
from backend_moltid.database.vouches import vouchees_of
from backend_moltid.integrations.moltbook import VerificationProvider
from backend_moltid.moltid_logging import bind_agent
from backend_moltid.services.scoring import rescore


@dataclass(frozen=True)
class VerificationOutcome:
    verified: bool
    karma_imported: int | None
    trust_score: int
    agent: Agent
    rescored_vouchees: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "verified": self.verified,
            "karma_imported": self.karma_imported,
            "trust_score": self.trust_score,
            "agent": self.agent.to_public(),
        }


def verify_agent(agent_id: str, provider: VerificationProvider) -> VerificationOutcome:
    log = bind_agent(agent_id)
    agent = get_agent(agent_id)
    if agent is None:
        raise AgentNotFoundError()
    if not agent.moltbook_username:
        raise NoExternalAccountError()

    code = agent.verification_code or ""
    result = provider.lookup(agent.moltbook_username, code)
    if not result.verified:
        log.info("verification_failed", moltbook_username=agent.moltbook_username)
        raise VerificationFailedError(
            f'Verification code not found. Add "{code}" to your Moltbook bio or post.'
        )

    with session_scope() as session:
        row = load_agent(session, agent_id, for_update=True)
        if row is None:
            raise AgentNotFoundError()
        row.moltbook_verified = True
        row.moltbook_karma = result.karma
        if row.status == STATUS_PENDING:
            row.status = STATUS_ACTIVE
        row.updated_at = utcnow()
        session.flush()
        breakdown = rescore(session, agent_id)
        vouchees = vouchees_of(session, agent_id)
        # Vouchee rows are locked in id order
        for vouchee_id in sorted(vouchees):
            rescore(session, vouchee_id)
        updated = row.to_model()

    log.info(
        "verification_succeeded",
        karma=result.karma,
        score=breakdown.total,
        rescored_vouchees=len(vouchees),
    )
    return VerificationOutcome(
        verified=True,
        karma_imported=result.karma,
        trust_score=breakdown.total,
        agent=updated,
        rescored_vouchees=len(vouchees),
    )
