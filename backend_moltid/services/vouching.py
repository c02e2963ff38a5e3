"""
Vouch orchestration.

Protocol for a vouch request (terminal outcomes only):
1. voucher missing or not Moltbook-verified -> UnauthorizedError
2. recipient missing -> AgentNotFoundError
3. from == to -> SelfVouchError
4. edge already exists -> DuplicateEdgeError
5. otherwise insert, recompute the recipient from the full incoming set
   (including the new edge) and persist, all in one transaction.

Errors are raised unchanged to the API layer; nothing is retried.
"""

from __future__ import annotations

from dataclasses import dataclass

from backend_moltid.core.exceptions import AgentNotFoundError, UnauthorizedError
from backend_moltid.database.agents import load_agent
from backend_moltid.database.engine import session_scope
from backend_moltid.database.vouches import add_vouch
from backend_moltid.moltid_logging import bind_vouch
from backend_moltid.services.scoring import rescore


@dataclass(frozen=True)
class VouchOutcome:
    vouch_added: bool
    new_trust_score: int

    def to_dict(self) -> dict[str, object]:
        return {"vouch_added": self.vouch_added, "new_trust_score": self.new_trust_score}


def vouch(from_agent_id: str, to_agent_id: str) -> VouchOutcome:
    log = bind_vouch(from_agent_id, to_agent_id)
    with session_scope() as session:
        voucher = load_agent(session, from_agent_id)
        if voucher is None or not voucher.moltbook_verified:
            log.info("vouch_rejected_unverified")
            raise UnauthorizedError()
        if load_agent(session, to_agent_id) is None:
            raise AgentNotFoundError()
        add_vouch(session, from_agent_id, to_agent_id)
        breakdown = rescore(session, to_agent_id)
        if breakdown is None:
            raise AgentNotFoundError()
    log.info(
        "vouch_added",
        score=breakdown.total,
        qualifying_vouches=breakdown.qualifying_vouches,
    )
    return VouchOutcome(vouch_added=True, new_trust_score=breakdown.total)
