"""
Score recomputation and persistence.

rescore() is the single place where a trust score is computed from stored data
and written back. It locks the agent row before reading incoming vouches so two
concurrent recomputes for the same agent cannot interleave and write a stale score.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from backend_moltid.analytics.trust_engine import TrustBreakdown, compute_score
from backend_moltid.database.agents import list_agent_ids, load_agent, save_score
from backend_moltid.database.engine import session_scope
from backend_moltid.database.vouches import incoming_vouches
from backend_moltid.moltid_logging import get_logger

logger = get_logger(__name__)


def rescore(session: Session, agent_id: str, now: datetime | None = None) -> TrustBreakdown | None:
    """Recompute and persist one agent's score inside the caller's transaction."""
    row = load_agent(session, agent_id, for_update=True)
    if row is None:
        return None
    breakdown = compute_score(row.to_model(), incoming_vouches(session, agent_id), now=now)
    if breakdown.total != row.trust_score:
        logger.info("trust_score_changed", agent_id=agent_id, old=row.trust_score, new=breakdown.total)
    save_score(session, agent_id, breakdown.total)
    return breakdown


def trust_details(agent_id: str, now: datetime | None = None) -> dict[str, Any] | None:
    """
    Live trust breakdown for an agent (read-only). The factors always sum to score.
    Returns None if the agent does not exist.
    """
    with session_scope() as session:
        row = load_agent(session, agent_id)
        if row is None:
            return None
        agent = row.to_model()
        breakdown = compute_score(agent, incoming_vouches(session, agent_id), now=now)
    return {
        "score": breakdown.total,
        "factors": breakdown.factors(),
        "moltbook_verified": agent.moltbook_verified,
        "moltbook_karma": agent.moltbook_karma,
        "vouch_count": agent.vouch_count,
        "qualifying_vouches": breakdown.qualifying_vouches,
        "age_days": breakdown.age_days,
    }


def rescore_all(now: datetime | None = None) -> int:
    """
    Recompute every agent's score, one transaction per agent. Returns the number
    of agents rescored. Keeps the age factor current.
    """
    rescored = 0
    for agent_id in list_agent_ids():
        try:
            with session_scope() as session:
                if rescore(session, agent_id, now=now) is not None:
                    rescored += 1
        except Exception as e:
            logger.exception("rescore_agent_failed", agent_id=agent_id, error=str(e))
    logger.info("rescore_all_done", rescored=rescored)
    return rescored
