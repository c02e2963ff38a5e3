"""
Vouch graph store: directed vouch edges and the per-agent incoming counter.

Edge uniqueness is enforced by the uq_vouches_from_to constraint, not by a
check-then-insert, so of two concurrent inserts for the same pair exactly one
succeeds. The recipient's vouch_count is incremented in the same transaction
as the insert, and only after the insert is confirmed.
"""

from __future__ import annotations

from typing import Callable

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend_moltid.core.exceptions import DuplicateEdgeError, SelfVouchError
from backend_moltid.database.agents import random_id
from backend_moltid.database.models import IncomingVouch, VouchEdge
from backend_moltid.database.tables import AgentRow, VouchRow, utcnow
from backend_moltid.moltid_logging import get_logger

logger = get_logger(__name__)

VOUCH_ID_PREFIX = "vch_"


def add_vouch(session: Session, from_agent_id: str, to_agent_id: str) -> VouchEdge:
    """
    Insert edge from -> to and bump the recipient's vouch_count by exactly 1.

    Raises SelfVouchError if from == to, DuplicateEdgeError if the edge exists.
    On DuplicateEdgeError the session must be rolled back (session_scope does this),
    which leaves the edge set and counter untouched.
    """
    if from_agent_id == to_agent_id:
        raise SelfVouchError()
    now = utcnow()
    row = VouchRow(
        id=random_id(VOUCH_ID_PREFIX),
        from_agent_id=from_agent_id,
        to_agent_id=to_agent_id,
        created_at=now,
    )
    session.add(row)
    try:
        session.flush()
    except IntegrityError as e:
        logger.info("vouch_duplicate_rejected", voucher_id=from_agent_id, agent_id=to_agent_id)
        raise DuplicateEdgeError() from e

    session.execute(
        update(AgentRow)
        .where(AgentRow.id == to_agent_id)
        .values(vouch_count=AgentRow.vouch_count + 1, updated_at=now)
        .execution_options(synchronize_session="fetch")
    )
    logger.debug("vouch_edge_inserted", voucher_id=from_agent_id, agent_id=to_agent_id, vouch_id=row.id)
    return row.to_model()


def incoming_vouches(session: Session, to_agent_id: str) -> list[IncomingVouch]:
    """
    All edges into to_agent_id, each annotated with the voucher's current
    verification flag (looked up live, not as of vouch time).
    """
    stmt = (
        select(VouchRow.from_agent_id, VouchRow.created_at, AgentRow.moltbook_verified)
        .select_from(VouchRow)
        .outerjoin(AgentRow, AgentRow.id == VouchRow.from_agent_id)
        .where(VouchRow.to_agent_id == to_agent_id)
        .order_by(VouchRow.created_at, VouchRow.id)
    )
    return [
        IncomingVouch(
            from_agent_id=from_id,
            created_at=created_at,
            voucher_is_verified=bool(verified),
        )
        for from_id, created_at, verified in session.execute(stmt)
    ]


def qualifying_vouch_count(
    session: Session,
    to_agent_id: str,
    is_voucher_verified: Callable[[str], bool] | None = None,
) -> int:
    """
    Count incoming edges whose voucher is verified at query time.

    is_voucher_verified overrides the stored flag with a caller-supplied lookup.
    """
    vouches = incoming_vouches(session, to_agent_id)
    if is_voucher_verified is None:
        return sum(1 for v in vouches if v.voucher_is_verified)
    return sum(1 for v in vouches if is_voucher_verified(v.from_agent_id))


def count_incoming(session: Session, to_agent_id: str) -> int:
    """Raw number of edges into to_agent_id; the source of truth for vouch_count."""
    stmt = select(func.count()).select_from(VouchRow).where(VouchRow.to_agent_id == to_agent_id)
    return int(session.execute(stmt).scalar_one())


def vouchers_of(session: Session, to_agent_id: str) -> list[str]:
    stmt = select(VouchRow.from_agent_id).where(VouchRow.to_agent_id == to_agent_id).order_by(VouchRow.created_at)
    return list(session.execute(stmt).scalars())


def vouchees_of(session: Session, from_agent_id: str) -> list[str]:
    """Agents that from_agent_id has vouched for."""
    stmt = select(VouchRow.to_agent_id).where(VouchRow.from_agent_id == from_agent_id).order_by(VouchRow.created_at)
    return list(session.execute(stmt).scalars())


def reconcile_vouch_counts(session: Session, fix: bool = False) -> dict[str, tuple[int, int]]:
    """
    Compare every agent's vouch_count with its edge count.

    Returns {agent_id: (stored, actual)} for diverging agents; with fix=True the
    stored counter is overwritten with the edge count.
    """
    counts = dict(
        session.execute(
            select(VouchRow.to_agent_id, func.count()).group_by(VouchRow.to_agent_id)
        ).all()
    )
    diverging: dict[str, tuple[int, int]] = {}
    for agent_id, stored in session.execute(select(AgentRow.id, AgentRow.vouch_count)):
        actual = int(counts.get(agent_id, 0))
        if (stored or 0) != actual:
            diverging[agent_id] = (stored or 0, actual)
            if fix:
                session.execute(
                    update(AgentRow).where(AgentRow.id == agent_id).values(vouch_count=actual)
                )
    if diverging:
        logger.warning("vouch_count_divergence", agents=len(diverging), fixed=fix)
    return diverging
