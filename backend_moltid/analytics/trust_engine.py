"""
Trust engine: compute 0-100 trust score from verification, karma, age and vouches.

Formula: 20 if Moltbook verified + karma/100 (capped 30) + age in days (capped 20)
+ 5 per vouch from a verified agent (capped 30). Caps sum to exactly 100; the
total is still clamped. Missing or malformed inputs contribute 0, never raise.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable

from backend_moltid.moltid_logging import get_logger

logger = get_logger(__name__)

VERIFIED_POINTS = 20
KARMA_DIVISOR = 100
KARMA_MAX_POINTS = 30
AGE_MAX_POINTS = 20
VOUCH_POINTS_EACH = 5
VOUCH_MAX_POINTS = 30
SCORE_MIN = 0
SCORE_MAX = 100

SECONDS_PER_DAY = 86400


@dataclass(frozen=True)
class TrustBreakdown:
    """Composite trust score and the clamped contribution of each factor."""

    total: int
    verification: int
    karma: int
    age: int
    vouches: int
    age_days: int
    """Whole days since creation used for the age factor (0 if unknown or in the future)."""
    qualifying_vouches: int
    """Incoming vouches whose voucher is currently verified."""

    def factors(self) -> dict[str, int]:
        """Factor breakdown keyed the way the public API reports it."""
        return {
            "moltbook_verified": self.verification,
            "karma": self.karma,
            "age": self.age,
            "vouches": self.vouches,
        }


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


def _field(obj: Any, name: str, default: Any = None) -> Any:
    """Read an attribute or mapping key; agent snapshots may be dataclasses or dicts."""
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def _as_utc(value: Any) -> datetime | None:
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def verification_points(verified: Any) -> int:
    # Only a real bool counts; AgentRow.to_model() coerces the stored flag, raw truthy values score 0
    return VERIFIED_POINTS if verified is True else 0


def karma_points(karma: Any) -> int:
    """1 point per full 100 karma, 0-30. None, negative, bool or non-numeric karma gives 0."""
    if karma is None or isinstance(karma, bool):
        return 0
    try:
        value = float(karma)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(value) or value <= 0:
        return 0
    return _clamp(int(value // KARMA_DIVISOR), 0, KARMA_MAX_POINTS)


def elapsed_days(created_at: Any, now: datetime | None = None) -> int:
    """Whole days between created_at and now; 0 when created_at is missing or in the future."""
    created = _as_utc(created_at)
    if created is None:
        return 0
    current = _as_utc(now) or datetime.now(timezone.utc)
    seconds = (current - created).total_seconds()
    if seconds <= 0:
        return 0
    return int(seconds // SECONDS_PER_DAY)


def age_points(days: int) -> int:
    return _clamp(days, 0, AGE_MAX_POINTS)


def vouch_points(qualifying: int) -> int:
    return _clamp(qualifying * VOUCH_POINTS_EACH, 0, VOUCH_MAX_POINTS)


def count_qualifying(incoming_vouches: Iterable[Any] | None) -> int:
    """Count vouches whose voucher_is_verified flag is exactly True."""
    if not incoming_vouches:
        return 0
    return sum(1 for v in incoming_vouches if _field(v, "voucher_is_verified") is True)


def compute_score(
    agent: Any,
    incoming_vouches: Iterable[Any] | None = None,
    now: datetime | None = None,
) -> TrustBreakdown:
    """
    Compute the trust score (0-100) and factor breakdown for one agent.

    agent: object or dict with moltbook_verified, moltbook_karma, created_at.
    incoming_vouches: items with voucher_is_verified; only those count.
    now: evaluation time, defaults to the current UTC time.

    Factors are clamped individually, so they always sum to total.
    """
    verification = verification_points(_field(agent, "moltbook_verified", False))
    karma = karma_points(_field(agent, "moltbook_karma"))
    days = elapsed_days(_field(agent, "created_at"), now)
    age = age_points(days)
    qualifying = count_qualifying(incoming_vouches)
    vouches = vouch_points(qualifying)

    total = _clamp(verification + karma + age + vouches, SCORE_MIN, SCORE_MAX)
    logger.debug(
        "trust_score_computed",
        agent_id=_field(agent, "id"),
        total=total,
        verification=verification,
        karma=karma,
        age=age,
        vouches=vouches,
    )
    return TrustBreakdown(
        total=total,
        verification=verification,
        karma=karma,
        age=age,
        vouches=vouches,
        age_days=days,
        qualifying_vouches=qualifying,
    )
