#!/usr/bin/env python3
"""
Recompute and persist every agent's trust score.

Keeps the age factor current when the API's background refresh is disabled.
With --reconcile-counts, also compares each agent's vouch_count against its
incoming edges and reports divergences (--fix overwrites the counter).

Usage:
  py -m backend_moltid.tools.recompute_scores
  py -m backend_moltid.tools.recompute_scores --reconcile-counts --fix
"""

from __future__ import annotations

import argparse
import sys

from backend_moltid.database import init_db, session_scope
from backend_moltid.database.vouches import reconcile_vouch_counts
from backend_moltid.moltid_logging import get_logger
from backend_moltid.services.scoring import rescore_all

logger = get_logger(__name__)


def run(reconcile_counts: bool = False, fix: bool = False) -> int:
    """Returns the number of diverging counters left unfixed."""
    init_db()
    unfixed = 0
    if reconcile_counts:
        with session_scope() as session:
            diverging = reconcile_vouch_counts(session, fix=fix)
        for agent_id, (stored, actual) in sorted(diverging.items()):
            print(f"[recompute_scores] {agent_id}: vouch_count={stored} edges={actual}{' (fixed)' if fix else ''}")
        if not fix:
            unfixed = len(diverging)
        print(f"[recompute_scores] diverging counters: {len(diverging)}")
    n = rescore_all()
    print(f"[recompute_scores] rescored agents: {n}")
    return unfixed


def main() -> int:
    parser = argparse.ArgumentParser(description="Recompute MoltID trust scores for all agents.")
    parser.add_argument(
        "--reconcile-counts",
        action="store_true",
        help="Compare vouch_count with incoming edges before rescoring",
    )
    parser.add_argument("--fix", action="store_true", help="With --reconcile-counts, overwrite diverging counters")
    args = parser.parse_args()
    try:
        unfixed = run(reconcile_counts=args.reconcile_counts, fix=args.fix)
    except Exception as e:
        logger.exception("recompute_scores_failed", error=str(e))
        print("ERROR:", e, file=sys.stderr)
        return 1
    return 2 if unfixed else 0


if __name__ == "__main__":
    sys.exit(main())
