"""
Background worker: rescore every agent on a fixed interval.

The age factor grows by one point per day until its cap, so stored scores go
stale without any write traffic. The API lifespan runs this loop in a daemon thread.
"""

from __future__ import annotations

from typing import Any

from backend_moltid.moltid_logging import get_logger
from backend_moltid.services.scoring import rescore_all

logger = get_logger(__name__)

SHUTDOWN_JOIN_TIMEOUT_SEC = 15.0


def run_score_refresh_loop(stop_event: Any, interval_sec: float) -> None:
    """Loop: every interval_sec rescore all agents, until stop_event is set."""
    logger.info("score_refresh_worker_started", interval_sec=interval_sec)
    while not stop_event.wait(timeout=interval_sec):
        try:
            n = rescore_all()
            logger.info("score_refresh_done", rescored=n)
        except Exception as e:
            logger.exception("score_refresh_error", error=str(e))
    logger.info("score_refresh_worker_stopped")
