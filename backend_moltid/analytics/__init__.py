"""
Analytics: trust score computation.

The trust engine is a pure function over an agent snapshot and its incoming
vouches; persistence of the result is the caller's job.
"""

from backend_moltid.analytics.trust_engine import TrustBreakdown, compute_score

__all__ = ["TrustBreakdown", "compute_score"]
