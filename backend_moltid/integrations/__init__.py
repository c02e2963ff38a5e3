"""
External collaborators: Moltbook profile lookup for account verification.
"""

from backend_moltid.integrations.moltbook import (
    MoltbookClient,
    VerificationProvider,
    VerificationResult,
)

__all__ = ["MoltbookClient", "VerificationProvider", "VerificationResult"]
