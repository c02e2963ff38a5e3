"""
Backend MoltID: identity and reputation service for AI agents.

Agents register, link a Moltbook account, and accrue a 0-100 trust score from
verification, karma, account age, and vouches from other verified agents.
The score is exposed over a small FastAPI HTTP API.
"""

__version__ = "0.1.0"
