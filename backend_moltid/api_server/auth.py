"""
API-key authentication.

Keys are sent as "Authorization: Bearer moltid_key_..." and matched by SHA-256
digest against the stored hash.
"""

from __future__ import annotations

from fastapi import Header, HTTPException

from backend_moltid.database.agents import get_agent_by_api_key
from backend_moltid.database.models import Agent
from backend_moltid.moltid_logging import get_logger

logger = get_logger(__name__)


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(status_code=401, detail={"code": "UNAUTHORIZED", "message": message})


def require_agent(authorization: str | None = Header(None)) -> Agent:
    """Dependency: resolve the calling agent from its bearer API key."""
    if not authorization:
        raise _unauthorized("Missing Authorization header")
    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise _unauthorized("Authorization header must be 'Bearer <api_key>'")
    agent = get_agent_by_api_key(token)
    if agent is None:
        logger.info("auth_invalid_api_key")
        raise _unauthorized("Invalid or expired API key")
    return agent


def require_owner(agent: Agent, agent_id: str, message: str) -> None:
    """Raise 403 unless the authenticated agent is agent_id."""
    if agent.id != agent_id:
        logger.info("auth_forbidden", caller_id=agent.id, agent_id=agent_id)
        raise HTTPException(status_code=403, detail={"code": "forbidden", "message": message})
