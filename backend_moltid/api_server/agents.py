"""
FastAPI router: /v1/agents: registration, lookup, search, verification, trust, vouching.

Handlers validate input, call the store or a service, and wrap the result in the
success envelope. Domain errors propagate to the handler in server.py.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from backend_moltid.api_server.auth import require_agent, require_owner
from backend_moltid.api_server.responses import success
from backend_moltid.core.exceptions import AgentNotFoundError
from backend_moltid.core.validation import USERNAME_MAX_LENGTH
from backend_moltid.database.agents import (
    SEARCH_MAX_LIMIT,
    create_agent,
    get_agent,
    get_agent_by_username,
    search_agents,
    update_agent,
)
from backend_moltid.database.models import Agent
from backend_moltid.integrations.moltbook import MoltbookClient, VerificationProvider
from backend_moltid.moltid_logging import get_logger
from backend_moltid.services.scoring import trust_details
from backend_moltid.services.verification import verify_agent
from backend_moltid.services.vouching import vouch

logger = get_logger(__name__)

router = APIRouter(prefix="/v1/agents", tags=["agents"])

API_KEY_WARNING = "Store this key securely. It will not be shown again."


def get_verification_provider() -> VerificationProvider:
    """Dependency: Moltbook client (overridden in tests)."""
    return MoltbookClient()


class CreateAgentRequest(BaseModel):
    """POST /v1/agents body."""

    moltbook_username: str | None = Field(None, min_length=1, max_length=USERNAME_MAX_LENGTH)
    public_key: str | None = Field(None, description="Optional public key for future signed requests")
    capabilities: list[str] | None = Field(None, description="Capability tokens: [a-z0-9_], max 20")


class UpdateAgentRequest(BaseModel):
    """PATCH /v1/agents/{id} body."""

    capabilities: list[str] | None = None
    public_key: str | None = None


class VouchRequest(BaseModel):
    """POST /v1/agents/{id}/vouch body."""

    from_agent_id: str = Field(..., min_length=1)
    signature: str | None = Field(None, description="Reserved for key-based signing")


def _require(agent: Agent | None) -> Agent:
    if agent is None:
        raise AgentNotFoundError()
    return agent


@router.post("")
def register_agent(body: CreateAgentRequest) -> JSONResponse:
    """Register a new agent. The API key is returned once and never stored in clear."""
    agent, api_key = create_agent(
        moltbook_username=body.moltbook_username,
        public_key=body.public_key,
        capabilities=body.capabilities,
    )
    return success(agent.to_dict(), status_code=201, api_key=api_key, api_key_warning=API_KEY_WARNING)


@router.get("")
def list_agents(
    verified: bool | None = Query(None),
    min_trust: int | None = Query(None, ge=0, le=100),
    capability: str | None = Query(None, max_length=50),
    limit: int = Query(20, ge=1),
    offset: int = Query(0, ge=0),
) -> JSONResponse:
    """Search active agents, highest trust first."""
    agents = search_agents(
        verified=verified,
        min_trust=min_trust,
        capability=capability,
        limit=min(limit, SEARCH_MAX_LIMIT),
        offset=offset,
    )
    return success([a.to_public() for a in agents])


@router.get("/moltbook/{username}")
def get_agent_by_moltbook(username: str) -> JSONResponse:
    return success(_require(get_agent_by_username(username)).to_public())


@router.get("/{agent_id}")
def get_agent_by_id(agent_id: str) -> JSONResponse:
    return success(_require(get_agent(agent_id)).to_public())


@router.patch("/{agent_id}")
def patch_agent(
    agent_id: str,
    body: UpdateAgentRequest,
    caller: Agent = Depends(require_agent),
) -> JSONResponse:
    """Update own capabilities or public key."""
    require_owner(caller, agent_id, "You can only update your own agent")
    updated = update_agent(agent_id, capabilities=body.capabilities, public_key=body.public_key)
    return success(_require(updated).to_public())


@router.post("/{agent_id}/verify/moltbook")
def verify_moltbook(
    agent_id: str,
    provider: VerificationProvider = Depends(get_verification_provider),
) -> JSONResponse:
    """Check Moltbook for the verification code; on success import karma and rescore."""
    outcome = verify_agent(agent_id, provider)
    return success(outcome.to_dict())


@router.get("/{agent_id}/trust")
def get_trust(agent_id: str) -> JSONResponse:
    details = trust_details(agent_id)
    if details is None:
        raise AgentNotFoundError()
    return success(details)


@router.post("/{agent_id}/vouch")
def vouch_for_agent(
    agent_id: str,
    body: VouchRequest,
    caller: Agent = Depends(require_agent),
) -> JSONResponse:
    """Vouch for agent_id as from_agent_id; the API key must belong to from_agent_id."""
    require_owner(caller, body.from_agent_id, "API key does not match from_agent_id")
    outcome = vouch(body.from_agent_id, agent_id)
    return success(outcome.to_dict())
