"""
Moltbook client: confirm an agent controls a Moltbook account.

Fetches the public profile (GET /agents/profile?name=<username>), which includes
recent posts, and looks for the agent's verification code in any post title or
content. One request per verification attempt; no retry. Any transport or API
failure is reported as not verified.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from backend_moltid.config.env import get_moltbook_api_url, get_moltbook_timeout_sec
from backend_moltid.moltid_logging import get_logger

logger = get_logger(__name__)

USER_AGENT = "MoltID/1.0"


@dataclass(frozen=True)
class VerificationResult:
    verified: bool
    karma: int | None = None


class VerificationProvider(Protocol):
    """Read-only lookup of an external account."""

    def lookup(self, username: str, verification_code: str) -> VerificationResult: ...


def _karma_from(profile: dict[str, Any]) -> int:
    agent = profile.get("agent") or {}
    try:
        return max(0, int(agent.get("karma") or 0))
    except (TypeError, ValueError):
        return 0


def _code_in_posts(posts: list[Any], code: str) -> bool:
    for post in posts:
        if not isinstance(post, dict):
            continue
        if code in str(post.get("content") or "") or code in str(post.get("title") or ""):
            return True
    return False


class MoltbookClient:
    """
    Synchronous Moltbook API client.

    transport is for tests (httpx.MockTransport); production uses the default.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout_sec: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or get_moltbook_api_url()).rstrip("/")
        self.timeout_sec = timeout_sec if timeout_sec is not None else get_moltbook_timeout_sec()
        self._transport = transport

    def fetch_profile(self, username: str) -> dict[str, Any] | None:
        """Return the profile payload, or None on HTTP error, timeout, or success=false."""
        url = f"{self.base_url}/agents/profile"
        try:
            with httpx.Client(
                timeout=self.timeout_sec,
                headers={"User-Agent": USER_AGENT},
                transport=self._transport,
            ) as client:
                resp = client.get(url, params={"name": username})
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as e:
            logger.warning("moltbook_profile_http_error", username=username, status=e.response.status_code)
            return None
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("moltbook_profile_fetch_failed", username=username, error=str(e))
            return None
        if not isinstance(data, dict) or not data.get("success"):
            logger.warning("moltbook_profile_unsuccessful", username=username)
            return None
        return data

    def lookup(self, username: str, verification_code: str) -> VerificationResult:
        if not username or not verification_code:
            return VerificationResult(verified=False)
        logger.info("moltbook_verification_started", username=username)
        profile = self.fetch_profile(username)
        if profile is None:
            return VerificationResult(verified=False)
        karma = _karma_from(profile)
        posts = profile.get("recentPosts") or []
        if _code_in_posts(posts if isinstance(posts, list) else [], verification_code):
            logger.info("moltbook_verification_code_found", username=username, karma=karma, posts=len(posts))
            return VerificationResult(verified=True, karma=karma)
        logger.info("moltbook_verification_code_missing", username=username, posts=len(posts))
        return VerificationResult(verified=False, karma=karma)
