"""
Input validation for agent fields that the store persists.

Capabilities are short lowercase tokens: [a-z0-9_], 1-50 chars, at most 20
per agent, no duplicates. Order is preserved.
"""

from __future__ import annotations

import re
from typing import Iterable

from backend_moltid.core.exceptions import CapabilityValidationError

MAX_CAPABILITIES = 20
MAX_CAPABILITY_LENGTH = 50
USERNAME_MAX_LENGTH = 64

_CAPABILITY_RE = re.compile(r"^[a-z0-9_]+$")


def validate_capabilities(capabilities: Iterable[str] | None) -> list[str]:
    """Return the capabilities as a list, or raise CapabilityValidationError."""
    if capabilities is None:
        return []
    caps = list(capabilities)
    if len(caps) > MAX_CAPABILITIES:
        raise CapabilityValidationError(
            f"Too many capabilities: {len(caps)} (maximum {MAX_CAPABILITIES})"
        )
    seen: set[str] = set()
    for cap in caps:
        if not isinstance(cap, str) or not cap:
            raise CapabilityValidationError("Capabilities must be non-empty strings")
        if len(cap) > MAX_CAPABILITY_LENGTH:
            raise CapabilityValidationError(
                f'Capability "{cap}" exceeds {MAX_CAPABILITY_LENGTH} characters'
            )
        if not _CAPABILITY_RE.match(cap):
            raise CapabilityValidationError(
                f'Capability "{cap}" contains invalid characters. '
                "Only lowercase a-z, digits 0-9, and underscore are allowed"
            )
        if cap in seen:
            raise CapabilityValidationError(f'Duplicate capability "{cap}"')
        seen.add(cap)
    return caps
