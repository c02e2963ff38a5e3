"""
Application-level exceptions.

Every error carries a stable ``code`` that the API layer returns unchanged
in the error envelope. Status-code mapping lives in the API layer only.
"""

from __future__ import annotations


class MoltIDError(Exception):
    """Base exception for all MoltID domain errors."""

    code = "internal_error"
    default_message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class AgentNotFoundError(MoltIDError):
    """Referenced agent does not exist."""

    code = "not_found"
    default_message = "Agent not found"


class UnauthorizedError(MoltIDError):
    """Voucher is missing or not externally verified."""

    code = "unauthorized"
    default_message = "Only verified agents can vouch"


class SelfVouchError(MoltIDError):
    """An agent tried to vouch for itself."""

    code = "invalid_vouch"
    default_message = "Cannot vouch for yourself"


class DuplicateEdgeError(MoltIDError):
    """Vouch edge (from, to) already exists."""

    code = "already_vouched"
    default_message = "Already vouched for this agent"


class NoExternalAccountError(MoltIDError):
    """Verification requested for an agent without a linked Moltbook username."""

    code = "no_moltbook"
    default_message = "No Moltbook username linked"


class VerificationFailedError(MoltIDError):
    code = "verification_failed"
    default_message = "Verification code not found"


class CapabilityValidationError(MoltIDError):
    code = "validation_error"
    default_message = "Invalid capabilities"


class UsernameTakenError(MoltIDError):
    code = "already_exists"
    default_message = "Moltbook username already registered"


__all__ = [
    "MoltIDError",
    "AgentNotFoundError",
    "UnauthorizedError",
    "SelfVouchError",
    "DuplicateEdgeError",
    "NoExternalAccountError",
    "VerificationFailedError",
    "CapabilityValidationError",
    "UsernameTakenError",
]
