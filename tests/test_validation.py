"""
Pytest tests for capability validation and the error taxonomy.
"""

from __future__ import annotations

import pytest

from backend_moltid.api_server.responses import ERROR_STATUS
from backend_moltid.core import exceptions
from backend_moltid.core.exceptions import CapabilityValidationError, MoltIDError
from backend_moltid.core.validation import validate_capabilities


def test_valid_capabilities_keep_order():
    assert validate_capabilities(["summarize", "code_review", "web3"]) == ["summarize", "code_review", "web3"]
    assert validate_capabilities(None) == []
    assert validate_capabilities([]) == []
    assert validate_capabilities(["a" * 50]) == ["a" * 50]
    assert len(validate_capabilities([f"c{i}" for i in range(20)])) == 20


@pytest.mark.parametrize(
    "caps,match",
    [
        ([f"c{i}" for i in range(21)], "Too many"),
        (["a" * 51], "exceeds 50"),
        (["Upper"], "invalid characters"),
        (["has space"], "invalid characters"),
        (["dash-ed"], "invalid characters"),
        (["x", "x"], "Duplicate"),
        ([""], "non-empty"),
        ([None], "non-empty"),
    ],
)
def test_invalid_capabilities(caps, match):
    with pytest.raises(CapabilityValidationError, match=match):
        validate_capabilities(caps)


def test_every_error_code_has_a_status():
    for name in exceptions.__all__:
        cls = getattr(exceptions, name)
        assert issubclass(cls, MoltIDError)
        assert cls.code in ERROR_STATUS, name


def test_error_message_defaults_and_overrides():
    err = exceptions.DuplicateEdgeError()
    assert err.message == "Already vouched for this agent"
    assert str(err) == err.message
    assert exceptions.VerificationFailedError("post the code").message == "post the code"


def test_core_error_status_mapping():
    assert ERROR_STATUS[exceptions.UnauthorizedError.code] == 403
    assert ERROR_STATUS[exceptions.AgentNotFoundError.code] == 404
    assert ERROR_STATUS[exceptions.SelfVouchError.code] == 400
    assert ERROR_STATUS[exceptions.DuplicateEdgeError.code] == 409
