"""
JSON envelope shared by all endpoints.

Success: {"success": true, "data": ...}
Error:   {"success": false, "error": {"code": "...", "message": "..."}}
"""

from __future__ import annotations

from typing import Any

from fastapi.responses import JSONResponse

# Domain error code -> HTTP status. The only place status codes are decided.
ERROR_STATUS: dict[str, int] = {
    "validation_error": 400,
    "invalid_vouch": 400,
    "no_moltbook": 400,
    "verification_failed": 400,
    "UNAUTHORIZED": 401,
    "unauthorized": 403,
    "forbidden": 403,
    "not_found": 404,
    "already_exists": 409,
    "already_vouched": 409,
    "internal_error": 500,
}

# Fallback codes for framework-raised HTTP errors without a domain code.
STATUS_CODES: dict[int, str] = {
    400: "validation_error",
    401: "UNAUTHORIZED",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
}


def success(data: Any, status_code: int = 200, **extra: Any) -> JSONResponse:
    content: dict[str, Any] = {"success": True, "data": data}
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content)


def error(code: str, message: str, status_code: int | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code or ERROR_STATUS.get(code, 500),
        content={"success": False, "error": {"code": code, "message": message}},
    )
