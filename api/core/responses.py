"""
Envelope -> HTTP translation for routers.
"""

from __future__ import annotations

from typing import Any

from fastapi import HTTPException, status

from .result import ACQUIRE_TIMEOUT, INVALID_COLUMN, NO_CHANGES, NOT_FOUND, PASSWORD_REQUIRED, Result

_STATUS_BY_CODE = {
    NOT_FOUND: status.HTTP_404_NOT_FOUND,
    NO_CHANGES: status.HTTP_400_BAD_REQUEST,
    INVALID_COLUMN: status.HTTP_400_BAD_REQUEST,
    PASSWORD_REQUIRED: status.HTTP_400_BAD_REQUEST,
    # unique_violation / foreign_key_violation / check_violation
    "23505": status.HTTP_409_CONFLICT,
    "23503": status.HTTP_409_CONFLICT,
    "23514": status.HTTP_400_BAD_REQUEST,
    ACQUIRE_TIMEOUT: status.HTTP_503_SERVICE_UNAVAILABLE,
    "timeout": status.HTTP_503_SERVICE_UNAVAILABLE,
    "ECONNREFUSED": status.HTTP_503_SERVICE_UNAVAILABLE,
}


def http_status_for(result: Result) -> int:
    return _STATUS_BY_CODE.get(result.code or "", status.HTTP_500_INTERNAL_SERVER_ERROR)


def ensure_ok(result: Result) -> dict[str, Any]:
    """
    Return the envelope as a dict, or raise the matching HTTPException.
    """
    if result.success:
        return result.as_dict()

    status_code = http_status_for(result)
    if status_code >= 500:
        # Driver messages stay in the log.
        detail = "Database unavailable." if status_code == 503 else "Database error."
    elif status_code == status.HTTP_409_CONFLICT:
        detail = "Conflicts with an existing record."
    else:
        detail = result.error or "Request failed."
    raise HTTPException(status_code=status_code, detail=detail)
