"""
Auth business logic.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, status

from core.responses import ensure_ok
from core.result import INVALID_PASSWORD, NOT_FOUND, Result

from . import repository, schemas, security

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"


def _is_credential_failure(result: Result) -> bool:
    return not result.success and result.code in (NOT_FOUND, INVALID_PASSWORD)


def _to_user_response(user_row: dict) -> schemas.UserResponse:
    return schemas.UserResponse(
        id=int(user_row["id"]),
        username=str(user_row.get("username") or ""),
        email=str(user_row["email"]),
        first_name=user_row.get("first_name"),
        last_name=user_row.get("last_name"),
        role=str(user_row.get("role") or ""),
        created_at=user_row["created_at"],
    )


async def login(payload: schemas.LoginRequest) -> schemas.AuthResponse:
    result = await repository.verify_password(payload.email, payload.password)
    if not result.success and not _is_credential_failure(result):
        ensure_ok(result)
    if not result.success:
        # Same answer for unknown email and wrong password.
        logger.info("login_failed reason=%s", result.error)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password.",
        )

    user_row = result.data
    access_token = security.build_access_token(
        user_id=int(user_row["id"]),
        email=str(user_row["email"]),
        role=str(user_row.get("role") or ""),
    )
    return schemas.AuthResponse(
        user=_to_user_response(user_row),
        access_token=access_token,
        expires_in=security.access_token_expire_minutes() * 60,
    )


async def get_user_from_access_token(access_token: str) -> dict:
    try:
        payload = security.decode_access_token(access_token)
    except security.AuthSecurityError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc

    subject = str(payload.get("sub") or "").strip()
    if not subject.isdigit():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid access token subject.",
        )

    found = await repository.users.find_by_id(int(subject))
    ensure_ok(found)
    if found.data is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found.",
        )
    return found.data


async def me(access_token: str) -> schemas.UserResponse:
    user_row = await get_user_from_access_token(access_token)
    return _to_user_response(user_row)


async def change_password(user_row: dict, payload: schemas.ChangePasswordRequest) -> dict:
    check = await repository.verify_password(str(user_row["email"]), payload.current_password)
    if not check.success and not _is_credential_failure(check):
        ensure_ok(check)
    if not check.success:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Current password is incorrect.",
        )

    result = ensure_ok(await repository.update_password(int(user_row["id"]), payload.new_password))
    if not result.get("affectedRows"):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")
    return {"ok": True}
