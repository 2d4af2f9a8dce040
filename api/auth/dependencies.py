"""
Bearer-token and role dependencies for protected routes.

Admin routes depend on `require_admin`; any other role gets its own
dependency from `require_role`.
"""

from __future__ import annotations

from typing import Annotated, Awaitable, Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from . import service

_bearer = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_bearer_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer)],
) -> str:
    # HTTPBearer yields None for a missing header and for any other scheme.
    if credentials is None or not credentials.credentials.strip():
        raise _unauthorized("Authorization must be: Bearer <token>.")
    return credentials.credentials.strip()


async def get_current_user(access_token: Annotated[str, Depends(get_bearer_token)]) -> dict:
    return await service.get_user_from_access_token(access_token)


CurrentUser = Annotated[dict, Depends(get_current_user)]


def require_role(role: str) -> Callable[[dict], Awaitable[dict]]:
    """Dependency that lets through only users holding `role`."""

    async def dependency(current_user: CurrentUser) -> dict:
        if str(current_user.get("role") or "") != role:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"{role.capitalize()} role required.",
            )
        return current_user

    dependency.__name__ = f"require_{role}"
    return dependency


require_admin = require_role(service.ADMIN_ROLE)
