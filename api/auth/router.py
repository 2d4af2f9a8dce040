"""
Auth API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from . import dependencies, schemas, service

router = APIRouter(prefix="/api/auth")


@router.post("/login", response_model=schemas.AuthResponse)
async def login(payload: schemas.LoginRequest) -> schemas.AuthResponse:
    return await service.login(payload)


@router.get("/me", response_model=schemas.UserResponse)
async def me(access_token: str = Depends(dependencies.get_bearer_token)) -> schemas.UserResponse:
    return await service.me(access_token)


@router.post("/password")
async def change_password(
    payload: schemas.ChangePasswordRequest,
    current_user: dict = Depends(dependencies.get_current_user),
) -> dict:
    return await service.change_password(current_user, payload)
