"""
Public skill endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter

from core.responses import ensure_ok

from . import repository

router = APIRouter(prefix="/api/skills")


@router.get("")
async def list_skills() -> dict:
    return ensure_ok(await repository.find_with_category())


@router.get("/featured")
async def featured_skills() -> dict:
    return ensure_ok(await repository.find_featured_grouped())
