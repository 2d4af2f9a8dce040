"""
Public project endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Query

from core.responses import ensure_ok

from . import repository

router = APIRouter(prefix="/api/projects")


@router.get("")
async def list_projects(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> dict:
    return ensure_ok(await repository.find_published(limit=limit, offset=offset))


@router.get("/featured")
async def featured_projects(limit: int = Query(3, ge=1, le=20)) -> dict:
    return ensure_ok(await repository.find_featured(limit))


@router.get("/{slug}")
async def project_detail(slug: str) -> dict:
    return ensure_ok(await repository.find_by_slug_with_technologies(slug))
