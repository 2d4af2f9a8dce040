"""
Page-view tracking (public) and reports (admin).
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query, Request

from auth import dependencies as auth_dependencies
from core.responses import ensure_ok

from . import repository, schemas

router = APIRouter(prefix="/api/analytics")


@router.post("/views", status_code=201)
async def track_view(payload: schemas.TrackViewRequest, request: Request) -> dict:
    return ensure_ok(
        await repository.track(
            {
                **payload.model_dump(),
                "ip_address": request.client.host if request.client else None,
                "user_agent": request.headers.get("user-agent"),
            }
        )
    )


@router.get("/views")
async def recent_views(
    page_type: str | None = Query(default=None),
    limit: int = Query(100, ge=1, le=1000),
    _: dict = Depends(auth_dependencies.require_admin),
) -> dict:
    where = {"page_type": page_type} if page_type else None
    return ensure_ok(await repository.page_views.find_all(where=where, order_by="created_at DESC", limit=limit))


@router.get("/stats")
async def view_stats(
    date_from: datetime | None = Query(default=None),
    date_to: datetime | None = Query(default=None),
    page_type: str | None = Query(default=None),
    _: dict = Depends(auth_dependencies.require_admin),
) -> dict:
    return ensure_ok(await repository.get_stats(date_from=date_from, date_to=date_to, page_type=page_type))


@router.get("/top-projects")
async def top_projects(
    limit: int = Query(10, ge=1, le=100),
    date_from: datetime | None = Query(default=None),
    date_to: datetime | None = Query(default=None),
    _: dict = Depends(auth_dependencies.require_admin),
) -> dict:
    return ensure_ok(await repository.get_top_projects(limit, date_from=date_from, date_to=date_to))
