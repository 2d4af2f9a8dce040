"""
Technology endpoints and project links.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from auth import dependencies as auth_dependencies
from core.responses import ensure_ok

from . import repository, schemas

router = APIRouter(prefix="/api")


@router.get("/technologies")
async def list_technologies() -> dict:
    return ensure_ok(await repository.find_active_grouped())


@router.get("/projects/{project_id}/technologies")
async def project_technologies(project_id: int) -> dict:
    return ensure_ok(await repository.find_by_project(project_id))


@router.put("/projects/{project_id}/technologies/{technology_id}")
async def link_technology(
    project_id: int,
    technology_id: int,
    request: schemas.LinkTechnologyRequest,
    _: dict = Depends(auth_dependencies.require_admin),
) -> dict:
    return ensure_ok(
        await repository.link_to_project(
            project_id,
            technology_id,
            usage_type=request.usage_type,
            proficiency=request.proficiency_shown,
        )
    )


@router.delete("/projects/{project_id}/technologies/{technology_id}")
async def unlink_technology(
    project_id: int,
    technology_id: int,
    _: dict = Depends(auth_dependencies.require_admin),
) -> dict:
    return ensure_ok(await repository.unlink_from_project(project_id, technology_id))
