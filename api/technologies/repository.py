"""
Technology persistence and project-technology links.
"""

from __future__ import annotations

from core import db
from core.record import ModelDescriptor, RecordModel
from core.result import Result

DEFAULT_CATEGORY = "other"

TECHNOLOGIES = ModelDescriptor(
    table="technologies",
    columns=(
        "id",
        "name",
        "slug",
        "category",
        "color",
        "icon_class",
        "description",
        "official_website",
        "documentation_url",
        "is_active",
        "created_at",
        "updated_at",
    ),
    fillable=(
        "name",
        "slug",
        "category",
        "color",
        "icon_class",
        "description",
        "official_website",
        "documentation_url",
        "is_active",
    ),
)

technologies = RecordModel(TECHNOLOGIES)


async def find_by_project(project_id: int) -> Result:
    return await db.fetch_all(
        """
        SELECT t.*, pt.usage_type, pt.proficiency_shown
        FROM technologies t
        JOIN project_technologies pt ON pt.technology_id = t.id
        WHERE pt.project_id = $1
          AND t.is_active = true
        ORDER BY pt.usage_type ASC, t.name ASC
        """,
        project_id,
    )


def group_by_category(rows: list[dict]) -> list[dict]:
    grouped: dict[str, dict] = {}
    for tech in rows:
        category = tech.get("category") or DEFAULT_CATEGORY
        if category not in grouped:
            grouped[category] = {"name": category, "technologies": []}
        grouped[category]["technologies"].append(tech)
    return list(grouped.values())


async def find_active_grouped() -> Result:
    result = await technologies.find_all(where={"is_active": True}, order_by="category ASC, name ASC")
    if not result.success:
        return result
    return Result.ok(group_by_category(result.data))


async def link_to_project(
    project_id: int,
    technology_id: int,
    usage_type: str = "secondary",
    proficiency: str = "intermediate",
) -> Result:
    """
    Insert the link, or refresh its usage metadata when it already exists.
    """
    return await db.execute(
        """
        INSERT INTO project_technologies (project_id, technology_id, usage_type, proficiency_shown)
        VALUES ($1, $2, $3, $4)
        ON CONFLICT (project_id, technology_id) DO UPDATE
        SET usage_type = EXCLUDED.usage_type,
            proficiency_shown = EXCLUDED.proficiency_shown
        """,
        project_id,
        technology_id,
        usage_type,
        proficiency,
    )


async def unlink_from_project(project_id: int, technology_id: int) -> Result:
    return await db.execute(
        """
        DELETE FROM project_technologies
        WHERE project_id = $1
          AND technology_id = $2
        """,
        project_id,
        technology_id,
    )
