"""
Project persistence.

`gallery_images` is stored as JSON text. Technologies are aggregated into a
JSON array by the slug lookup and decoded back into a list of dicts.
"""

from __future__ import annotations

from typing import Any

from core import db
from core.record import ModelDescriptor, RecordModel, decode_json_list
from core.result import NOT_FOUND, Result

DEFAULT_ORDER = "sort_order ASC, created_at DESC"

PROJECTS = ModelDescriptor(
    table="projects",
    columns=(
        "id",
        "title",
        "slug",
        "short_description",
        "full_description",
        "featured_image",
        "gallery_images",
        "demo_url",
        "github_url",
        "status",
        "is_featured",
        "is_published",
        "start_date",
        "end_date",
        "sort_order",
        "meta_title",
        "meta_description",
        "created_at",
        "updated_at",
    ),
    fillable=(
        "title",
        "slug",
        "short_description",
        "full_description",
        "featured_image",
        "gallery_images",
        "demo_url",
        "github_url",
        "status",
        "is_featured",
        "is_published",
        "start_date",
        "end_date",
        "sort_order",
        "meta_title",
        "meta_description",
    ),
    json_fields=("gallery_images",),
)

projects = RecordModel(PROJECTS)


async def find_published(
    *,
    where: dict[str, Any] | None = None,
    order_by: str | None = None,
    limit: int | None = None,
    offset: int | None = None,
) -> Result:
    return await projects.find_all(
        where={**(where or {}), "is_published": True},
        order_by=order_by or DEFAULT_ORDER,
        limit=limit,
        offset=offset,
    )


async def find_featured(limit: int = 3) -> Result:
    return await projects.find_all(
        where={"is_featured": True, "is_published": True},
        order_by=DEFAULT_ORDER,
        limit=limit,
    )


async def find_by_slug_with_technologies(slug: str) -> Result:
    """
    Published project by slug, with its linked technologies and gallery.
    """
    result = await db.fetch_one(
        """
        SELECT
          p.*,
          COALESCE(
            json_agg(
              json_build_object(
                'id', t.id,
                'name', t.name,
                'slug', t.slug,
                'category', t.category,
                'color', t.color,
                'icon_class', t.icon_class,
                'usage_type', pt.usage_type,
                'proficiency_shown', pt.proficiency_shown
              )
              ORDER BY pt.usage_type, t.name
            ) FILTER (WHERE t.id IS NOT NULL),
            '[]'::json
          )::text AS technologies
        FROM projects p
        LEFT JOIN project_technologies pt ON pt.project_id = p.id
        LEFT JOIN technologies t ON t.id = pt.technology_id
        WHERE p.slug = $1
          AND p.is_published = true
        GROUP BY p.id
        """,
        slug,
    )
    if not result.success:
        return result
    if result.data is None:
        return Result.fail("Project not found or not published", NOT_FOUND)

    project = projects.hide_one(result.data)
    project["technologies"] = decode_json_list(project.get("technologies"))
    project["gallery_images"] = decode_json_list(project.get("gallery_images"))
    return Result.ok(project)
