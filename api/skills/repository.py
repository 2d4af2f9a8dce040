"""
Skill persistence (joined with categories).
"""

from __future__ import annotations

from core.record import IdentifierError, ModelDescriptor, RecordModel, order_clause
from core.result import INVALID_COLUMN, Result

UNCATEGORIZED = "Uncategorized"

SKILLS = ModelDescriptor(
    table="skills",
    columns=(
        "id",
        "name",
        "category_id",
        "proficiency_level",
        "years_experience",
        "description",
        "icon_class",
        "is_featured",
        "sort_order",
        "created_at",
        "updated_at",
    ),
    fillable=(
        "name",
        "category_id",
        "proficiency_level",
        "years_experience",
        "description",
        "icon_class",
        "is_featured",
        "sort_order",
    ),
)

CATEGORY_COLUMNS = ("id", "name", "slug", "color", "sort_order", "created_at", "updated_at")

skills = RecordModel(SKILLS)

_SELECT_WITH_CATEGORY = """
    SELECT
      s.*,
      c.name AS category_name,
      c.slug AS category_slug,
      c.color AS category_color
    FROM skills s
    LEFT JOIN categories c ON c.id = s.category_id
"""


async def find_with_category(order_by: str | None = None) -> Result:
    """
    All skills with their category name/slug/color.

    `order_by` terms must be qualified with `s.` (skills) or `c.` (categories).
    """
    try:
        order_sql = order_clause(
            order_by or "s.sort_order ASC, s.name ASC",
            {"s": SKILLS.columns, "c": CATEGORY_COLUMNS},
        )
    except IdentifierError as exc:
        return Result.fail(str(exc), INVALID_COLUMN)

    return await _fetch(f"{_SELECT_WITH_CATEGORY} ORDER BY {order_sql}")


def group_by_category(rows: list[dict]) -> list[dict]:
    grouped: dict[str, dict] = {}
    for skill in rows:
        name = skill.get("category_name") or UNCATEGORIZED
        if name not in grouped:
            grouped[name] = {
                "name": name,
                "slug": skill.get("category_slug"),
                "color": skill.get("category_color"),
                "skills": [],
            }
        grouped[name]["skills"].append(skill)
    return list(grouped.values())


async def find_featured_grouped() -> Result:
    result = await _fetch(
        f"""
        {_SELECT_WITH_CATEGORY}
        WHERE s.is_featured = true
        ORDER BY c.name ASC NULLS LAST, s.sort_order ASC
        """
    )
    if not result.success:
        return result
    return Result.ok(group_by_category(result.data))


async def _fetch(sql: str) -> Result:
    result = await skills.query(sql)
    if not result.success:
        return result
    return Result.ok(skills.hide_fields(result.data.rows))
