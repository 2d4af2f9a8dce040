"""
Page-view tracking and reporting.

Rows are append-only, so the model keeps only `created_at` and stamps it
itself instead of going through the generic create.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping

from core import db
from core.record import ModelDescriptor, RecordModel
from core.result import Result

PROJECT_DETAIL = "project_detail"

PAGE_VIEWS = ModelDescriptor(
    table="page_views",
    columns=("id", "page_type", "page_identifier", "ip_address", "user_agent", "referer", "created_at"),
    fillable=("page_type", "page_identifier", "ip_address", "user_agent", "referer"),
    timestamps=False,
)

page_views = RecordModel(PAGE_VIEWS)


async def track(view: Mapping[str, Any]) -> Result:
    return await db.execute(
        """
        INSERT INTO page_views (page_type, page_identifier, ip_address, user_agent, referer, created_at)
        VALUES ($1, $2, $3, $4, $5, $6)
        RETURNING id
        """,
        view.get("page_type"),
        view.get("page_identifier") or None,
        view.get("ip_address") or None,
        view.get("user_agent") or None,
        view.get("referer") or None,
        datetime.now(timezone.utc),
    )


def _range_conditions(
    date_from: datetime | None,
    date_to: datetime | None,
    params: list[Any],
) -> list[str]:
    conditions = []
    if date_from is not None:
        params.append(date_from)
        conditions.append(f"created_at >= ${len(params)}")
    if date_to is not None:
        params.append(date_to)
        conditions.append(f"created_at <= ${len(params)}")
    return conditions


async def get_stats(
    *,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    page_type: str | None = None,
) -> Result:
    """
    Views and unique visitors per page type per day, newest day first.
    """
    params: list[Any] = []
    conditions = _range_conditions(date_from, date_to, params)
    if page_type:
        params.append(page_type)
        conditions.append(f"page_type = ${len(params)}")

    where_sql = f"WHERE {' AND '.join(conditions)}" if conditions else ""
    return await db.fetch_all(
        f"""
        SELECT
          page_type,
          count(*) AS views,
          count(DISTINCT ip_address) AS unique_visitors,
          created_at::date AS date
        FROM page_views
        {where_sql}
        GROUP BY page_type, created_at::date
        ORDER BY date DESC, page_type ASC
        """,
        *params,
    )


async def get_top_projects(
    limit: int = 10,
    *,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
) -> Result:
    params: list[Any] = [PROJECT_DETAIL]
    conditions = ["page_type = $1", "page_identifier IS NOT NULL"]
    conditions += _range_conditions(date_from, date_to, params)
    params.append(int(limit))

    return await db.fetch_all(
        f"""
        SELECT
          page_identifier AS project_slug,
          count(*) AS views,
          count(DISTINCT ip_address) AS unique_visitors
        FROM page_views
        WHERE {' AND '.join(conditions)}
        GROUP BY page_identifier
        ORDER BY views DESC, project_slug ASC
        LIMIT ${len(params)}
        """,
        *params,
    )
