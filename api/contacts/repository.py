"""
Contact-form messages and their status workflow.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from core import db
from core.record import ModelDescriptor, RecordModel
from core.result import Result

STATUSES = ("unread", "read", "replied", "archived")

CONTACTS = ModelDescriptor(
    table="contacts",
    columns=(
        "id",
        "name",
        "email",
        "subject",
        "message",
        "status",
        "ip_address",
        "user_agent",
        "reply_message",
        "replied_at",
        "created_at",
        "updated_at",
    ),
    fillable=(
        "name",
        "email",
        "subject",
        "message",
        "status",
        "ip_address",
        "user_agent",
        "reply_message",
        "replied_at",
    ),
)

contacts = RecordModel(CONTACTS)


async def find_by_status(
    status: str,
    *,
    where: dict[str, Any] | None = None,
    order_by: str | None = None,
    limit: int | None = None,
    offset: int | None = None,
) -> Result:
    return await contacts.find_all(
        where={**(where or {}), "status": status},
        order_by=order_by or "created_at DESC",
        limit=limit,
        offset=offset,
    )


async def mark_as_read(contact_id: int) -> Result:
    return await contacts.update(contact_id, {"status": "read"})


async def mark_as_replied(contact_id: int, reply_message: str) -> Result:
    return await contacts.update(
        contact_id,
        {
            "status": "replied",
            "reply_message": reply_message,
            "replied_at": datetime.now(timezone.utc),
        },
    )


async def archive(contact_id: int) -> Result:
    return await contacts.update(contact_id, {"status": "archived"})


async def get_stats() -> Result:
    result = await db.fetch_one(
        """
        SELECT
          count(*) AS total,
          count(*) FILTER (WHERE status = 'unread') AS unread,
          count(*) FILTER (WHERE status = 'read') AS "read",
          count(*) FILTER (WHERE status = 'replied') AS replied,
          count(*) FILTER (WHERE status = 'archived') AS archived,
          count(*) FILTER (WHERE created_at >= now() - interval '7 days') AS last_week,
          count(*) FILTER (WHERE created_at >= now() - interval '30 days') AS last_month
        FROM contacts
        """
    )
    if not result.success:
        return result
    if result.data is None:
        return Result.fail("Unable to get stats")
    return Result.ok({key: int(value) for key, value in result.data.items()})
