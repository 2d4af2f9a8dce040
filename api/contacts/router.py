"""
Contact-form submission (public) and inbox management (admin).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from auth import dependencies as auth_dependencies
from core.responses import ensure_ok

from . import repository, schemas

router = APIRouter(prefix="/api/contacts")


@router.post("", status_code=201)
async def submit_contact(payload: schemas.ContactRequest, request: Request) -> dict:
    return ensure_ok(
        await repository.contacts.create(
            {
                **payload.model_dump(),
                "status": "unread",
                "ip_address": request.client.host if request.client else None,
                "user_agent": request.headers.get("user-agent"),
            }
        )
    )


@router.get("")
async def list_contacts(
    status: str | None = Query(default=None),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    _: dict = Depends(auth_dependencies.require_admin),
) -> dict:
    if status is None:
        result = await repository.contacts.find_all(order_by="created_at DESC", limit=limit, offset=offset)
    elif status in repository.STATUSES:
        result = await repository.find_by_status(status, limit=limit, offset=offset)
    else:
        raise HTTPException(status_code=400, detail=f"Unknown status: {status}")
    return ensure_ok(result)


@router.get("/stats")
async def contact_stats(_: dict = Depends(auth_dependencies.require_admin)) -> dict:
    return ensure_ok(await repository.get_stats())


@router.post("/{contact_id}/read")
async def mark_read(contact_id: int, _: dict = Depends(auth_dependencies.require_admin)) -> dict:
    return ensure_ok(await repository.mark_as_read(contact_id))


@router.post("/{contact_id}/reply")
async def mark_replied(
    contact_id: int,
    payload: schemas.ReplyRequest,
    _: dict = Depends(auth_dependencies.require_admin),
) -> dict:
    return ensure_ok(await repository.mark_as_replied(contact_id, payload.reply_message))


@router.post("/{contact_id}/archive")
async def archive(contact_id: int, _: dict = Depends(auth_dependencies.require_admin)) -> dict:
    return ensure_ok(await repository.archive(contact_id))


@router.delete("/{contact_id}")
async def delete_contact(contact_id: int, _: dict = Depends(auth_dependencies.require_admin)) -> dict:
    return ensure_ok(await repository.contacts.delete(contact_id))
