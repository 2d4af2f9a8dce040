"""
User persistence.

`password_hash` is hidden from every generic read. The only paths that see
it are `verify_password` (which strips it again) and the password writers.
"""

from __future__ import annotations

from typing import Any, Mapping

from core import db
from core.record import ModelDescriptor, RecordModel
from core.result import INVALID_PASSWORD, NOT_FOUND, PASSWORD_REQUIRED, Result

from . import security

USERS = ModelDescriptor(
    table="users",
    columns=(
        "id",
        "username",
        "email",
        "password_hash",
        "first_name",
        "last_name",
        "role",
        "created_at",
        "updated_at",
    ),
    fillable=("username", "email", "password_hash", "first_name", "last_name", "role"),
    hidden=("password_hash",),
)

users = RecordModel(USERS)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


async def create_with_password(data: Mapping[str, Any]) -> Result:
    """
    Create a user from a plaintext `password`; only the bcrypt hash is stored.
    """
    values = dict(data)
    password = values.pop("password", None)
    if not password:
        return Result.fail("Password is required", PASSWORD_REQUIRED)

    if "email" in values:
        values["email"] = normalize_email(values["email"])
    values["password_hash"] = security.hash_password(password)
    return await users.create(values)


async def verify_password(email: str, password: str) -> Result:
    # Read the raw row: the generic finders would strip the hash.
    result = await db.fetch_one(
        "SELECT * FROM users WHERE lower(email) = lower($1)",
        normalize_email(email),
    )
    if not result.success:
        return result
    if result.data is None:
        return Result.fail("User not found", NOT_FOUND)

    user = result.data
    if not security.verify_password(password, str(user.get("password_hash") or "")):
        return Result.fail("Invalid password", INVALID_PASSWORD)

    return Result.ok(users.hide_one(user))


async def update_password(user_id: int, new_password: str) -> Result:
    if not new_password:
        return Result.fail("Password is required", PASSWORD_REQUIRED)

    password_hash = security.hash_password(new_password)
    return await db.execute(
        """
        UPDATE users
        SET password_hash = $1,
            updated_at = now()
        WHERE id = $2
        """,
        password_hash,
        user_id,
    )
