"""
Result envelope returned by every data-access call.

Callers branch on `success` before touching `data`:

    result = await projects.find_featured(3)
    if not result.success:
        ...  # result.error / result.code
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# Application-level failure codes. Driver failures carry the SQLSTATE instead.
NOT_FOUND = "not_found"
NO_CHANGES = "no_changes"
INVALID_COLUMN = "invalid_column"
PASSWORD_REQUIRED = "password_required"
ACQUIRE_TIMEOUT = "acquire_timeout"
INVALID_PASSWORD = "invalid_password"
# Driver failure with neither a SQLSTATE nor an errno.
DATABASE_ERROR = "database_error"


@dataclass(frozen=True)
class QueryResult:
    rows: list[dict[str, Any]] = field(default_factory=list)
    status: str = ""
    affected_rows: int = 0
    inserted_id: Any = None


@dataclass(frozen=True)
class Result:
    success: bool
    data: Any = None
    error: str | None = None
    code: str | None = None
    insert_id: Any = None
    affected_rows: int | None = None
    count: int | None = None

    @classmethod
    def ok(cls, data: Any = None, **extra: Any) -> Result:
        return cls(success=True, data=data, **extra)

    @classmethod
    def fail(cls, error: str, code: str | None = None) -> Result:
        return cls(success=False, error=error, code=code)

    def as_dict(self) -> dict[str, Any]:
        """
        Render the wire shape: {success, data?, error?, code?, insertId?, affectedRows?, count?}.
        """
        out: dict[str, Any] = {"success": self.success}
        if self.success:
            # Raw write metadata is already surfaced as insertId/affectedRows.
            if self.data is not None and not isinstance(self.data, QueryResult):
                out["data"] = self.data
            if self.insert_id is not None:
                out["insertId"] = self.insert_id
            if self.affected_rows is not None:
                out["affectedRows"] = self.affected_rows
            if self.count is not None:
                out["count"] = self.count
            return out

        out["error"] = self.error
        if self.code is not None:
            out["code"] = self.code
        return out
