"""
Table-agnostic CRUD over raw SQL.

A `ModelDescriptor` says which table a model owns, which columns exist,
which of them callers may write (`fillable`) and which are never returned
(`hidden`). A `RecordModel` turns that descriptor into the usual
find/create/update/delete/count operations. Entity modules (projects,
skills, ...) own one `RecordModel` each and add their own queries next to
it.

Only values are bound as parameters. Identifiers (table, columns, ORDER BY
terms) are checked against the descriptor before they reach statement text.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Sequence

from . import db
from .result import INVALID_COLUMN, NO_CHANGES, NOT_FOUND, Result

_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]*$")
_ORDER_TERM = re.compile(
    r"^(?:(?P<alias>[a-z_][a-z0-9_]*)\.)?(?P<column>[a-z_][a-z0-9_]*)"
    r"(?:\s+(?P<direction>asc|desc))?"
    r"(?:\s+nulls\s+(?P<nulls>first|last))?$",
    re.IGNORECASE,
)


class IdentifierError(ValueError):
    pass


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def encode_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=True)


def decode_json_list(raw: Any) -> list:
    """
    Decode a JSON array stored as text.

    Empty, malformed or non-array input yields [] instead of an error.
    """
    if raw is None:
        return []
    if isinstance(raw, list):
        return raw
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")
    if not isinstance(raw, str) or not raw.strip():
        return []
    try:
        value = json.loads(raw)
    except ValueError:
        return []
    return value if isinstance(value, list) else []


def order_clause(order_by: str, columns_by_alias: Mapping[str | None, Iterable[str]]) -> str:
    """
    Validate a raw ORDER BY expression and return it normalized.

    Accepts comma-separated `[alias.]column [ASC|DESC] [NULLS FIRST|LAST]`
    terms. `None` in `columns_by_alias` holds the unqualified columns.
    """
    allowed = {alias: set(cols) for alias, cols in columns_by_alias.items()}
    terms: list[str] = []
    for raw_term in (order_by or "").split(","):
        term = " ".join(raw_term.split())
        match = _ORDER_TERM.match(term)
        if match is None:
            raise IdentifierError(f"Invalid order expression: {raw_term.strip()!r}")

        alias = match.group("alias")
        column = match.group("column").lower()
        if alias is not None:
            alias = alias.lower()
        if alias not in allowed or column not in allowed[alias]:
            name = f"{alias}.{column}" if alias else column
            raise IdentifierError(f"Unknown order column: {name}")

        parts = [f"{alias}.{column}" if alias else column]
        if match.group("direction"):
            parts.append(match.group("direction").upper())
        if match.group("nulls"):
            parts.append(f"NULLS {match.group('nulls').upper()}")
        terms.append(" ".join(parts))

    if not terms:
        raise IdentifierError("Empty order expression.")
    return ", ".join(terms)


@dataclass(frozen=True)
class ModelDescriptor:
    table: str
    columns: tuple[str, ...]
    fillable: tuple[str, ...] = ()
    hidden: tuple[str, ...] = ()
    timestamps: bool = True
    json_fields: tuple[str, ...] = ()
    # Mass assignment of every column has to be asked for explicitly.
    allow_all_fields: bool = False

    def __post_init__(self) -> None:
        for name in (self.table, *self.columns):
            if not _IDENTIFIER.match(name):
                raise ValueError(f"Invalid SQL identifier: {name!r}")

        if not self.fillable and not self.allow_all_fields:
            raise ValueError(f"{self.table}: declare fillable fields or set allow_all_fields=True.")

        known = set(self.columns)
        unknown = (set(self.fillable) | set(self.hidden) | set(self.json_fields)) - known
        if unknown:
            raise ValueError(f"{self.table}: unknown columns {sorted(unknown)}")

        if self.timestamps and not {"created_at", "updated_at"} <= known:
            raise ValueError(f"{self.table}: timestamps need created_at and updated_at columns.")


class RecordModel:
    def __init__(self, descriptor: ModelDescriptor) -> None:
        self.descriptor = descriptor

    @property
    def table(self) -> str:
        return self.descriptor.table

    # --- identifier checks ------------------------------------------------

    def check_columns(self, names: Iterable[str]) -> None:
        known = self.descriptor.columns
        for name in names:
            if name not in known:
                raise IdentifierError(f"Unknown column for {self.table}: {name}")

    def _select_list(self, select: str | Sequence[str] | None) -> str:
        if not select or select == "*":
            return "*"
        if isinstance(select, str):
            names = [part.strip() for part in select.split(",") if part.strip()]
        else:
            names = list(select)
        self.check_columns(names)
        return ", ".join(names)

    def where_clause(self, where: Mapping[str, Any] | None, *, start: int = 1) -> tuple[str, list[Any]]:
        """
        Build ` WHERE a = $1 AND b = $2` in mapping order.
        """
        if not where:
            return "", []
        self.check_columns(where)
        conditions = []
        params = []
        for position, (key, value) in enumerate(where.items(), start=start):
            conditions.append(f"{key} = ${position}")
            params.append(value)
        return " WHERE " + " AND ".join(conditions), params

    def order_clause(self, order_by: str) -> str:
        return order_clause(order_by, {None: self.descriptor.columns})

    # --- pure projections ---------------------------------------------------

    def filter_fillable(self, data: Mapping[str, Any]) -> dict[str, Any]:
        if self.descriptor.allow_all_fields:
            return {k: v for k, v in data.items() if k in self.descriptor.columns}
        return {field: data[field] for field in self.descriptor.fillable if field in data}

    def hide_fields(self, records: list[dict[str, Any]]) -> list[dict[str, Any]]:
        hidden = self.descriptor.hidden
        if not hidden:
            return records
        return [{k: v for k, v in record.items() if k not in hidden} for record in records]

    def hide_one(self, record: dict[str, Any] | None) -> dict[str, Any] | None:
        if record is None:
            return None
        return self.hide_fields([record])[0]

    def _encode(self, data: dict[str, Any]) -> dict[str, Any]:
        out = dict(data)
        for field in self.descriptor.json_fields:
            value = out.get(field)
            if value is not None and not isinstance(value, str):
                out[field] = encode_json(value)
        return out

    # --- operations -----------------------------------------------------------

    async def query(self, sql: str, *args: Any) -> Result:
        return await db.query(sql, *args)

    async def find_all(
        self,
        *,
        where: Mapping[str, Any] | None = None,
        order_by: str | None = None,
        limit: int | None = None,
        offset: int | None = None,
        select: str | Sequence[str] | None = None,
    ) -> Result:
        try:
            columns = self._select_list(select)
            where_sql, params = self.where_clause(where)
            order_sql = f" ORDER BY {self.order_clause(order_by)}" if order_by else ""
        except IdentifierError as exc:
            return Result.fail(str(exc), INVALID_COLUMN)

        sql = f"SELECT {columns} FROM {self.table}{where_sql}{order_sql}"
        if limit:
            params.append(int(limit))
            sql += f" LIMIT ${len(params)}"
        if offset:
            params.append(int(offset))
            sql += f" OFFSET ${len(params)}"

        result = await db.fetch_all(sql, *params)
        if not result.success:
            return result
        return Result.ok(self.hide_fields(result.data))

    async def find_by_id(self, record_id: Any) -> Result:
        return await self.find_by("id", record_id)

    async def find_by(self, field: str, value: Any) -> Result:
        try:
            self.check_columns([field])
        except IdentifierError as exc:
            return Result.fail(str(exc), INVALID_COLUMN)

        result = await db.fetch_one(f"SELECT * FROM {self.table} WHERE {field} = $1", value)
        if not result.success:
            return result
        return Result.ok(self.hide_one(result.data))

    async def create(self, data: Mapping[str, Any]) -> Result:
        values = self._encode(self.filter_fillable(data))
        if self.descriptor.timestamps:
            now = _utc_now()
            values["created_at"] = now
            values["updated_at"] = now

        if values:
            fields = ", ".join(values)
            placeholders = ", ".join(f"${i}" for i in range(1, len(values) + 1))
            sql = f"INSERT INTO {self.table} ({fields}) VALUES ({placeholders}) RETURNING id"
        else:
            sql = f"INSERT INTO {self.table} DEFAULT VALUES RETURNING id"

        result = await db.execute(sql, *values.values())
        if not result.success:
            return result

        created = await self.find_by_id(result.insert_id)
        if not created.success:
            return created
        return Result.ok(created.data, insert_id=result.insert_id)

    async def update(self, record_id: Any, data: Mapping[str, Any]) -> Result:
        """
        Update allow-listed fields of one row.

        Zero affected rows is a failure with code `not_found` (no such id)
        or `no_changes` (the row already holds these values).
        """
        changes = self._encode(self.filter_fillable(data))
        if not changes:
            return await self._update_miss(record_id)

        assignments = dict(changes)
        if self.descriptor.timestamps:
            assignments["updated_at"] = _utc_now()

        columns = list(assignments)
        set_sql = ", ".join(f"{col} = ${i}" for i, col in enumerate(columns, start=1))
        # Reuse the SET parameters so unchanged rows are not touched.
        changed_sql = " OR ".join(
            f"{col} IS DISTINCT FROM ${i}" for i, col in enumerate(columns, start=1) if col in changes
        )
        id_position = len(columns) + 1
        sql = f"UPDATE {self.table} SET {set_sql} WHERE id = ${id_position} AND ({changed_sql})"

        result = await db.execute(sql, *assignments.values(), record_id)
        if not result.success:
            return result
        if result.affected_rows == 0:
            return await self._update_miss(record_id)

        updated = await self.find_by_id(record_id)
        if not updated.success:
            return updated
        return Result.ok(updated.data, affected_rows=result.affected_rows)

    async def _update_miss(self, record_id: Any) -> Result:
        found = await db.fetch_one(f"SELECT 1 AS found FROM {self.table} WHERE id = $1", record_id)
        if not found.success:
            return found
        if found.data is None:
            return Result.fail("Record not found", NOT_FOUND)
        return Result.fail("No changes made", NO_CHANGES)

    async def delete(self, record_id: Any) -> Result:
        result = await db.execute(f"DELETE FROM {self.table} WHERE id = $1", record_id)
        if not result.success:
            return result
        return Result.ok(affected_rows=result.affected_rows)

    async def count(self, where: Mapping[str, Any] | None = None) -> Result:
        try:
            where_sql, params = self.where_clause(where)
        except IdentifierError as exc:
            return Result.fail(str(exc), INVALID_COLUMN)

        result = await db.fetch_one(f"SELECT count(*) AS count FROM {self.table}{where_sql}", *params)
        if not result.success:
            return result
        return Result.ok(count=int(result.data["count"]))
