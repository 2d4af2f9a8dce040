"""Tests for the generic record model."""

from __future__ import annotations

from datetime import datetime

import pytest

from core.record import IdentifierError, ModelDescriptor, RecordModel, decode_json_list, order_clause
from core.result import INVALID_COLUMN, NO_CHANGES, NOT_FOUND

NOTES = ModelDescriptor(
    table="notes",
    columns=("id", "title", "body", "secret", "tags", "created_at", "updated_at"),
    fillable=("title", "body", "secret", "tags"),
    hidden=("secret",),
    json_fields=("tags",),
)


@pytest.fixture
def notes() -> RecordModel:
    return RecordModel(NOTES)


def test_descriptor_requires_explicit_allow_list() -> None:
    """An empty allow-list is rejected unless all fields are opted into."""
    with pytest.raises(ValueError):
        ModelDescriptor(table="notes", columns=("id", "title", "created_at", "updated_at"))

    everything = ModelDescriptor(
        table="notes",
        columns=("id", "title", "created_at", "updated_at"),
        allow_all_fields=True,
    )
    model = RecordModel(everything)
    assert model.filter_fillable({"title": "t", "evil; DROP": 1}) == {"title": "t"}


def test_descriptor_rejects_unknown_and_unsafe_names() -> None:
    """Allow-list entries and identifiers must be real, plain column names."""
    with pytest.raises(ValueError):
        ModelDescriptor(table="notes", columns=("id",), fillable=("title",), timestamps=False)
    with pytest.raises(ValueError):
        ModelDescriptor(table="notes; drop", columns=("id",), fillable=("id",), timestamps=False)
    with pytest.raises(ValueError):
        ModelDescriptor(table="notes", columns=("id", "title"), fillable=("title",))


def test_filter_fillable_drops_unknown_fields(notes) -> None:
    """Fields outside the allow-list are silently dropped."""
    assert notes.filter_fillable({"title": "t", "id": 9, "is_admin": True}) == {"title": "t"}


def test_hide_fields(notes) -> None:
    """Hidden fields disappear from every record."""
    records = [{"id": 1, "secret": "x"}, {"id": 2, "secret": "y", "title": "t"}]
    assert notes.hide_fields(records) == [{"id": 1}, {"id": 2, "title": "t"}]


def test_order_clause_normalizes_and_validates() -> None:
    """Only known columns with plain directions are accepted."""
    columns = {None: ("sort_order", "created_at")}
    assert order_clause("sort_order asc,  created_at DESC nulls last", columns) == (
        "sort_order ASC, created_at DESC NULLS LAST"
    )
    with pytest.raises(IdentifierError):
        order_clause("created_at; DROP TABLE users", columns)
    with pytest.raises(IdentifierError):
        order_clause("password_hash", columns)
    with pytest.raises(IdentifierError):
        order_clause("x.sort_order", columns)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ('["a.png", "b.png"]', ["a.png", "b.png"]),
        (["already", "decoded"], ["already", "decoded"]),
        (None, []),
        ("", []),
        ("{not json", []),
        ('{"a": 1}', []),
    ],
)
def test_decode_json_list_is_fail_soft(raw, expected) -> None:
    assert decode_json_list(raw) == expected


@pytest.mark.asyncio
async def test_find_all_builds_equality_where_in_key_order(notes, fake_pool) -> None:
    """WHERE, ORDER BY, LIMIT and OFFSET are all assembled with bound values."""
    fake_pool.add([{"id": 1, "title": "t", "secret": "s"}])

    result = await notes.find_all(
        where={"title": "t", "body": "b"},
        order_by="created_at DESC",
        limit=10,
        offset=20,
        select="id, title, secret",
    )

    assert result.success is True
    assert result.data == [{"id": 1, "title": "t"}]
    assert fake_pool.calls == [
        (
            "SELECT id, title, secret FROM notes WHERE title = $1 AND body = $2 "
            "ORDER BY created_at DESC LIMIT $3 OFFSET $4",
            ("t", "b", 10, 20),
        )
    ]


@pytest.mark.asyncio
async def test_find_all_rejects_unknown_identifiers_before_querying(notes, fake_pool) -> None:
    """Caller-supplied identifiers never reach statement text."""
    bad_where = await notes.find_all(where={"1=1 OR title": "x"})
    bad_order = await notes.find_all(order_by="(SELECT secret FROM notes)")
    bad_select = await notes.find_all(select=["id", "pg_sleep(10)"])

    assert [r.code for r in (bad_where, bad_order, bad_select)] == [INVALID_COLUMN] * 3
    assert fake_pool.calls == []


@pytest.mark.asyncio
async def test_find_by_id_missing_row_is_success_with_none(notes, fake_pool) -> None:
    result = await notes.find_by_id(404)

    assert result.success is True
    assert result.data is None
    assert fake_pool.calls == [("SELECT * FROM notes WHERE id = $1", (404,))]


@pytest.mark.asyncio
async def test_find_by_unknown_field_fails(notes, fake_pool) -> None:
    result = await notes.find_by("nope", 1)

    assert result.success is False
    assert result.code == INVALID_COLUMN


@pytest.mark.asyncio
async def test_create_filters_stamps_encodes_and_rereads(notes, fake_pool) -> None:
    """Create inserts only allow-listed fields and returns the stored row."""
    fake_pool.add([{"id": 7}], "INSERT 0 1")
    fake_pool.add([{"id": 7, "title": "t", "body": None, "secret": "s", "tags": '["x"]'}])

    result = await notes.create({"title": "t", "secret": "s", "tags": ["x"], "id": 1, "role": "admin"})

    assert result.success is True
    assert result.insert_id == 7
    assert result.data == {"id": 7, "title": "t", "body": None, "tags": '["x"]'}

    insert_sql, insert_args = fake_pool.calls[0]
    assert insert_sql == (
        "INSERT INTO notes (title, secret, tags, created_at, updated_at) "
        "VALUES ($1, $2, $3, $4, $5) RETURNING id"
    )
    assert insert_args[:3] == ("t", "s", '["x"]')
    assert isinstance(insert_args[3], datetime)
    assert insert_args[3] == insert_args[4]
    assert fake_pool.calls[1] == ("SELECT * FROM notes WHERE id = $1", (7,))


@pytest.mark.asyncio
async def test_update_success_returns_fresh_row(notes, fake_pool) -> None:
    fake_pool.add([], "UPDATE 1")
    fake_pool.add([{"id": 3, "title": "new", "secret": "s"}])

    result = await notes.update(3, {"title": "new", "unknown": 1})

    assert result.success is True
    assert result.affected_rows == 1
    assert result.data == {"id": 3, "title": "new"}

    update_sql, update_args = fake_pool.calls[0]
    assert update_sql == (
        "UPDATE notes SET title = $1, updated_at = $2 WHERE id = $3 AND (title IS DISTINCT FROM $1)"
    )
    assert update_args[0] == "new"
    assert update_args[2] == 3


@pytest.mark.asyncio
async def test_update_missing_row_is_not_found(notes, fake_pool) -> None:
    fake_pool.add([], "UPDATE 0").add([], "SELECT 0")

    result = await notes.update(404, {"title": "x"})

    assert result.success is False
    assert result.code == NOT_FOUND
    assert result.error == "Record not found"


@pytest.mark.asyncio
async def test_update_with_same_values_is_no_changes(notes, fake_pool) -> None:
    """An existing row that already holds the values is reported as a no-op."""
    fake_pool.add([], "UPDATE 0").add([{"found": 1}])

    result = await notes.update(3, {"title": "same"})

    assert result.success is False
    assert result.code == NO_CHANGES
    assert result.error == "No changes made"


@pytest.mark.asyncio
async def test_update_with_nothing_allowed_skips_the_update(notes, fake_pool) -> None:
    fake_pool.add([{"found": 1}])

    result = await notes.update(3, {"id": 99})

    assert result.code == NO_CHANGES
    assert fake_pool.statements == ["SELECT 1 AS found FROM notes WHERE id = $1"]


@pytest.mark.asyncio
async def test_delete_missing_row_is_success_with_zero(notes, fake_pool) -> None:
    fake_pool.add([], "DELETE 0")

    result = await notes.delete(404)

    assert result.success is True
    assert result.affected_rows == 0
    assert result.as_dict() == {"success": True, "affectedRows": 0}


@pytest.mark.asyncio
async def test_count_uses_same_where_rules(notes, fake_pool) -> None:
    fake_pool.add([{"count": 4}])

    result = await notes.count({"title": "t"})

    assert result.success is True
    assert result.count == 4
    assert fake_pool.calls == [("SELECT count(*) AS count FROM notes WHERE title = $1", ("t",))]
