"""Pytest configuration: a scripted stand-in for the asyncpg pool."""

from __future__ import annotations

import os
from collections import deque
from typing import Any

import pytest


def _ensure_test_env() -> None:
    """Seed environment variables for tests."""
    os.environ.setdefault("BCRYPT_ROUNDS", "4")
    os.environ.setdefault("JWT_SECRET", "test-secret-for-portfolio-api-tokens-0123456789")
    os.environ.setdefault("FRONTEND_URL", "http://frontend.test")


_ensure_test_env()

from core import db  # noqa: E402


class FakeStatement:
    def __init__(self, pool: "FakePool", sql: str) -> None:
        self._pool = pool
        self._sql = sql
        self._status = ""

    async def fetch(self, *args: Any) -> list[dict]:
        self._pool.calls.append((" ".join(self._sql.split()), args))
        response = self._pool.next_response()
        if isinstance(response, BaseException):
            raise response
        rows, status = response
        self._status = status
        return [dict(row) for row in rows]

    def get_statusmsg(self) -> str:
        return self._status


class FakeTransaction:
    def __init__(self, pool: "FakePool") -> None:
        self._pool = pool

    async def __aenter__(self) -> "FakeTransaction":
        self._pool.events.append("begin")
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        self._pool.events.append("commit" if exc_type is None else "rollback")
        return False


class FakeConnection:
    def __init__(self, pool: "FakePool") -> None:
        self._pool = pool

    async def prepare(self, sql: str) -> FakeStatement:
        return FakeStatement(self._pool, sql)

    def transaction(self) -> FakeTransaction:
        return FakeTransaction(self._pool)


class FakePool:
    """
    Answers statements in the order responses were queued.

    Unqueued statements get an empty SELECT result.
    """

    def __init__(self) -> None:
        self.responses: deque = deque()
        self.calls: list[tuple[str, tuple]] = []
        self.events: list[str] = []
        self.acquired = 0
        self.released = 0
        self.acquire_error: BaseException | None = None

    def add(self, rows: list[dict] | None = None, status: str | None = None) -> "FakePool":
        rows = rows or []
        self.responses.append((rows, status if status is not None else f"SELECT {len(rows)}"))
        return self

    def fail(self, exc: BaseException) -> "FakePool":
        self.responses.append(exc)
        return self

    def next_response(self) -> Any:
        if self.responses:
            return self.responses.popleft()
        return ([], "SELECT 0")

    async def acquire(self, timeout: float | None = None) -> FakeConnection:
        if self.acquire_error is not None:
            raise self.acquire_error
        self.acquired += 1
        return FakeConnection(self)

    async def release(self, conn: FakeConnection) -> None:
        self.released += 1

    async def close(self) -> None:
        self.events.append("close")

    @property
    def statements(self) -> list[str]:
        return [sql for sql, _ in self.calls]


@pytest.fixture
def fake_pool(monkeypatch) -> FakePool:
    pool = FakePool()
    monkeypatch.setattr(db, "_pool", pool)
    return pool
