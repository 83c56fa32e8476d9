"""Shared fakes standing in for an asyncpg pool and a PostgreSQL server."""

from __future__ import annotations

import asyncio
import re
from typing import Any

import pytest


class FakePostgresError(Exception):
    """Raised by the fake server for statements it rejects."""


_IDENT = r'"?([A-Za-z_][A-Za-z0-9_]*)"?'


class FakeEngine:
    """Tiny in-memory catalog understanding the statements pgdeck issues."""

    def __init__(self, databases: tuple[str, ...] = ("postgres", "template0", "template1")) -> None:
        self.catalog: dict[str, dict[str, dict[str, Any]]] = {name: {} for name in databases}
        self.statements: list[tuple[str, tuple[Any, ...]]] = []
        self.pools: list[FakePool] = []
        self.fail_probe = False
        self.hang_probe = False
        self.executions: list[tuple[FakePool, bool]] = []
        self.fail_connect = False

    async def create_pool(self, **kwargs: Any) -> FakePool:
        if self.fail_connect:
            raise OSError("connection refused")
        database = kwargs.get("database", "postgres")
        if database not in self.catalog:
            raise FakePostgresError(f'database "{database}" does not exist')
        pool = FakePool(self, database, kwargs)
        self.pools.append(pool)
        return pool

    @property
    def open_pools(self) -> list[FakePool]:
        return [pool for pool in self.pools if not pool.closed]

    def run(self, database: str, sql: str, args: tuple[Any, ...]) -> tuple[list[dict[str, Any]], str]:
        self.statements.append((sql, args))
        text = " ".join(sql.split())
        tables = self.catalog[database]

        if "FROM pg_database" in text:
            rows = [
                {"name": name, "owner": "postgres", "encoding": "UTF8"}
                for name in sorted(self.catalog)
                if not name.startswith("template")
            ]
            return rows, f"SELECT {len(rows)}"
        if "FROM information_schema.tables" in text:
            rows = [{"table_name": name} for name in sorted(tables)]
            return rows, f"SELECT {len(rows)}"
        if "FROM information_schema.columns" in text:
            table = tables.get(args[0])
            rows = [
                {
                    "column_name": column,
                    "data_type": data_type,
                    "character_maximum_length": None,
                    "is_nullable": "NO" if "PRIMARY KEY" in definition.upper() else "YES",
                    "column_default": None,
                }
                for column, data_type, definition in (table["columns"] if table else ())
            ]
            return rows, f"SELECT {len(rows)}"
        match = re.fullmatch(rf"SELECT COUNT\(\*\) AS count FROM {_IDENT}", text)
        if match:
            table = self._table(tables, match.group(1))
            return [{"count": len(table["rows"])}], "SELECT 1"
        match = re.fullmatch(rf"CREATE TABLE {_IDENT} \((.*)\)", text, re.IGNORECASE)
        if match:
            name = match.group(1)
            if name in tables:
                raise FakePostgresError(f'relation "{name}" already exists')
            columns = []
            for definition in match.group(2).split(","):
                column, data_type, *_ = definition.split()
                columns.append((column, data_type.lower(), definition.strip()))
            tables[name] = {"columns": columns, "rows": []}
            return [], "CREATE TABLE"
        match = re.fullmatch(rf"DROP TABLE {_IDENT}", text, re.IGNORECASE)
        if match:
            self._table(tables, match.group(1))
            del tables[match.group(1)]
            return [], "DROP TABLE"
        match = re.fullmatch(rf"CREATE DATABASE {_IDENT}", text, re.IGNORECASE)
        if match:
            if match.group(1) in self.catalog:
                raise FakePostgresError(f'database "{match.group(1)}" already exists')
            self.catalog[match.group(1)] = {}
            return [], "CREATE DATABASE"
        match = re.fullmatch(rf"DROP DATABASE IF EXISTS {_IDENT}", text, re.IGNORECASE)
        if match:
            self.catalog.pop(match.group(1), None)
            return [], "DROP DATABASE"
        match = re.fullmatch(rf"INSERT INTO {_IDENT} VALUES \((\d+)\)", text, re.IGNORECASE)
        if match:
            table = self._table(tables, match.group(1))
            table["rows"].append({table["columns"][0][0]: int(match.group(2))})
            return [], "INSERT 0 1"
        match = re.fullmatch(rf"SELECT \* FROM {_IDENT}(?: LIMIT \$1)?", text, re.IGNORECASE)
        if match:
            rows = list(self._table(tables, match.group(1))["rows"])
            if args:
                rows = rows[: args[0]]
            return rows, f"SELECT {len(rows)}"
        raise FakePostgresError(f"syntax error at or near {text.split()[0]!r}")

    @staticmethod
    def _table(tables: dict[str, dict[str, Any]], name: str) -> dict[str, Any]:
        if name not in tables:
            raise FakePostgresError(f'relation "{name}" does not exist')
        return tables[name]


class FakeStatement:
    def __init__(self, connection: FakeConnection, sql: str) -> None:
        self._connection = connection
        self._sql = sql
        self._status = ""

    async def fetch(self, *args: Any) -> list[dict[str, Any]]:
        pool = self._connection.pool
        self._connection.engine.executions.append((pool, pool.closed))
        rows, self._status = self._connection.engine.run(self._connection.database, self._sql, args)
        return rows

    def get_statusmsg(self) -> str:
        return self._status


class FakeConnection:
    def __init__(self, pool: FakePool) -> None:
        self.pool = pool
        self.engine = pool.engine
        self.database = pool.database

    async def fetchval(self, sql: str) -> str:
        if self.engine.hang_probe:
            await asyncio.Event().wait()
        if self.engine.fail_probe:
            raise FakePostgresError("probe failed")
        assert sql == "SELECT NOW()"
        return "2026-01-01 00:00:00+00"

    async def prepare(self, sql: str) -> FakeStatement:
        return FakeStatement(self, sql)


class _Acquire:
    def __init__(self, pool: FakePool) -> None:
        self._pool = pool
        self._conn: FakeConnection | None = None

    def __await__(self):  # type: ignore[no-untyped-def]
        return self._pool._checkout().__await__()

    async def __aenter__(self) -> FakeConnection:
        self._conn = await self._pool._checkout()
        return self._conn

    async def __aexit__(self, *exc_info: object) -> None:
        if self._conn is not None:
            await self._pool.release(self._conn)


class FakePool:
    def __init__(self, engine: FakeEngine, database: str, kwargs: dict[str, Any]) -> None:
        self.engine = engine
        self.database = database
        self.kwargs = kwargs
        self.closed = False
        self.terminated = False
        self.in_use = 0

    def acquire(self) -> _Acquire:
        return _Acquire(self)

    async def release(self, conn: FakeConnection) -> None:
        self.in_use -= 1

    async def close(self) -> None:
        self.closed = True

    def terminate(self) -> None:
        self.closed = True
        self.terminated = True

    async def _checkout(self) -> FakeConnection:
        if self.closed:
            raise RuntimeError("pool is closed")
        self.in_use += 1
        return FakeConnection(self)


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
