"""Caller-owned façade over the connection manager, guards and cache."""

from __future__ import annotations

import logging
import time
from typing import Any, Iterable

from .cache import ResultCache
from .config import ConnectionConfig
from .connections import ConnectionManager
from .errors import QueryExecutionError, ValidationError, ValidationKind
from .guard import validate_limit, validate_read_only_query, validate_table_schema
from .identifiers import is_valid_name, quote_identifier, sanitize_identifier
from .models import ColumnInfo, DatabaseInfo, QueryResult, TableInfo

LOG = logging.getLogger(__name__)

IDENTIFIER_PLACEHOLDER = "{identifier}"
PROTECTED_DATABASES = frozenset({"postgres", "template0", "template1"})

DATABASES_KEY = "databases"

_LIST_DATABASES_SQL = """
    SELECT
        datname AS name,
        pg_catalog.pg_get_userbyid(datdba) AS owner,
        pg_encoding_to_char(encoding) AS encoding
    FROM pg_database
    WHERE datistemplate = false
    ORDER BY datname
"""

_LIST_TABLES_SQL = """
    SELECT table_name
    FROM information_schema.tables
    WHERE table_schema = 'public'
    ORDER BY table_name
"""

_DESCRIBE_TABLE_SQL = """
    SELECT
        column_name,
        data_type,
        character_maximum_length,
        is_nullable,
        column_default
    FROM information_schema.columns
    WHERE table_name = $1 AND table_schema = 'public'
    ORDER BY ordinal_position
"""


class QueryExecutor:
    """The only entry point other components use to reach the database.

    Metadata lookups are memoized in a ``ResultCache`` (``describe_table``
    excepted); every schema change clears the whole cache.
    """

    def __init__(
        self,
        config: ConnectionConfig,
        *,
        cache: ResultCache | None = None,
        manager: ConnectionManager | None = None,
    ) -> None:
        self._manager = manager or ConnectionManager(config)
        self._cache = cache or ResultCache()

    async def __aenter__(self) -> QueryExecutor:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.disconnect()

    @property
    def cache(self) -> ResultCache:
        return self._cache

    @property
    def config(self) -> ConnectionConfig:
        return self._manager.config

    @property
    def current_database(self) -> str:
        return self._manager.current_database

    @property
    def is_connected(self) -> bool:
        return self._manager.is_connected

    async def connect(self, config: ConnectionConfig | None = None) -> None:
        self._cache.invalidate_all()
        await self._manager.connect(config)

    async def disconnect(self) -> None:
        await self._manager.disconnect()
        self._cache.invalidate_all()

    async def switch_database(self, name: str) -> None:
        _require_valid_name(name)
        try:
            await self._manager.switch_database(name)
        finally:
            self._cache.invalidate_all()

    async def list_databases(self) -> list[DatabaseInfo]:
        cached = self._cached(DATABASES_KEY)
        if cached is not None:
            return list(cached)
        result = await self._manager.execute(_LIST_DATABASES_SQL)
        databases = [
            DatabaseInfo(name=row["name"], owner=row.get("owner"), encoding=row.get("encoding"))
            for row in result.rows
        ]
        self._cache.set(DATABASES_KEY, tuple(databases))
        return databases

    async def list_tables(self) -> list[TableInfo]:
        key = f"tables_{self.current_database}"
        cached = self._cached(key)
        if cached is not None:
            return list(cached)
        result = await self._manager.execute(_LIST_TABLES_SQL)
        tables = []
        for row in result.rows:
            name = row["table_name"]
            # names that need quoting cannot pass the identifier allow-list
            row_count = await self.get_table_row_count(name) if is_valid_name(name) else 0
            tables.append(TableInfo(name=name, row_count=row_count))
        self._cache.set(key, tuple(tables))
        return tables

    async def describe_table(self, name: str) -> list[ColumnInfo]:
        result = await self._manager.execute(_DESCRIBE_TABLE_SQL, (name,))
        return [
            ColumnInfo(
                column_name=row["column_name"],
                data_type=row["data_type"],
                max_length=row.get("character_maximum_length"),
                nullable=row.get("is_nullable") == "YES",
                default=row.get("column_default"),
            )
            for row in result.rows
        ]

    async def get_table_row_count(self, name: str) -> int:
        key = f"rowcount_{sanitize_identifier(name)}"
        cached = self._cached(key)
        if cached is not None:
            return cached
        result = await self.safe_identifier_query("SELECT COUNT(*) AS count FROM {identifier}", name)
        count = int(result.rows[0]["count"]) if result.rows else 0
        self._cache.set(key, count)
        return count

    async def create_database(self, name: str) -> None:
        _require_valid_name(name)
        await self.safe_identifier_query("CREATE DATABASE {identifier}", name)
        self._cache.invalidate_all()
        LOG.info("Created database", extra={"database": name})

    async def drop_database(self, name: str) -> None:
        _require_valid_name(name)
        if name in PROTECTED_DATABASES:
            raise ValidationError(
                ValidationKind.PROTECTED_DATABASE,
                f"Refusing to drop system database {name!r}.",
            )
        await self.safe_identifier_query("DROP DATABASE IF EXISTS {identifier}", name)
        self._cache.invalidate_all()
        LOG.info("Dropped database", extra={"database": name})

    async def create_table(self, name: str, columns: str) -> None:
        _require_valid_name(name)
        fragment = validate_table_schema(columns)
        await self.safe_identifier_query("CREATE TABLE {identifier} (" + fragment + ")", name)
        self._cache.invalidate_all()
        LOG.info("Created table", extra={"database": self.current_database, "table": name})

    async def drop_table(self, name: str) -> None:
        await self.safe_identifier_query("DROP TABLE {identifier}", name)
        self._cache.invalidate_all()
        LOG.info("Dropped table", extra={"database": self.current_database, "table": name})

    async def run_custom_query(self, sql: str) -> QueryResult:
        """Run a user query after the read-only prefix check."""

        statement = validate_read_only_query(sql)
        return await self._timed(statement)

    async def run_query(self, sql: str, read_only: bool = True) -> QueryResult:
        """Run a user query; unrestricted queries clear the cache afterwards."""

        if read_only:
            return await self.run_custom_query(sql)
        statement = sql.strip() if isinstance(sql, str) else ""
        if not statement:
            raise QueryExecutionError("Provide SQL to execute.")
        try:
            return await self._timed(statement)
        finally:
            self._cache.invalidate_all()

    async def safe_identifier_query(
        self,
        template: str,
        identifier: str,
        params: Iterable[Any] = (),
    ) -> QueryResult:
        """Substitute a sanitized, quoted identifier into ``template`` and run it.

        This is the only place user-supplied identifiers are interpolated into
        SQL; values still travel as bound ``params``.
        """

        if IDENTIFIER_PLACEHOLDER not in template:
            raise ValueError(f"Template must contain {IDENTIFIER_PLACEHOLDER}")
        sql = template.replace(IDENTIFIER_PLACEHOLDER, quote_identifier(identifier), 1)
        return await self._manager.execute(sql, params)

    async def preview_table(self, name: str, limit: object = 10) -> QueryResult:
        """Return the first ``limit`` rows of a table."""

        count = validate_limit(limit)
        return await self.safe_identifier_query("SELECT * FROM {identifier} LIMIT $1", name, (count,))

    async def fetch_table(self, name: str) -> QueryResult:
        """Return every row of a table (the exporters' data source)."""

        return await self.safe_identifier_query("SELECT * FROM {identifier}", name)

    async def _timed(self, sql: str) -> QueryResult:
        started = time.perf_counter()
        result = await self._manager.execute(sql)
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        return result.with_duration(elapsed_ms)

    def _cached(self, key: str) -> Any:
        value = self._cache.get(key)
        if value is not None:
            LOG.debug("Cache hit", extra={"key": key})
        return value


def _require_valid_name(name: object) -> None:
    if not is_valid_name(name):
        raise ValidationError(
            ValidationKind.INVALID_IDENTIFIER,
            f"Invalid name {name!r}: use letters, digits and underscores, not starting with a digit.",
        )


__all__ = ["IDENTIFIER_PLACEHOLDER", "PROTECTED_DATABASES", "QueryExecutor"]
