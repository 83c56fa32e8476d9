"""Pooled PostgreSQL connection lifecycle built on asyncpg."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterable, Mapping

import asyncpg

from .config import ConnectionConfig
from .errors import ConnectionFailedError, NotConnectedError, QueryExecutionError
from .models import QueryResult

LOG = logging.getLogger(__name__)

PoolFactory = Callable[..., Awaitable[Any]]

LIVENESS_PROBE = "SELECT NOW()"


class ConnectionManager:
    """Owns the single connection pool for one caller.

    ``connect``, ``disconnect`` and ``switch_database`` are serialized by an
    asyncio lock; ``execute`` acquires its connection under the same lock so
    no statement starts against a pool that is being replaced.
    """

    def __init__(self, config: ConnectionConfig, *, pool_factory: PoolFactory | None = None) -> None:
        self._config = config
        self._pool_factory = pool_factory
        self._pool: Any | None = None
        self._lock = asyncio.Lock()

    @property
    def config(self) -> ConnectionConfig:
        return self._config

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    @property
    def current_database(self) -> str:
        return self._config.database

    async def connect(self, config: ConnectionConfig | None = None) -> None:
        """Open a pool for ``config`` (or the stored config) and probe it."""

        async with self._lock:
            if config is not None:
                self._config = config
            await self._close_pool()
            await self._open_pool()

    async def disconnect(self) -> None:
        """Close the pool if one is open."""

        async with self._lock:
            await self._close_pool()

    async def switch_database(self, name: str) -> None:
        """Reconnect to ``name``; on failure the manager is left disconnected."""

        async with self._lock:
            previous = self._config.database
            await self._close_pool()
            self._config = self._config.with_database(name)
            await self._open_pool()
            LOG.info("Switched database", extra={"from_database": previous, "to_database": name})

    async def execute(self, sql: str, params: Iterable[Any] = ()) -> QueryResult:
        """Run one statement with positionally bound ``params``."""

        async with self._lock:
            pool = self._pool
            if pool is None:
                raise NotConnectedError()
            try:
                conn = await pool.acquire()
            except Exception as exc:
                raise QueryExecutionError(f"Query failed: {exc}") from exc
        try:
            statement = await conn.prepare(sql)
            records = await statement.fetch(*tuple(params))
            status = statement.get_statusmsg()
        except Exception as exc:
            LOG.debug("Statement rejected", extra={"database": self._config.database, "error": str(exc)})
            raise QueryExecutionError(f"Query failed: {exc}") from exc
        finally:
            await pool.release(conn)
        rows = tuple(_record_to_row(record) for record in records)
        command, row_count = _parse_status(status, len(rows))
        return QueryResult(rows=rows, row_count=row_count, command=command)

    async def _open_pool(self) -> None:
        config = self._config
        factory = self._pool_factory or asyncpg.create_pool
        pool = None
        try:
            pool = await factory(**config.pool_kwargs())
            async with pool.acquire() as conn:
                await conn.fetchval(LIVENESS_PROBE)
        except BaseException as exc:
            if pool is not None:
                pool.terminate()
            if not isinstance(exc, Exception):
                raise
            LOG.error("Connection failed", extra={"target": config.describe(), "error": str(exc)})
            raise ConnectionFailedError(f"Failed to connect to {config.describe()}: {exc}") from exc
        self._pool = pool
        LOG.info("Connected", extra={"target": config.describe()})

    async def _close_pool(self) -> None:
        pool, self._pool = self._pool, None
        if pool is None:
            return
        await pool.close()
        LOG.info("Disconnected", extra={"target": self._config.describe()})


def _record_to_row(record: Any) -> Mapping[str, Any]:
    return dict(record.items())


def _parse_status(status: str | None, fetched: int) -> tuple[str, int]:
    """Split a command tag such as ``INSERT 0 3`` into ``("INSERT", 3)``."""

    parts = (status or "").split()
    if not parts:
        return "", fetched
    command = parts[0].upper()
    if len(parts) > 1 and parts[-1].isdigit():
        return command, int(parts[-1])
    return command, fetched


__all__ = ["ConnectionManager", "LIVENESS_PROBE"]
