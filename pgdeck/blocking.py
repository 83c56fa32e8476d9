"""Synchronous wrapper for callers that are not running an event loop."""

from __future__ import annotations

import asyncio
import threading
from typing import Any, Coroutine, TypeVar

from .config import ConnectionConfig
from .executor import QueryExecutor
from .models import ColumnInfo, DatabaseInfo, QueryResult, TableInfo

T = TypeVar("T")


class BlockingQueryExecutor:
    """Runs a ``QueryExecutor`` on a private background event loop.

    Calls from any thread are submitted to that loop and block until the
    coroutine finishes, so the async executor is never entered concurrently
    from two loops.
    """

    def __init__(self, config: ConnectionConfig, *, executor: QueryExecutor | None = None) -> None:
        self._executor = executor or QueryExecutor(config)
        self._loop = asyncio.new_event_loop()
        self._loop_thread = threading.Thread(
            target=self._loop.run_forever,
            name="pgdeck-executor",
            daemon=True,
        )
        self._loop_thread.start()

    @property
    def executor(self) -> QueryExecutor:
        return self._executor

    @property
    def current_database(self) -> str:
        return self._executor.current_database

    @property
    def is_connected(self) -> bool:
        return self._executor.is_connected

    def connect(self, config: ConnectionConfig | None = None) -> None:
        self._run(self._executor.connect(config))

    def disconnect(self) -> None:
        self._run(self._executor.disconnect())

    def switch_database(self, name: str) -> None:
        self._run(self._executor.switch_database(name))

    def list_databases(self) -> list[DatabaseInfo]:
        return self._run(self._executor.list_databases())

    def create_database(self, name: str) -> None:
        self._run(self._executor.create_database(name))

    def drop_database(self, name: str) -> None:
        self._run(self._executor.drop_database(name))

    def list_tables(self) -> list[TableInfo]:
        return self._run(self._executor.list_tables())

    def describe_table(self, name: str) -> list[ColumnInfo]:
        return self._run(self._executor.describe_table(name))

    def get_table_row_count(self, name: str) -> int:
        return self._run(self._executor.get_table_row_count(name))

    def create_table(self, name: str, columns: str) -> None:
        self._run(self._executor.create_table(name, columns))

    def drop_table(self, name: str) -> None:
        self._run(self._executor.drop_table(name))

    def run_query(self, sql: str, read_only: bool = True) -> QueryResult:
        return self._run(self._executor.run_query(sql, read_only=read_only))

    def preview_table(self, name: str, limit: object = 10) -> QueryResult:
        return self._run(self._executor.preview_table(name, limit))

    def fetch_table(self, name: str) -> QueryResult:
        return self._run(self._executor.fetch_table(name))

    def shutdown(self) -> None:
        """Disconnect and stop the background event loop."""

        if not self._loop.is_running():
            return
        try:
            self._run(self._executor.disconnect())
        finally:
            self._loop.call_soon_threadsafe(self._loop.stop)
            self._loop_thread.join(timeout=1)

    def _run(self, coro: Coroutine[Any, Any, T]) -> T:
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        return future.result()


__all__ = ["BlockingQueryExecutor"]
