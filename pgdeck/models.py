"""Result dataclasses shared by the connection manager and the executor."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping

Row = Mapping[str, Any]


@dataclass(frozen=True, slots=True)
class QueryResult:
    """Rows returned by a statement plus its command tag."""

    rows: tuple[Row, ...]
    row_count: int
    command: str
    duration_ms: int | None = None

    @property
    def columns(self) -> tuple[str, ...]:
        if not self.rows:
            return ()
        return tuple(self.rows[0].keys())

    def with_duration(self, duration_ms: int) -> QueryResult:
        return replace(self, duration_ms=duration_ms)


@dataclass(frozen=True, slots=True)
class DatabaseInfo:
    name: str
    owner: str | None
    encoding: str | None


@dataclass(frozen=True, slots=True)
class TableInfo:
    name: str
    row_count: int


@dataclass(frozen=True, slots=True)
class ColumnInfo:
    """One row of ``information_schema.columns`` for a table."""

    column_name: str
    data_type: str
    max_length: int | None
    nullable: bool
    default: str | None


__all__ = ["ColumnInfo", "DatabaseInfo", "QueryResult", "Row", "TableInfo"]
