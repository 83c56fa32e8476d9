"""Safe query execution layer for a PostgreSQL admin front end."""

from __future__ import annotations

from .blocking import BlockingQueryExecutor
from .cache import ResultCache
from .config import ConnectionConfig, load_config
from .connections import ConnectionManager
from .errors import (
    ConnectionFailedError,
    NotConnectedError,
    PgdeckError,
    QueryExecutionError,
    ValidationError,
    ValidationKind,
)
from .executor import QueryExecutor
from .models import ColumnInfo, DatabaseInfo, QueryResult, TableInfo

__all__ = [
    "BlockingQueryExecutor",
    "ColumnInfo",
    "ConnectionConfig",
    "ConnectionFailedError",
    "ConnectionManager",
    "DatabaseInfo",
    "NotConnectedError",
    "PgdeckError",
    "QueryExecutionError",
    "QueryExecutor",
    "QueryResult",
    "ResultCache",
    "TableInfo",
    "ValidationError",
    "ValidationKind",
    "load_config",
]
