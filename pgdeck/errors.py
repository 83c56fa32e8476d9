"""Error taxonomy raised by the query execution layer."""

from __future__ import annotations

from enum import Enum


class PgdeckError(RuntimeError):
    """Base class for every error raised by pgdeck."""


class ConnectionFailedError(PgdeckError):
    """Raised when the pool cannot be created or fails its liveness probe."""


class NotConnectedError(PgdeckError):
    """Raised when a statement is issued before a successful connect."""

    def __init__(self, message: str = "Not connected to a database.") -> None:
        super().__init__(message)


class QueryExecutionError(PgdeckError):
    """Raised when the server rejects a statement."""


class ValidationKind(Enum):
    """Reasons an input is rejected before any network call."""

    INVALID_IDENTIFIER = "invalid_identifier"
    INVALID_LIMIT = "invalid_limit"
    DANGEROUS_KEYWORD = "dangerous_keyword"
    INVALID_SCHEMA_FORMAT = "invalid_schema_format"
    NOT_READ_ONLY = "not_read_only"
    INVALID_FILENAME = "invalid_filename"
    PROTECTED_DATABASE = "protected_database"


class ValidationError(PgdeckError, ValueError):
    """Input rejected by the identifier validator or the query guard."""

    def __init__(self, kind: ValidationKind, message: str, *, keyword: str | None = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.keyword = keyword


__all__ = [
    "ConnectionFailedError",
    "NotConnectedError",
    "PgdeckError",
    "QueryExecutionError",
    "ValidationError",
    "ValidationKind",
]
