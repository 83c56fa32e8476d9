"""Keyword-based guards for free-form SQL supplied by users.

These checks classify statements by prefix and substring only. They are not
a parser: a statement that starts with ``WITH`` is accepted even if a data
modifying CTE hides inside it.
"""

from __future__ import annotations

import re

from .errors import ValidationError, ValidationKind

READ_ONLY_PREFIXES: tuple[str, ...] = ("SELECT", "WITH", "SHOW", "DESCRIBE", "EXPLAIN")

DANGEROUS_KEYWORDS: tuple[str, ...] = (
    "DROP",
    "DELETE",
    "TRUNCATE",
    "ALTER",
    "CREATE DATABASE",
    "DROP DATABASE",
    "GRANT",
    "REVOKE",
)

MAX_LIMIT = 10_000

# "<column> <type>" at the start of a column list
_SCHEMA_SHAPE_RE = re.compile(r"^\s*[A-Za-z_][A-Za-z0-9_]*\s+[A-Za-z]+")
_LIMIT_RE = re.compile(r"[+-]?[0-9]+")


def validate_read_only_query(sql: object) -> str:
    """Return the trimmed statement if it starts with a read-only keyword."""

    if not isinstance(sql, str) or not sql.strip():
        raise ValidationError(ValidationKind.NOT_READ_ONLY, "Provide SQL to execute.")
    statement = sql.strip()
    if not statement.upper().startswith(READ_ONLY_PREFIXES):
        allowed = ", ".join(READ_ONLY_PREFIXES)
        raise ValidationError(
            ValidationKind.NOT_READ_ONLY,
            f"Only read-only queries are allowed ({allowed}).",
        )
    return statement


def validate_table_schema(fragment: object) -> str:
    """Check a ``CREATE TABLE`` column list and return it trimmed."""

    if not isinstance(fragment, str) or not fragment.strip():
        raise ValidationError(ValidationKind.INVALID_SCHEMA_FORMAT, "Column definitions cannot be empty.")
    upper = fragment.upper()
    for keyword in DANGEROUS_KEYWORDS:
        if keyword in upper:
            raise ValidationError(
                ValidationKind.DANGEROUS_KEYWORD,
                f"Column definitions may not contain {keyword}.",
                keyword=keyword,
            )
    if not _SCHEMA_SHAPE_RE.match(fragment):
        raise ValidationError(
            ValidationKind.INVALID_SCHEMA_FORMAT,
            "Column definitions must start with '<name> <type>'.",
        )
    return fragment.strip()


def validate_limit(raw: object) -> int:
    """Parse a row limit and require ``0 < n <= MAX_LIMIT``."""

    value: int | None = None
    if isinstance(raw, int) and not isinstance(raw, bool):
        value = raw
    elif isinstance(raw, str):
        text = raw.strip()
        if _LIMIT_RE.fullmatch(text):
            value = int(text)
    if value is None or value <= 0 or value > MAX_LIMIT:
        raise ValidationError(
            ValidationKind.INVALID_LIMIT,
            f"Limit must be a whole number between 1 and {MAX_LIMIT}.",
        )
    return value


__all__ = [
    "DANGEROUS_KEYWORDS",
    "MAX_LIMIT",
    "READ_ONLY_PREFIXES",
    "validate_limit",
    "validate_read_only_query",
    "validate_table_schema",
]
