"""Allow-list checks for identifiers that end up interpolated into SQL."""

from __future__ import annotations

import re

from .errors import ValidationError, ValidationKind

MAX_IDENTIFIER_LENGTH = 63
MAX_FILENAME_LENGTH = 255

_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_NON_IDENTIFIER_RE = re.compile(r"[^A-Za-z0-9_]")
_PATH_CHARS_RE = re.compile(r"[./\\]")
_NON_FILENAME_RE = re.compile(r"[^A-Za-z0-9_-]")


def is_valid_name(name: object) -> bool:
    """Return True when ``name`` can be used verbatim as a database or table name."""

    if not isinstance(name, str) or not name:
        return False
    return bool(_NAME_RE.fullmatch(name)) and len(name) <= MAX_IDENTIFIER_LENGTH


def sanitize_identifier(identifier: object) -> str:
    """Strip everything outside ``[A-Za-z0-9_]``.

    Identifiers cannot be bound as parameters, so this is the only guard for
    identifier positions in SQL templates. Raises ``ValidationError`` when
    nothing usable remains or the result exceeds the server's identifier limit.
    """

    if not isinstance(identifier, str) or not identifier:
        raise ValidationError(ValidationKind.INVALID_IDENTIFIER, "Identifier must be a non-empty string.")
    cleaned = _NON_IDENTIFIER_RE.sub("", identifier)
    if not cleaned or len(cleaned) > MAX_IDENTIFIER_LENGTH:
        raise ValidationError(
            ValidationKind.INVALID_IDENTIFIER,
            f"Invalid identifier {identifier!r}: use 1-{MAX_IDENTIFIER_LENGTH} letters, digits or underscores.",
        )
    return cleaned


def quote_identifier(identifier: object) -> str:
    """Sanitize and double-quote an identifier for interpolation."""

    return f'"{sanitize_identifier(identifier)}"'


def sanitize_filename(filename: object) -> str:
    """Reduce a user-supplied name to a file name without path components."""

    if not isinstance(filename, str) or not filename:
        raise ValidationError(ValidationKind.INVALID_FILENAME, "File name must be a non-empty string.")
    cleaned = _NON_FILENAME_RE.sub("", _PATH_CHARS_RE.sub("_", filename))[:MAX_FILENAME_LENGTH]
    if not cleaned:
        raise ValidationError(ValidationKind.INVALID_FILENAME, f"Invalid file name {filename!r}.")
    return cleaned


__all__ = [
    "MAX_IDENTIFIER_LENGTH",
    "is_valid_name",
    "quote_identifier",
    "sanitize_filename",
    "sanitize_identifier",
]
