"""Error classification — backend failures to the domain error taxonomy.

Both backends expose structured codes: PostgreSQL SQLSTATE (``pgcode`` on
psycopg2 errors) and SQLite extended result codes (``sqlite_errorname`` /
``sqlite_errorcode``). Those tables are the primary mechanism. Substring
matching on the message is a degraded-confidence fallback, used only when
the exception carries no code at all.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from typing import Generator, Mapping

import psycopg2

from word_api.errors import ERROR_CLASSES, DomainError, ErrorKind

logger = logging.getLogger(__name__)

# -- PostgreSQL SQLSTATE -------------------------------------------------------

_PG_CODES: dict[str, ErrorKind] = {
    "23505": ErrorKind.CONFLICT,  # unique_violation
    "23P01": ErrorKind.CONFLICT,  # exclusion_violation
    "23503": ErrorKind.VALIDATION_FAILED,  # foreign_key_violation
    "23502": ErrorKind.VALIDATION_FAILED,  # not_null_violation
    "23514": ErrorKind.VALIDATION_FAILED,  # check_violation
    "22P02": ErrorKind.VALIDATION_FAILED,  # invalid_text_representation
    "22001": ErrorKind.VALIDATION_FAILED,  # string_data_right_truncation
    "22003": ErrorKind.VALIDATION_FAILED,  # numeric_value_out_of_range
    "22007": ErrorKind.VALIDATION_FAILED,  # invalid_datetime_format
    "22008": ErrorKind.VALIDATION_FAILED,  # datetime_field_overflow
    "42501": ErrorKind.PERMISSION_DENIED,  # insufficient_privilege
    "57014": ErrorKind.UNAVAILABLE,  # query_canceled (statement_timeout)
    "40001": ErrorKind.UNAVAILABLE,  # serialization_failure
    "40P01": ErrorKind.UNAVAILABLE,  # deadlock_detected
}

# Checked after the exact table, by the two-character SQLSTATE class.
_PG_CLASSES: dict[str, ErrorKind] = {
    "08": ErrorKind.UNAVAILABLE,  # connection exception
    "22": ErrorKind.VALIDATION_FAILED,  # data exception
    "28": ErrorKind.PERMISSION_DENIED,  # invalid authorization specification
    "53": ErrorKind.UNAVAILABLE,  # insufficient resources
    "57": ErrorKind.UNAVAILABLE,  # operator intervention
}

# -- SQLite result codes -------------------------------------------------------

_SQLITE_NAMES: dict[str, ErrorKind] = {
    "SQLITE_CONSTRAINT_UNIQUE": ErrorKind.CONFLICT,
    "SQLITE_CONSTRAINT_PRIMARYKEY": ErrorKind.CONFLICT,
    "SQLITE_CONSTRAINT_FOREIGNKEY": ErrorKind.VALIDATION_FAILED,
    "SQLITE_CONSTRAINT_NOTNULL": ErrorKind.VALIDATION_FAILED,
    "SQLITE_CONSTRAINT_CHECK": ErrorKind.VALIDATION_FAILED,
}

# Primary result codes (low byte of the extended code).
_SQLITE_PRIMARY: dict[int, ErrorKind] = {
    3: ErrorKind.PERMISSION_DENIED,  # SQLITE_PERM
    5: ErrorKind.UNAVAILABLE,  # SQLITE_BUSY
    6: ErrorKind.UNAVAILABLE,  # SQLITE_LOCKED
    8: ErrorKind.PERMISSION_DENIED,  # SQLITE_READONLY
    10: ErrorKind.UNAVAILABLE,  # SQLITE_IOERR
    13: ErrorKind.UNAVAILABLE,  # SQLITE_FULL
    14: ErrorKind.UNAVAILABLE,  # SQLITE_CANTOPEN
    18: ErrorKind.VALIDATION_FAILED,  # SQLITE_TOOBIG
    19: ErrorKind.VALIDATION_FAILED,  # SQLITE_CONSTRAINT without an extended code
    20: ErrorKind.VALIDATION_FAILED,  # SQLITE_MISMATCH
    23: ErrorKind.PERMISSION_DENIED,  # SQLITE_AUTH
}

# -- Exception types without a code --------------------------------------------

_UNAVAILABLE_TYPES: tuple[type[BaseException], ...] = (
    psycopg2.OperationalError,
    psycopg2.InterfaceError,
    sqlite3.OperationalError,
    TimeoutError,
    ConnectionError,
)

# Raised by the drivers while adapting a parameter, before the statement is
# sent: integers too wide for the column, NUL bytes in PostgreSQL strings.
_DATA_TYPES: tuple[type[BaseException], ...] = (
    OverflowError,
    ValueError,
)

# -- Degraded fallback: message substrings, first match wins --------------------

_MESSAGE_PATTERNS: tuple[tuple[str, ErrorKind], ...] = (
    ("unique constraint", ErrorKind.CONFLICT),
    ("duplicate key", ErrorKind.CONFLICT),
    ("already exists", ErrorKind.CONFLICT),
    ("foreign key", ErrorKind.VALIDATION_FAILED),
    ("not null constraint", ErrorKind.VALIDATION_FAILED),
    ("check constraint", ErrorKind.VALIDATION_FAILED),
    ("invalid input syntax", ErrorKind.VALIDATION_FAILED),
    ("value too long", ErrorKind.VALIDATION_FAILED),
    ("out of range", ErrorKind.VALIDATION_FAILED),
    ("permission denied", ErrorKind.PERMISSION_DENIED),
    ("access denied", ErrorKind.PERMISSION_DENIED),
    ("authentication failed", ErrorKind.PERMISSION_DENIED),
    ("database is locked", ErrorKind.UNAVAILABLE),
    ("timed out", ErrorKind.UNAVAILABLE),
    ("timeout", ErrorKind.UNAVAILABLE),
    ("connection", ErrorKind.UNAVAILABLE),
)


def _structured_code(exc: BaseException) -> str | int | None:
    pgcode = getattr(exc, "pgcode", None)
    if pgcode:
        return pgcode
    name = getattr(exc, "sqlite_errorname", None)
    if name:
        return name
    return getattr(exc, "sqlite_errorcode", None)


def _kind_from_code(code: str | int) -> ErrorKind:
    if isinstance(code, int):
        return _SQLITE_PRIMARY.get(code & 0xFF, ErrorKind.UNKNOWN)
    if code.startswith("SQLITE_"):
        if code in _SQLITE_NAMES:
            return _SQLITE_NAMES[code]
        return ErrorKind.UNKNOWN
    if code in _PG_CODES:
        return _PG_CODES[code]
    return _PG_CLASSES.get(code[:2], ErrorKind.UNKNOWN)


def _kind_from_message(exc: BaseException) -> ErrorKind | None:
    text = str(exc).lower()
    for needle, kind in _MESSAGE_PATTERNS:
        if needle in text:
            return kind
    return None


def classify_kind(exc: BaseException) -> ErrorKind:
    """Pick the taxonomy kind for ``exc`` without building an error."""
    if isinstance(exc, DomainError):
        return exc.kind

    code = _structured_code(exc)
    if code is not None:
        kind = _kind_from_code(code)
        # SQLite reports most constraint and I/O failures with an extended
        # name; fall back to the primary code when the name is unmapped.
        if kind is ErrorKind.UNKNOWN and isinstance(code, str) and code.startswith("SQLITE_"):
            primary = getattr(exc, "sqlite_errorcode", None)
            if primary is not None:
                kind = _kind_from_code(primary)
        return kind

    if isinstance(exc, _UNAVAILABLE_TYPES):
        return ErrorKind.UNAVAILABLE
    if isinstance(exc, _DATA_TYPES):
        return ErrorKind.VALIDATION_FAILED

    kind = _kind_from_message(exc)
    if kind is not None:
        logger.warning(
            "Classified %s as %s from message text (no structured code)",
            type(exc).__name__,
            kind.value,
        )
        return kind
    return ErrorKind.UNKNOWN


def classify(
    exc: BaseException,
    operation: str = "database operation",
    messages: Mapping[ErrorKind, str] | None = None,
) -> DomainError:
    """Map ``exc`` to a domain error carrying only a canned public message.

    ``messages`` may replace the default public message for specific kinds;
    they must be fixed strings, never text derived from ``exc``.
    """
    if isinstance(exc, DomainError):
        return exc

    kind = classify_kind(exc)
    if kind is ErrorKind.UNKNOWN:
        logger.error(
            "Unclassified database error during %s: %s: %s",
            operation,
            type(exc).__name__,
            exc,
            exc_info=exc,
        )
    else:
        logger.info("%s failed (%s): %s", operation, kind.value, exc)

    message = (messages or {}).get(kind)
    return ERROR_CLASSES[kind](message)


@contextmanager
def translate_errors(operation: str, **messages: str) -> Generator[None, None, None]:
    """Re-raise anything escaping the block as a classified domain error.

    Keyword arguments are per-kind public messages, e.g.
    ``translate_errors("create user", conflict="Email already registered")``.
    """
    overrides = {ErrorKind[key.upper()]: text for key, text in messages.items()}
    try:
        yield
    except DomainError:
        raise
    except Exception as exc:
        raise classify(exc, operation, overrides) from exc
