"""Entities persisted by the repositories, and row conversion helpers."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from word_api.errors import ValidationFailedError

USER_COLUMNS = ("id", "name", "email", "created_at", "updated_at")
POST_COLUMNS = ("id", "user_id", "title", "content", "created_at", "updated_at")
VOCABULARY_COLUMNS = (
    "id",
    "en_word",
    "ja_word",
    "en_example",
    "ja_example",
    "created_at",
    "updated_at",
)

# Fixed width so lexical order of stored text equals chronological order
_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%f+00:00"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Render a datetime as fixed-width UTC ISO-8601 text."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(_TIMESTAMP_FORMAT)


def parse_timestamp(value: Any) -> datetime:
    """Accept a driver datetime or stored ISO text; always returns aware UTC."""
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass
class User:
    id: str
    name: str
    email: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> User:
        return cls(
            id=str(row["id"]),
            name=row["name"],
            email=row["email"],
            created_at=parse_timestamp(row["created_at"]),
            updated_at=parse_timestamp(row["updated_at"]),
        )


@dataclass
class Post:
    id: str
    user_id: str
    title: str
    content: str | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Post:
        return cls(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            title=row["title"],
            content=row["content"],
            created_at=parse_timestamp(row["created_at"]),
            updated_at=parse_timestamp(row["updated_at"]),
        )


@dataclass
class Vocabulary:
    id: int
    en_word: str
    ja_word: str
    en_example: str | None
    ja_example: str | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Vocabulary:
        return cls(
            id=int(row["id"]),
            en_word=row["en_word"],
            ja_word=row["ja_word"],
            en_example=row["en_example"],
            ja_example=row["ja_example"],
            created_at=parse_timestamp(row["created_at"]),
            updated_at=parse_timestamp(row["updated_at"]),
        )


def parse_id(value: str, resource: str) -> str:
    """Canonical UUID text, or ``ValidationFailedError`` for a malformed id."""
    try:
        return str(uuid.UUID(str(value)))
    except ValueError:
        raise ValidationFailedError(f"Invalid {resource} ID format") from None
