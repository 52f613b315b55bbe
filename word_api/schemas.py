"""Request models — field validation and normalization ahead of the data layer.

The repositories trust these values: names and titles are trimmed, emails are
trimmed and lower-cased, empty optional text becomes ``None``.
"""

from __future__ import annotations

import re
import uuid
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_EMAIL_LOCAL = re.compile(r"^[\w.+-]+$")
_EMAIL_DOMAIN = re.compile(r"^[\w-]+(\.[\w-]+)+$")


def normalize_email(value: str) -> str:
    """Trim, lower-case and sanity-check an email address."""
    email = value.strip().lower()
    local, sep, domain = email.partition("@")
    if (
        not sep
        or not local
        or len(local) > 64
        or len(domain) > 253
        or not _EMAIL_LOCAL.match(local)
        or not _EMAIL_DOMAIN.match(domain)
    ):
        raise ValueError("Invalid email format")
    return email


def normalize_uuid(value: str) -> str:
    try:
        return str(uuid.UUID(value.strip()))
    except (ValueError, AttributeError) as exc:
        raise ValueError("must be a valid UUID") from exc


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


class _Request(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    def changes(self) -> dict[str, Any]:
        """Fields the client actually sent, in declaration order."""
        return self.model_dump(exclude_unset=True)


# -- Users ---------------------------------------------------------------------


class CreateUserRequest(_Request):
    name: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=1, max_length=255)

    @field_validator("email")
    @classmethod
    def _email(cls, value: str) -> str:
        return normalize_email(value)


class UpdateUserRequest(_Request):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    email: str | None = Field(default=None, min_length=1, max_length=255)

    @field_validator("email")
    @classmethod
    def _email(cls, value: str | None) -> str | None:
        return normalize_email(value) if value is not None else None

    @model_validator(mode="after")
    def _at_least_one(self) -> UpdateUserRequest:
        if not self.model_fields_set:
            raise ValueError("At least one field (name or email) must be provided for update")
        for field in ("name", "email"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


# -- Posts ---------------------------------------------------------------------


class CreatePostRequest(_Request):
    user_id: str
    title: str = Field(min_length=1, max_length=200)
    content: str | None = Field(default=None, max_length=10000)

    @field_validator("user_id")
    @classmethod
    def _user_id(cls, value: str) -> str:
        return normalize_uuid(value)

    @field_validator("content")
    @classmethod
    def _content(cls, value: str | None) -> str | None:
        return _blank_to_none(value)


class UpdatePostRequest(_Request):
    """``content`` may be sent as ``null`` to clear it."""

    title: str | None = Field(default=None, min_length=1, max_length=200)
    content: str | None = Field(default=None, max_length=10000)

    @field_validator("content")
    @classmethod
    def _content(cls, value: str | None) -> str | None:
        return _blank_to_none(value)

    @model_validator(mode="after")
    def _at_least_one(self) -> UpdatePostRequest:
        if not self.model_fields_set:
            raise ValueError("At least one field (title or content) must be provided for update")
        if "title" in self.model_fields_set and self.title is None:
            raise ValueError("title cannot be null")
        return self


# -- Vocabulary ----------------------------------------------------------------


class CreateVocabularyRequest(_Request):
    en_word: str = Field(min_length=1, max_length=200)
    ja_word: str = Field(min_length=1, max_length=200)
    en_example: str | None = Field(default=None, max_length=1000)
    ja_example: str | None = Field(default=None, max_length=1000)

    @field_validator("en_example", "ja_example")
    @classmethod
    def _example(cls, value: str | None) -> str | None:
        return _blank_to_none(value)
