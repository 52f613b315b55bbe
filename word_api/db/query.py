"""SQL helpers — placeholder dialects and the partial-update statement builder."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Sequence

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _check_identifier(name: str) -> str:
    if not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return name


@dataclass(frozen=True)
class Dialect:
    """How a backend spells positional parameters.

    ``paramstyle`` follows DB-API naming: ``qmark`` (``?``), ``format``
    (``%s``) or ``numeric`` (``$1``, ``$2``, ...).
    """

    name: str
    paramstyle: str

    def param(self, index: int) -> str:
        """Placeholder for the 1-based parameter ``index``."""
        if index < 1:
            raise ValueError("Parameter index starts at 1")
        if self.paramstyle == "qmark":
            return "?"
        if self.paramstyle == "format":
            return "%s"
        if self.paramstyle == "numeric":
            return f"${index}"
        raise ValueError(f"Unsupported paramstyle: {self.paramstyle}")

    def params(self, count: int, start: int = 1) -> str:
        """Comma-separated placeholders for ``count`` parameters from ``start``."""
        return ", ".join(self.param(i) for i in range(start, start + count))


SQLITE = Dialect("sqlite", "qmark")
POSTGRES = Dialect("postgresql", "format")


class UpdateBuilder:
    """Builds ``UPDATE ... SET`` statements covering only the supplied columns.

    Assignments are rendered in the order they were added. The timestamp
    column is always appended after them and the key predicate is always the
    last bound parameter, so placeholder numbering and the params tuple stay
    aligned for any combination of present fields.
    """

    def __init__(self, table: str, dialect: Dialect, timestamp_column: str = "updated_at"):
        self.table = _check_identifier(table)
        self.dialect = dialect
        self.timestamp_column = _check_identifier(timestamp_column)
        self._assignments: list[tuple[str, Any]] = []

    def set(self, column: str, value: Any) -> UpdateBuilder:
        column = _check_identifier(column)
        if column == self.timestamp_column:
            raise ValueError(f"{column} is managed by the builder")
        if any(existing == column for existing, _ in self._assignments):
            raise ValueError(f"Column {column} assigned twice")
        self._assignments.append((column, value))
        return self

    def set_fields(self, fields: Mapping[str, Any]) -> UpdateBuilder:
        for column, value in fields.items():
            self.set(column, value)
        return self

    @property
    def columns(self) -> list[str]:
        return [column for column, _ in self._assignments]

    def build(
        self,
        key_column: str,
        key_value: Any,
        now: datetime,
        returning: Sequence[str] = (),
    ) -> tuple[str, tuple[Any, ...]]:
        """Render the statement and its parameters."""
        key_column = _check_identifier(key_column)
        sets: list[str] = []
        params: list[Any] = []
        for column, value in self._assignments:
            params.append(value)
            sets.append(f"{column} = {self.dialect.param(len(params))}")

        params.append(now)
        sets.append(f"{self.timestamp_column} = {self.dialect.param(len(params))}")

        params.append(key_value)
        sql = (
            f"UPDATE {self.table} SET {', '.join(sets)} "
            f"WHERE {key_column} = {self.dialect.param(len(params))}"
        )
        if returning:
            sql += " RETURNING " + ", ".join(_check_identifier(c) for c in returning)
        return sql, tuple(params)
