"""Connection pools — PostgreSQL over the network, SQLite on local disk.

Both variants implement :class:`ConnectionPool`. The backend is picked once,
from the URL scheme, by :func:`open_pool`; nothing downstream branches on it.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Generator, Sequence
from urllib.parse import urlsplit

import psycopg2
import psycopg2.extras
import psycopg2.pool

from word_api.config import DatabaseConfig
from word_api.db.classify import translate_errors
from word_api.db.models import format_timestamp
from word_api.db.query import POSTGRES, SQLITE, Dialect
from word_api.errors import PoolExhaustedError, UnavailableError

logger = logging.getLogger(__name__)


class SslMode(str, Enum):
    DISABLED = "disabled"
    PREFERRED = "preferred"
    REQUIRED = "required"


# libpq spellings are accepted too
_SSL_ALIASES: dict[str, SslMode] = {
    "disabled": SslMode.DISABLED,
    "disable": SslMode.DISABLED,
    "preferred": SslMode.PREFERRED,
    "prefer": SslMode.PREFERRED,
    "required": SslMode.REQUIRED,
    "require": SslMode.REQUIRED,
}

_LIBPQ_SSLMODE: dict[SslMode, str] = {
    SslMode.DISABLED: "disable",
    SslMode.PREFERRED: "prefer",
    SslMode.REQUIRED: "require",
}


def resolve_ssl_mode(value: str | SslMode) -> SslMode:
    """Parse a transport-security mode; unknown values become ``REQUIRED``."""
    if isinstance(value, SslMode):
        return value
    mode = _SSL_ALIASES.get(str(value).strip().lower())
    if mode is None:
        logger.warning("Unknown SSL mode %r, defaulting to 'required'", value)
        return SslMode.REQUIRED
    return mode


# -- Borrowed connections ------------------------------------------------------


class Connection(ABC):
    """A borrowed connection. Each call runs exactly one statement."""

    def __init__(self, raw: Any, dialect: Dialect):
        self.raw = raw
        self.dialect = dialect
        # Rows changed by the last statement beyond its own rowcount
        # (cascades), when the backend reports it.
        self.implicit_changes: int | None = None

    @abstractmethod
    def execute(self, sql: str, params: Sequence[Any] = ()) -> int:
        """Run a write statement and return the affected row count."""

    @abstractmethod
    def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
        """Run a statement and return every row as a dict."""

    def fetch_one(self, sql: str, params: Sequence[Any] = ()) -> dict[str, Any] | None:
        rows = self.fetch_all(sql, params)
        return rows[0] if rows else None

    def is_usable(self) -> bool:
        return True


class SQLiteConnection(Connection):
    @staticmethod
    def _adapt(params: Sequence[Any]) -> tuple[Any, ...]:
        return tuple(
            format_timestamp(p) if isinstance(p, datetime) else p
            for p in params
        )

    def execute(self, sql: str, params: Sequence[Any] = ()) -> int:
        before = self.raw.total_changes
        cursor = self.raw.execute(sql, self._adapt(params))
        rowcount = max(cursor.rowcount, 0)
        self.implicit_changes = self.raw.total_changes - before - rowcount
        return rowcount

    def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
        cursor = self.raw.execute(sql, self._adapt(params))
        return [dict(row) for row in cursor.fetchall()]


class PostgresConnection(Connection):
    def execute(self, sql: str, params: Sequence[Any] = ()) -> int:
        with self.raw.cursor() as cursor:
            cursor.execute(sql, tuple(params))
            return cursor.rowcount

    def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
        with self.raw.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cursor:
            cursor.execute(sql, tuple(params))
            return [dict(row) for row in cursor.fetchall()]

    def is_usable(self) -> bool:
        return self.raw.closed == 0


# -- Pools ---------------------------------------------------------------------


class ConnectionPool(ABC):
    """Bounded pool of connections to one store.

    At most ``max_connections`` connections are borrowed at once. A borrower
    waits up to ``timeout`` seconds for a free slot, then gets
    :class:`PoolExhaustedError`.
    """

    dialect: Dialect
    backend: str

    def __init__(self, max_connections: int, timeout: float):
        if max_connections < 1:
            raise ValueError("max_connections must be at least 1")
        self.max_connections = max_connections
        self.timeout = timeout
        self._slots = threading.BoundedSemaphore(max_connections)
        self._closed = False

    @abstractmethod
    def _checkout(self) -> Connection: ...

    @abstractmethod
    def _checkin(self, conn: Connection, discard: bool) -> None: ...

    @abstractmethod
    def _close_all(self) -> None: ...

    @contextmanager
    def acquire(self) -> Generator[Connection, None, None]:
        """Borrow a connection (context manager).

        Commits when the block exits cleanly, rolls back otherwise.
        """
        if self._closed:
            raise UnavailableError("Connection pool is closed")
        if not self._slots.acquire(timeout=self.timeout):
            logger.warning(
                "No database connection free after %.1fs (max_connections=%d)",
                self.timeout,
                self.max_connections,
            )
            raise PoolExhaustedError()

        try:
            with translate_errors("acquire connection"):
                conn = self._checkout()
        except BaseException:
            self._slots.release()
            raise

        discard = False
        try:
            yield conn
            conn.raw.commit()
        except BaseException:
            if conn.is_usable():
                try:
                    conn.raw.rollback()
                except Exception as rollback_exc:
                    logger.warning("Rollback failed, discarding connection: %s", rollback_exc)
                    discard = True
            else:
                discard = True
            raise
        finally:
            self._checkin(conn, discard or not conn.is_usable())
            self._slots.release()

    def execute(self, sql: str, params: Sequence[Any] = ()) -> int:
        with self.acquire() as conn:
            return conn.execute(sql, params)

    def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
        with self.acquire() as conn:
            return conn.fetch_all(sql, params)

    def fetch_one(self, sql: str, params: Sequence[Any] = ()) -> dict[str, Any] | None:
        with self.acquire() as conn:
            return conn.fetch_one(sql, params)

    def health_check(self) -> None:
        """Round-trip a trivial statement; raises a domain error on failure."""
        with translate_errors("health check"):
            self.fetch_one("SELECT 1 AS ok")
        logger.info("Database health check successful")

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._close_all()
        logger.info("Database connection pool closed")

    def __enter__(self) -> ConnectionPool:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class SQLitePool(ConnectionPool):
    """Pool over a local SQLite file. Creates the file and its directory."""

    dialect = SQLITE
    backend = "sqlite"

    def __init__(self, path: Path, max_connections: int = 10, timeout: float = 30.0):
        super().__init__(max_connections, timeout)
        self.path = Path(path)
        self._idle: list[sqlite3.Connection] = []
        self._lock = threading.Lock()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Open one connection up front so a bad path fails here
        self._idle.append(self._connect())

    def _connect(self) -> sqlite3.Connection:
        raw = sqlite3.connect(
            str(self.path),
            timeout=self.timeout,
            check_same_thread=False,
        )
        raw.row_factory = sqlite3.Row
        raw.execute("PRAGMA journal_mode=WAL")
        raw.execute("PRAGMA foreign_keys=ON")
        return raw

    def _checkout(self) -> Connection:
        with self._lock:
            raw = self._idle.pop() if self._idle else None
        if raw is None:
            raw = self._connect()
        return SQLiteConnection(raw, self.dialect)

    def _checkin(self, conn: Connection, discard: bool) -> None:
        if discard or self._closed:
            conn.raw.close()
            return
        with self._lock:
            self._idle.append(conn.raw)

    def _close_all(self) -> None:
        with self._lock:
            idle, self._idle = self._idle, []
        for raw in idle:
            raw.close()


class PostgresPool(ConnectionPool):
    """Pool over a PostgreSQL server, backed by psycopg2's ThreadedConnectionPool."""

    dialect = POSTGRES
    backend = "postgresql"

    def __init__(
        self,
        dsn: str,
        max_connections: int = 10,
        timeout: float = 30.0,
        ssl_mode: SslMode = SslMode.REQUIRED,
        password: str | None = None,
    ):
        super().__init__(max_connections, timeout)
        self.ssl_mode = ssl_mode
        kwargs: dict[str, Any] = {
            "sslmode": _LIBPQ_SSLMODE[ssl_mode],
            "connect_timeout": max(1, int(timeout)),
            "options": f"-c statement_timeout={int(timeout * 1000)}",
        }
        if password:
            kwargs["password"] = password
        # minconn=1 opens a connection now, so an unreachable server fails here
        self._pool = psycopg2.pool.ThreadedConnectionPool(1, max_connections, dsn, **kwargs)

    def _checkout(self) -> Connection:
        return PostgresConnection(self._pool.getconn(), self.dialect)

    def _checkin(self, conn: Connection, discard: bool) -> None:
        if self._pool.closed:
            return
        self._pool.putconn(conn.raw, close=discard)

    def _close_all(self) -> None:
        self._pool.closeall()


# -- Construction --------------------------------------------------------------


def sqlite_path(url: str) -> Path:
    """File path from ``sqlite:///rel.db``, ``sqlite:////abs.db`` or ``file:...``."""
    lowered = url.lower()
    if lowered.startswith("sqlite:///"):
        rest = url[len("sqlite:///"):]
    elif lowered.startswith("file:"):
        rest = url[len("file:"):]
        if rest.startswith("//"):
            rest = rest[2:]
    else:
        raise ValueError(f"Not a SQLite URL: {url}")
    rest = rest.split("?", 1)[0]
    if not rest:
        raise ValueError("SQLite URL has no file path")
    if rest == ":memory:":
        raise ValueError("In-memory SQLite databases cannot be shared by a pool")
    return Path(rest)


def _describe(url: str) -> str:
    """Host, port and database of a network URL, without credentials."""
    parts = urlsplit(url)
    port = f":{parts.port}" if parts.port else ""
    return f"{parts.hostname}{port}{parts.path}"


def open_pool(config: DatabaseConfig) -> ConnectionPool:
    """Build the pool selected by ``config.url``.

    Raises ``ValueError`` for an unsupported URL and a domain error when the
    store cannot be reached.
    """
    ssl_mode = resolve_ssl_mode(config.ssl_mode)
    scheme = urlsplit(config.url).scheme.lower()

    if scheme in ("postgresql", "postgres"):
        logger.info("Creating PostgreSQL connection pool for %s", _describe(config.url))
        with translate_errors("open connection pool"):
            return PostgresPool(
                config.url,
                max_connections=config.max_connections,
                timeout=config.connection_timeout,
                ssl_mode=ssl_mode,
                password=config.auth_token or None,
            )

    if scheme in ("sqlite", "file"):
        path = sqlite_path(config.url)
        if ssl_mode is not SslMode.DISABLED:
            logger.debug("SSL mode %s has no effect on a local SQLite file", ssl_mode.value)
        logger.info("Opening SQLite database at %s", path)
        with translate_errors("open connection pool"):
            return SQLitePool(
                path,
                max_connections=config.max_connections,
                timeout=config.connection_timeout,
            )

    raise ValueError(f"Unsupported database URL scheme: {scheme or '(none)'}")
