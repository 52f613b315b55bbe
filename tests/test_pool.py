"""Tests for connection pools and backend selection."""

import logging
import threading
import time
from unittest.mock import MagicMock, patch

import psycopg2
import psycopg2.pool
import pytest

from word_api.config import DatabaseConfig
from word_api.db.pool import (
    PostgresPool,
    SQLitePool,
    SslMode,
    open_pool,
    resolve_ssl_mode,
    sqlite_path,
)
from word_api.errors import PoolExhaustedError, UnavailableError

PG_FACTORY = "word_api.db.pool.psycopg2.pool.ThreadedConnectionPool"


class TestSslMode:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("disabled", SslMode.DISABLED),
            ("disable", SslMode.DISABLED),
            ("Preferred", SslMode.PREFERRED),
            ("prefer", SslMode.PREFERRED),
            (" REQUIRED ", SslMode.REQUIRED),
            ("require", SslMode.REQUIRED),
            (SslMode.PREFERRED, SslMode.PREFERRED),
        ],
    )
    def test_known_values(self, value, expected):
        assert resolve_ssl_mode(value) is expected

    def test_unknown_defaults_to_required(self, caplog):
        with caplog.at_level(logging.WARNING, logger="word_api.db.pool"):
            assert resolve_ssl_mode("verify-everything") is SslMode.REQUIRED
        assert "verify-everything" in caplog.text


class TestSqlitePath:
    def test_relative(self):
        assert str(sqlite_path("sqlite:///data/words.db")) == "data/words.db"

    def test_absolute(self):
        assert str(sqlite_path("sqlite:////tmp/words.db")) == "/tmp/words.db"

    def test_file_scheme(self):
        assert str(sqlite_path("file:local.db")) == "local.db"

    def test_query_string_dropped(self):
        assert str(sqlite_path("sqlite:///words.db?mode=rwc")) == "words.db"

    def test_memory_rejected(self):
        with pytest.raises(ValueError):
            sqlite_path("sqlite:///:memory:")

    def test_empty_rejected(self):
        with pytest.raises(ValueError):
            sqlite_path("sqlite:///")


class TestOpenPool:
    def test_sqlite_creates_file_and_directory(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "words.db"
        pool = open_pool(DatabaseConfig(url=f"sqlite:///{path}"))
        try:
            assert isinstance(pool, SQLitePool)
            assert pool.backend == "sqlite"
            assert path.exists()
        finally:
            pool.close()

    def test_sqlite_limits_from_config(self, tmp_path):
        config = DatabaseConfig(
            url=f"sqlite:///{tmp_path / 'w.db'}", max_connections=3, connection_timeout=2.5
        )
        with open_pool(config) as pool:
            assert pool.max_connections == 3
            assert pool.timeout == 2.5

    def test_unsupported_scheme(self):
        with pytest.raises(ValueError, match="mysql"):
            open_pool(DatabaseConfig(url="mysql://localhost/words"))

    @pytest.mark.parametrize("scheme", ["postgresql", "postgres"])
    def test_postgres_schemes(self, scheme):
        url = f"{scheme}://app@db.internal:5432/words"
        with patch(PG_FACTORY) as factory:
            pool = open_pool(DatabaseConfig(url=url, max_connections=5, connection_timeout=3))
        assert isinstance(pool, PostgresPool)
        factory.assert_called_once_with(
            1,
            5,
            url,
            sslmode="require",
            connect_timeout=3,
            options="-c statement_timeout=3000",
        )

    def test_postgres_ssl_and_token(self):
        config = DatabaseConfig(
            url="postgresql://app@db/words", ssl_mode="disabled", auth_token="s3cret"
        )
        with patch(PG_FACTORY) as factory:
            pool = open_pool(config)
        assert pool.ssl_mode is SslMode.DISABLED
        kwargs = factory.call_args.kwargs
        assert kwargs["sslmode"] == "disable"
        assert kwargs["password"] == "s3cret"

    def test_postgres_unknown_ssl_mode_is_required(self):
        with patch(PG_FACTORY) as factory:
            open_pool(DatabaseConfig(url="postgresql://app@db/words", ssl_mode="bogus"))
        assert factory.call_args.kwargs["sslmode"] == "require"

    def test_postgres_unreachable_is_unavailable(self):
        with patch(PG_FACTORY, side_effect=psycopg2.OperationalError("could not connect")):
            with pytest.raises(UnavailableError):
                open_pool(DatabaseConfig(url="postgresql://app@db/words"))


class TestSQLitePool:
    @pytest.fixture
    def small_pool(self, tmp_path):
        pool = SQLitePool(tmp_path / "pool.db", max_connections=1, timeout=0.05)
        pool.execute("CREATE TABLE t (x INTEGER)")
        yield pool
        pool.close()

    def test_health_check(self, small_pool, caplog):
        with caplog.at_level(logging.INFO, logger="word_api.db.pool"):
            small_pool.health_check()
        assert "health check successful" in caplog.text

    def test_exhausted_after_timeout(self, small_pool):
        with small_pool.acquire():
            with pytest.raises(PoolExhaustedError):
                with small_pool.acquire():
                    pass

    def test_waiter_gets_released_slot(self, tmp_path):
        pool = SQLitePool(tmp_path / "wait.db", max_connections=1, timeout=5.0)
        held = threading.Event()
        release = threading.Event()

        def holder():
            with pool.acquire():
                held.set()
                release.wait(5)

        thread = threading.Thread(target=holder)
        thread.start()
        try:
            assert held.wait(5)
            threading.Timer(0.2, release.set).start()
            start = time.monotonic()
            with pool.acquire() as conn:
                assert conn.fetch_one("SELECT 1 AS ok") == {"ok": 1}
            assert time.monotonic() - start >= 0.1
        finally:
            release.set()
            thread.join(5)
            pool.close()

    def test_exhausted_is_unavailable(self):
        assert issubclass(PoolExhaustedError, UnavailableError)

    def test_slot_released_after_use(self, small_pool):
        with small_pool.acquire():
            pass
        with small_pool.acquire() as conn:
            assert conn.fetch_one("SELECT 1 AS ok") == {"ok": 1}

    def test_slot_released_after_error(self, small_pool):
        with pytest.raises(RuntimeError):
            with small_pool.acquire():
                raise RuntimeError("boom")
        small_pool.health_check()

    def test_commit_on_success(self, small_pool):
        with small_pool.acquire() as conn:
            conn.execute("INSERT INTO t VALUES (1)")
        assert small_pool.fetch_one("SELECT COUNT(*) AS n FROM t") == {"n": 1}

    def test_rollback_on_error(self, small_pool):
        with pytest.raises(RuntimeError):
            with small_pool.acquire() as conn:
                conn.execute("INSERT INTO t VALUES (1)")
                raise RuntimeError("abort")
        assert small_pool.fetch_one("SELECT COUNT(*) AS n FROM t") == {"n": 0}

    def test_execute_returns_rowcount(self, small_pool):
        small_pool.execute("INSERT INTO t VALUES (1), (2), (3)")
        assert small_pool.execute("DELETE FROM t WHERE x > 1") == 2

    def test_fetch_one_none(self, small_pool):
        assert small_pool.fetch_one("SELECT x FROM t") is None

    def test_closed_pool_unavailable(self, small_pool):
        small_pool.close()
        with pytest.raises(UnavailableError):
            small_pool.health_check()

    def test_close_twice(self, small_pool):
        small_pool.close()
        small_pool.close()

    def test_rejects_zero_connections(self, tmp_path):
        with pytest.raises(ValueError):
            SQLitePool(tmp_path / "x.db", max_connections=0)


class TestPostgresPool:
    @pytest.fixture
    def pg(self):
        with patch(PG_FACTORY) as factory:
            pool = PostgresPool("postgresql://app@db/words", max_connections=2, timeout=1)
        factory.return_value.closed = False
        raw = MagicMock()
        raw.closed = 0
        factory.return_value.getconn.return_value = raw
        return pool, factory.return_value, raw

    def test_commit_and_return(self, pg):
        pool, inner, raw = pg
        with pool.acquire():
            pass
        raw.commit.assert_called_once()
        inner.putconn.assert_called_once_with(raw, close=False)

    def test_rollback_on_error(self, pg):
        pool, inner, raw = pg
        with pytest.raises(RuntimeError):
            with pool.acquire():
                raise RuntimeError("boom")
        raw.rollback.assert_called_once()
        raw.commit.assert_not_called()
        inner.putconn.assert_called_once_with(raw, close=False)

    def test_broken_connection_discarded(self, pg):
        pool, inner, raw = pg
        with pytest.raises(RuntimeError):
            with pool.acquire():
                raw.closed = 2
                raise RuntimeError("connection lost")
        raw.rollback.assert_not_called()
        inner.putconn.assert_called_once_with(raw, close=True)

    def test_fetch_all_returns_dicts(self, pg):
        pool, _, raw = pg
        cursor = raw.cursor.return_value.__enter__.return_value
        cursor.fetchall.return_value = [{"ok": 1}]
        assert pool.fetch_all("SELECT 1 AS ok") == [{"ok": 1}]
        cursor.execute.assert_called_once_with("SELECT 1 AS ok", ())

    def test_health_check_failure(self, pg):
        pool, _, raw = pg
        cursor = raw.cursor.return_value.__enter__.return_value
        cursor.execute.side_effect = psycopg2.OperationalError("server closed the connection")
        with pytest.raises(UnavailableError):
            pool.health_check()

    def test_checkout_failure_releases_slot(self, pg):
        pool, inner, _ = pg
        inner.getconn.side_effect = psycopg2.pool.PoolError("connection pool exhausted")
        for _ in range(3):
            with pytest.raises(UnavailableError) as info:
                with pool.acquire():
                    pass
            assert not isinstance(info.value, PoolExhaustedError)

    def test_close(self, pg):
        pool, inner, _ = pg
        pool.close()
        inner.closeall.assert_called_once()
