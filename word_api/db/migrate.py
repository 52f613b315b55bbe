"""Schema migration — idempotent create-if-absent statements, run once at startup."""

from __future__ import annotations

import logging

from word_api.db.classify import translate_errors
from word_api.db.pool import ConnectionPool

logger = logging.getLogger(__name__)

# (name, statement) pairs, applied in order. Every statement is a no-op
# against an already-migrated store.
_SQLITE_MIGRATIONS: list[tuple[str, str]] = [
    (
        "users table",
        """CREATE TABLE IF NOT EXISTS users (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL CHECK (length(name) <= 255),
            email TEXT NOT NULL UNIQUE COLLATE NOCASE CHECK (length(email) <= 255),
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )""",
    ),
    ("users email index", "CREATE INDEX IF NOT EXISTS idx_users_email ON users(email)"),
    (
        "posts table",
        """CREATE TABLE IF NOT EXISTS posts (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            title TEXT NOT NULL CHECK (length(title) <= 500),
            content TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )""",
    ),
    ("posts user_id index", "CREATE INDEX IF NOT EXISTS idx_posts_user_id ON posts(user_id)"),
    (
        "posts created_at index",
        "CREATE INDEX IF NOT EXISTS idx_posts_created_at ON posts(created_at DESC)",
    ),
    (
        "vocabulary table",
        """CREATE TABLE IF NOT EXISTS vocabulary (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            en_word TEXT NOT NULL CHECK (length(en_word) <= 200),
            ja_word TEXT NOT NULL CHECK (length(ja_word) <= 200),
            en_example TEXT,
            ja_example TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )""",
    ),
    (
        "vocabulary en_word index",
        "CREATE INDEX IF NOT EXISTS idx_vocabulary_en_word ON vocabulary(en_word)",
    ),
    (
        "vocabulary ja_word index",
        "CREATE INDEX IF NOT EXISTS idx_vocabulary_ja_word ON vocabulary(ja_word)",
    ),
    (
        "vocabulary created_at index",
        "CREATE INDEX IF NOT EXISTS idx_vocabulary_created_at ON vocabulary(created_at DESC)",
    ),
]

_POSTGRES_MIGRATIONS: list[tuple[str, str]] = [
    (
        "users table",
        """CREATE TABLE IF NOT EXISTS users (
            id UUID PRIMARY KEY,
            name VARCHAR(255) NOT NULL,
            email VARCHAR(255) UNIQUE NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )""",
    ),
    ("users email index", "CREATE INDEX IF NOT EXISTS idx_users_email ON users(email)"),
    (
        "users lower(email) unique index",
        "CREATE UNIQUE INDEX IF NOT EXISTS idx_users_email_lower ON users(LOWER(email))",
    ),
    (
        "posts table",
        """CREATE TABLE IF NOT EXISTS posts (
            id UUID PRIMARY KEY,
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            title VARCHAR(500) NOT NULL,
            content TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )""",
    ),
    ("posts user_id index", "CREATE INDEX IF NOT EXISTS idx_posts_user_id ON posts(user_id)"),
    (
        "posts created_at index",
        "CREATE INDEX IF NOT EXISTS idx_posts_created_at ON posts(created_at DESC)",
    ),
    (
        "vocabulary table",
        """CREATE TABLE IF NOT EXISTS vocabulary (
            id SERIAL PRIMARY KEY,
            en_word VARCHAR(200) NOT NULL,
            ja_word VARCHAR(200) NOT NULL,
            en_example TEXT,
            ja_example TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )""",
    ),
    (
        "vocabulary en_word index",
        "CREATE INDEX IF NOT EXISTS idx_vocabulary_en_word ON vocabulary(en_word)",
    ),
    (
        "vocabulary ja_word index",
        "CREATE INDEX IF NOT EXISTS idx_vocabulary_ja_word ON vocabulary(ja_word)",
    ),
    (
        "vocabulary created_at index",
        "CREATE INDEX IF NOT EXISTS idx_vocabulary_created_at ON vocabulary(created_at DESC)",
    ),
]

MIGRATIONS: dict[str, list[tuple[str, str]]] = {
    "sqlite": _SQLITE_MIGRATIONS,
    "postgresql": _POSTGRES_MIGRATIONS,
}


def migrate(pool: ConnectionPool) -> None:
    """Create every table and index that is missing.

    Stops at the first failing statement and raises it as a classified
    error; callers treat that as fatal.
    """
    migrations = MIGRATIONS[pool.dialect.name]
    logger.info("Running database migrations (%d statements)", len(migrations))
    for name, statement in migrations:
        try:
            with translate_errors(f"migration: {name}"):
                pool.execute(statement)
        except Exception:
            logger.error("Migration step failed: %s", name)
            raise
        logger.debug("Applied migration: %s", name)
    logger.info("Database migrations completed successfully")
