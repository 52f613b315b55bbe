"""Shared fixtures: a fresh, migrated SQLite store per test."""

from __future__ import annotations

import pytest

from word_api.db.migrate import migrate
from word_api.db.pool import SQLitePool
from word_api.db.posts import PostRepository
from word_api.db.users import UserRepository
from word_api.db.vocabulary import VocabularyRepository
from word_api.schemas import CreatePostRequest, CreateUserRequest


@pytest.fixture
def pool(tmp_path):
    """Create a temporary, migrated database for testing."""
    database = SQLitePool(tmp_path / "test.db", max_connections=4, timeout=1.0)
    migrate(database)
    yield database
    database.close()


@pytest.fixture
def users(pool) -> UserRepository:
    return UserRepository(pool)


@pytest.fixture
def posts(pool) -> PostRepository:
    return PostRepository(pool)


@pytest.fixture
def vocabulary(pool) -> VocabularyRepository:
    return VocabularyRepository(pool)


@pytest.fixture
def make_user(users):
    """Factory creating users with unique emails."""
    counter = iter(range(1, 10_000))

    def _make(name: str = "Test User", email: str | None = None):
        if email is None:
            email = f"user{next(counter)}@example.com"
        return users.create(CreateUserRequest(name=name, email=email))

    return _make


@pytest.fixture
def make_post(posts):
    def _make(user_id: str, title: str = "Hello", content: str | None = "Body"):
        return posts.create(CreatePostRequest(user_id=user_id, title=title, content=content))

    return _make
