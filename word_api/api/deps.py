"""Shared pool and per-request repositories as FastAPI dependencies."""

from __future__ import annotations

from fastapi import Depends, Request

from word_api.db.pool import ConnectionPool
from word_api.db.posts import PostRepository
from word_api.db.users import UserRepository
from word_api.db.vocabulary import VocabularyRepository


def get_pool(request: Request) -> ConnectionPool:
    return request.app.state.pool


def user_repository(pool: ConnectionPool = Depends(get_pool)) -> UserRepository:
    return UserRepository(pool)


def post_repository(pool: ConnectionPool = Depends(get_pool)) -> PostRepository:
    return PostRepository(pool)


def vocabulary_repository(pool: ConnectionPool = Depends(get_pool)) -> VocabularyRepository:
    return VocabularyRepository(pool)
