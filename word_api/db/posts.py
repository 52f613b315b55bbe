"""Repository for the ``posts`` table."""

from __future__ import annotations

import logging
import uuid

from word_api.db.classify import translate_errors
from word_api.db.models import POST_COLUMNS, Post, parse_id, utcnow
from word_api.db.pool import ConnectionPool
from word_api.db.query import UpdateBuilder
from word_api.errors import NotFoundError
from word_api.schemas import CreatePostRequest, UpdatePostRequest

logger = logging.getLogger(__name__)

_COLUMNS = ", ".join(POST_COLUMNS)
_MISSING_USER = "Referenced user does not exist"


class PostRepository:
    """Database operations for posts."""

    def __init__(self, pool: ConnectionPool):
        self.pool = pool

    def create(self, request: CreatePostRequest) -> Post:
        now = utcnow()
        d = self.pool.dialect
        sql = (
            f"INSERT INTO posts ({_COLUMNS}) VALUES ({d.params(6)}) "
            f"RETURNING {_COLUMNS}"
        )
        params = (str(uuid.uuid4()), request.user_id, request.title, request.content, now, now)
        with translate_errors("create post", validation_failed=_MISSING_USER):
            row = self.pool.fetch_one(sql, params)
        post = Post.from_row(row)
        logger.info("Created post with id: %s", post.id)
        return post

    def get(self, post_id: str) -> Post | None:
        post_id = parse_id(post_id, "post")
        d = self.pool.dialect
        with translate_errors("get post"):
            row = self.pool.fetch_one(
                f"SELECT {_COLUMNS} FROM posts WHERE id = {d.param(1)}", (post_id,)
            )
        return Post.from_row(row) if row else None

    def list(self, user_id: str | None = None) -> list[Post]:
        """All posts, newest first; optionally only those owned by ``user_id``."""
        sql = f"SELECT {_COLUMNS} FROM posts"
        params: tuple[str, ...] = ()
        if user_id is not None:
            sql += f" WHERE user_id = {self.pool.dialect.param(1)}"
            params = (parse_id(user_id, "user"),)
        sql += " ORDER BY created_at DESC, id DESC"
        with translate_errors("list posts"):
            rows = self.pool.fetch_all(sql, params)
        return [Post.from_row(r) for r in rows]

    def update(self, post_id: str, request: UpdatePostRequest) -> Post:
        post_id = parse_id(post_id, "post")
        builder = UpdateBuilder("posts", self.pool.dialect).set_fields(request.changes())
        sql, params = builder.build("id", post_id, utcnow(), returning=POST_COLUMNS)
        with translate_errors("update post"):
            row = self.pool.fetch_one(sql, params)
        if row is None:
            raise NotFoundError(f"Post with id {post_id} not found")
        logger.info("Updated post %s (%s)", post_id, ", ".join(builder.columns) or "timestamp only")
        return Post.from_row(row)
