"""Repository for the ``users`` table."""

from __future__ import annotations

import logging
import uuid

from word_api.db.classify import translate_errors
from word_api.db.models import USER_COLUMNS, User, parse_id, utcnow
from word_api.db.pool import ConnectionPool
from word_api.db.query import UpdateBuilder
from word_api.errors import NotFoundError
from word_api.schemas import CreateUserRequest, UpdateUserRequest

logger = logging.getLogger(__name__)

_COLUMNS = ", ".join(USER_COLUMNS)
_DUPLICATE_EMAIL = "User with this email already exists"


class UserRepository:
    """Database operations for users."""

    def __init__(self, pool: ConnectionPool):
        self.pool = pool

    def create(self, request: CreateUserRequest) -> User:
        now = utcnow()
        d = self.pool.dialect
        sql = (
            f"INSERT INTO users ({_COLUMNS}) VALUES ({d.params(5)}) "
            f"RETURNING {_COLUMNS}"
        )
        params = (str(uuid.uuid4()), request.name, request.email, now, now)
        with translate_errors("create user", conflict=_DUPLICATE_EMAIL):
            row = self.pool.fetch_one(sql, params)
        user = User.from_row(row)
        logger.info("Created user with id: %s", user.id)
        return user

    def get(self, user_id: str) -> User | None:
        user_id = parse_id(user_id, "user")
        d = self.pool.dialect
        with translate_errors("get user"):
            row = self.pool.fetch_one(
                f"SELECT {_COLUMNS} FROM users WHERE id = {d.param(1)}", (user_id,)
            )
        return User.from_row(row) if row else None

    def list(self) -> list[User]:
        with translate_errors("list users"):
            rows = self.pool.fetch_all(
                f"SELECT {_COLUMNS} FROM users ORDER BY created_at DESC, id DESC"
            )
        return [User.from_row(r) for r in rows]

    def update(self, user_id: str, request: UpdateUserRequest) -> User:
        """Write only the fields present in ``request``; always bumps updated_at."""
        user_id = parse_id(user_id, "user")
        builder = UpdateBuilder("users", self.pool.dialect).set_fields(request.changes())
        sql, params = builder.build("id", user_id, utcnow(), returning=USER_COLUMNS)
        with translate_errors("update user", conflict=_DUPLICATE_EMAIL):
            row = self.pool.fetch_one(sql, params)
        if row is None:
            raise NotFoundError(f"User with id {user_id} not found")
        logger.info("Updated user %s (%s)", user_id, ", ".join(builder.columns) or "timestamp only")
        return User.from_row(row)

    def delete(self, user_id: str) -> None:
        """Delete a user; the store cascades the delete to their posts."""
        user_id = parse_id(user_id, "user")
        d = self.pool.dialect
        with translate_errors("delete user"):
            with self.pool.acquire() as conn:
                deleted = conn.execute(f"DELETE FROM users WHERE id = {d.param(1)}", (user_id,))
                cascaded = conn.implicit_changes
        if deleted == 0:
            raise NotFoundError(f"User with id {user_id} not found")
        if cascaded is None:
            logger.info("Deleted user with id: %s", user_id)
        else:
            logger.info("Deleted user with id: %s (cascade deleted %d posts)", user_id, cascaded)
