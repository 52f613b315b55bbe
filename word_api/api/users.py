"""User routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Response

from word_api.api.deps import user_repository
from word_api.db.models import User
from word_api.db.users import UserRepository
from word_api.errors import NotFoundError
from word_api.schemas import CreateUserRequest, UpdateUserRequest

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/users", tags=["users"])


@router.post("", status_code=201)
def create_user(body: CreateUserRequest, repo: UserRepository = Depends(user_repository)) -> User:
    logger.info("Creating new user with email: %s", body.email)
    return repo.create(body)


@router.get("")
def list_users(repo: UserRepository = Depends(user_repository)) -> list[User]:
    users = repo.list()
    logger.info("Retrieved %d users", len(users))
    return users


@router.get("/{user_id}")
def get_user(user_id: str, repo: UserRepository = Depends(user_repository)) -> User:
    user = repo.get(user_id)
    if user is None:
        raise NotFoundError(f"User with id {user_id} not found")
    return user


@router.put("/{user_id}")
def update_user(
    user_id: str, body: UpdateUserRequest, repo: UserRepository = Depends(user_repository)
) -> User:
    return repo.update(user_id, body)


@router.delete("/{user_id}", status_code=204)
def delete_user(user_id: str, repo: UserRepository = Depends(user_repository)) -> Response:
    repo.delete(user_id)
    return Response(status_code=204)
