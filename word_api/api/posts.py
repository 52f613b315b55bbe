"""Post routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from word_api.api.deps import post_repository
from word_api.db.models import Post
from word_api.db.posts import PostRepository
from word_api.errors import NotFoundError
from word_api.schemas import CreatePostRequest, UpdatePostRequest

router = APIRouter(prefix="/api/posts", tags=["posts"])


@router.post("", status_code=201)
def create_post(body: CreatePostRequest, repo: PostRepository = Depends(post_repository)) -> Post:
    return repo.create(body)


@router.get("")
def list_posts(
    user_id: str | None = None, repo: PostRepository = Depends(post_repository)
) -> list[Post]:
    return repo.list(user_id=user_id)


@router.get("/{post_id}")
def get_post(post_id: str, repo: PostRepository = Depends(post_repository)) -> Post:
    post = repo.get(post_id)
    if post is None:
        raise NotFoundError(f"Post with id {post_id} not found")
    return post


@router.put("/{post_id}")
def update_post(
    post_id: str, body: UpdatePostRequest, repo: PostRepository = Depends(post_repository)
) -> Post:
    return repo.update(post_id, body)
