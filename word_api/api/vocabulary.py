"""Vocabulary routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from word_api.api.deps import vocabulary_repository
from word_api.db.models import Vocabulary
from word_api.db.vocabulary import VocabularyRepository
from word_api.errors import NotFoundError
from word_api.schemas import CreateVocabularyRequest

router = APIRouter(prefix="/api/vocabulary", tags=["vocabulary"])


@router.post("", status_code=201)
def create_vocabulary(
    body: CreateVocabularyRequest,
    repo: VocabularyRepository = Depends(vocabulary_repository),
) -> Vocabulary:
    return repo.create(body)


@router.get("")
def list_vocabulary(repo: VocabularyRepository = Depends(vocabulary_repository)) -> list[Vocabulary]:
    return repo.list()


# Registered before /{entry_id} so "random" is not parsed as an id
@router.get("/random")
def random_vocabulary(repo: VocabularyRepository = Depends(vocabulary_repository)) -> Vocabulary:
    entry = repo.random()
    if entry is None:
        raise NotFoundError("No vocabulary entries found")
    return entry


@router.get("/{entry_id}")
def get_vocabulary(
    entry_id: int, repo: VocabularyRepository = Depends(vocabulary_repository)
) -> Vocabulary:
    entry = repo.get(entry_id)
    if entry is None:
        raise NotFoundError(f"Vocabulary entry with id {entry_id} not found")
    return entry
