"""Health route: one database round trip, 503 when the store is unreachable."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from word_api.api.deps import get_pool
from word_api.db.pool import ConnectionPool

router = APIRouter(tags=["health"])


@router.get("/health")
def health(pool: ConnectionPool = Depends(get_pool)) -> dict:
    pool.health_check()
    return {"status": "ok", "database": pool.backend}
