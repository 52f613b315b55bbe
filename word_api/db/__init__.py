"""Database access layer — pooling, migrations, repositories, error classification."""

from word_api.db.migrate import migrate
from word_api.db.pool import ConnectionPool, SslMode, open_pool
from word_api.db.posts import PostRepository
from word_api.db.users import UserRepository
from word_api.db.vocabulary import VocabularyRepository

__all__ = [
    "ConnectionPool",
    "SslMode",
    "open_pool",
    "migrate",
    "UserRepository",
    "PostRepository",
    "VocabularyRepository",
]
