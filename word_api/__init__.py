"""word-rest-api — users, posts and vocabulary over PostgreSQL or SQLite."""

__version__ = "1.0.0"
