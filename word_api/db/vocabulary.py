"""Repository for the ``vocabulary`` table."""

from __future__ import annotations

import logging

from word_api.db.classify import translate_errors
from word_api.db.models import VOCABULARY_COLUMNS, Vocabulary, utcnow
from word_api.db.pool import ConnectionPool
from word_api.schemas import CreateVocabularyRequest

logger = logging.getLogger(__name__)

_COLUMNS = ", ".join(VOCABULARY_COLUMNS)
_INSERT_COLUMNS = ("en_word", "ja_word", "en_example", "ja_example", "created_at", "updated_at")

# (en_word, ja_word, en_example, ja_example)
SEED_VOCABULARY: list[tuple[str, str, str, str]] = [
    ("apple", "りんご", "I eat an apple every day.", "私は毎日りんごを食べます。"),
    ("book", "本", "This is an interesting book.", "これは面白い本です。"),
    (
        "computer",
        "コンピューター",
        "I use my computer for work.",
        "私は仕事でコンピューターを使います。",
    ),
    ("study", "勉強する", "I study English every morning.", "私は毎朝英語を勉強します。"),
    ("friend", "友達", "She is my best friend.", "彼女は私の親友です。"),
]


class VocabularyRepository:
    """Database operations for vocabulary entries. Ids are assigned by the store."""

    def __init__(self, pool: ConnectionPool):
        self.pool = pool

    def create(self, request: CreateVocabularyRequest) -> Vocabulary:
        now = utcnow()
        d = self.pool.dialect
        sql = (
            f"INSERT INTO vocabulary ({', '.join(_INSERT_COLUMNS)}) "
            f"VALUES ({d.params(len(_INSERT_COLUMNS))}) RETURNING {_COLUMNS}"
        )
        params = (
            request.en_word,
            request.ja_word,
            request.en_example,
            request.ja_example,
            now,
            now,
        )
        with translate_errors("create vocabulary"):
            row = self.pool.fetch_one(sql, params)
        entry = Vocabulary.from_row(row)
        logger.info("Created vocabulary entry with id: %s", entry.id)
        return entry

    def get(self, entry_id: int) -> Vocabulary | None:
        d = self.pool.dialect
        with translate_errors("get vocabulary"):
            row = self.pool.fetch_one(
                f"SELECT {_COLUMNS} FROM vocabulary WHERE id = {d.param(1)}", (entry_id,)
            )
        return Vocabulary.from_row(row) if row else None

    def list(self) -> list[Vocabulary]:
        with translate_errors("list vocabulary"):
            rows = self.pool.fetch_all(
                f"SELECT {_COLUMNS} FROM vocabulary ORDER BY created_at DESC, id DESC"
            )
        return [Vocabulary.from_row(r) for r in rows]

    def random(self) -> Vocabulary | None:
        """One entry picked uniformly by the store, or ``None`` when empty."""
        with translate_errors("random vocabulary"):
            row = self.pool.fetch_one(
                f"SELECT {_COLUMNS} FROM vocabulary ORDER BY RANDOM() LIMIT 1"
            )
        return Vocabulary.from_row(row) if row else None

    def count(self) -> int:
        with translate_errors("count vocabulary"):
            row = self.pool.fetch_one("SELECT COUNT(*) AS total FROM vocabulary")
        return int(row["total"]) if row else 0

    def seed(self) -> int:
        """Insert the sample set if the table is empty. Returns rows inserted."""
        existing = self.count()
        if existing > 0:
            logger.info("Vocabulary table already contains %d entries, skipping seed", existing)
            return 0

        now = utcnow()
        d = self.pool.dialect
        width = len(_INSERT_COLUMNS)
        groups = [
            f"({d.params(width, start=i * width + 1)})" for i in range(len(SEED_VOCABULARY))
        ]
        params: list[object] = []
        for entry in SEED_VOCABULARY:
            params.extend(entry)
            params.extend((now, now))
        sql = (
            f"INSERT INTO vocabulary ({', '.join(_INSERT_COLUMNS)}) "
            f"VALUES {', '.join(groups)}"
        )
        with translate_errors("seed vocabulary"):
            inserted = self.pool.execute(sql, params)
        logger.info("Seeded %d vocabulary entries", inserted)
        return inserted
