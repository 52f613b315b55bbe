"""Run schema migrations and seed the sample vocabulary.

Uses the same configuration as the server (config/app.yml plus WRA_* env vars).

Usage:
    bin/setup-db.py                 # Migrate and seed if vocabulary is empty
    bin/setup-db.py --no-seed       # Migrate only
    bin/setup-db.py --url sqlite:///data/dev.db
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(REPO_ROOT))

from word_api.config import AppConfig
from word_api.db.vocabulary import VocabularyRepository
from word_api.errors import DomainError
from word_api.main import init_db


def main():
    parser = argparse.ArgumentParser(description="Migrate the database and seed vocabulary")
    parser.add_argument("--url", help="Database URL (overrides configuration)")
    parser.add_argument("--no-seed", action="store_true", help="Skip the vocabulary seed")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    config = AppConfig.from_yaml()
    if args.url:
        config.database.url = args.url

    try:
        pool = init_db(config, seed=not args.no_seed)
    except (DomainError, ValueError) as exc:
        print(f"Database setup failed: {exc}", file=sys.stderr)
        sys.exit(1)

    with pool:
        total = VocabularyRepository(pool).count()
    print(f"Database ready ({pool.backend}), {total} vocabulary entries")


if __name__ == "__main__":
    main()
