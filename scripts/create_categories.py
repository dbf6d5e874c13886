"""
Seed the default gallery categories.

Does nothing when any category already exists.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from portfolio import catalog
from portfolio.db import CategoryRecord, DbClient
from portfolio.dependencies import get_db_client

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = [
    {"name": "Interiors", "slug": "interiors", "description": "Interior photography and design"},
    {"name": "Exteriors", "slug": "exteriors", "description": "Exterior architecture and buildings"},
]


def create_default_categories(db: DbClient) -> list[CategoryRecord]:
    existing = db.count_categories()
    if existing:
        logger.warning("%d categories already exist. Skipping creation.", existing)
        return []

    created = []
    for order, category in enumerate(DEFAULT_CATEGORIES):
        created.append(catalog.create_category(db, order=order, **category))
        logger.info("Created %s (slug: %s)", category["name"], category["slug"])
    return created


def main() -> int:
    argparse.ArgumentParser(description="Create the default categories").parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(message)s")
    created = create_default_categories(get_db_client())
    logger.info("Created %d categories", len(created))
    return 0


if __name__ == "__main__":
    sys.exit(main())
