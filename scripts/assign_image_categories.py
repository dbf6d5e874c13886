"""
Assign categories to images that have none, using keywords found in the
title, description and location.

Images that already reference a category are left alone. Images with no
keyword match go to `--default-slug`, or the first category by order.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from portfolio.db import CategoryRecord, DbClient, ImageRecord
from portfolio.dependencies import get_db_client

logger = logging.getLogger(__name__)

KEYWORD_RULES = [
    (
        "interiors",
        ["kitchen", "room", "interior", "hallway", "loft", "bedroom", "bathroom", "living", "dining"],
    ),
    (
        "exteriors",
        ["exterior", "facade", "building", "arch", "door", "entrance", "outside"],
    ),
]


def choose_category(
    image: ImageRecord,
    categories: list[CategoryRecord],
    default: Optional[CategoryRecord] = None,
) -> Optional[CategoryRecord]:
    by_slug = {c.slug: c for c in categories}
    text = " ".join([image.title, image.description, image.location]).lower()
    for slug, keywords in KEYWORD_RULES:
        if slug in by_slug and any(keyword in text for keyword in keywords):
            return by_slug[slug]
    if default is not None:
        return default
    return categories[0] if categories else None


def assign_categories(
    db: DbClient, *, dry_run: bool = False, default_slug: Optional[str] = None
) -> int:
    categories = db.list_categories()
    if not categories:
        raise RuntimeError("No categories found! Please create categories first.")
    default = None
    if default_slug:
        default = db.get_category_by_slug(default_slug)
        if default is None:
            raise RuntimeError(f"Default category {default_slug!r} does not exist")

    updated = 0
    for image in db.list_images():
        if image.category_ids and image.category_slugs:
            logger.info("Skipped %r (already in %s)", image.title, ", ".join(image.category_slugs))
            continue
        category = choose_category(image, categories, default)
        logger.info("%r -> %s", image.title, category.slug)
        if not dry_run:
            db.update_image(
                image.id, {"category_ids": [category.id], "category_slugs": [category.slug]}
            )
        updated += 1
    return updated


def main() -> int:
    parser = argparse.ArgumentParser(description="Assign categories to uncategorized images")
    parser.add_argument(
        "--default-slug",
        default=None,
        help="Category for images that match no keyword (default: first category)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report how many images would be updated without saving",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(message)s")
    try:
        updated = assign_categories(
            get_db_client(), dry_run=args.dry_run, default_slug=args.default_slug
        )
    except RuntimeError as e:
        logger.error("%s", e)
        return 1

    logger.info("Updated %d images", updated)
    return 0


if __name__ == "__main__":
    sys.exit(main())
