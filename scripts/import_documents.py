"""
Import category and image documents exported from another database.

Accepts a JSON array or JSON lines (one document per line), e.g. the output
of `mongoexport`. Image documents may use either the single-category
(`categoryId`/`categorySlug`) or multi-category (`categoryIds`/
`categorySlugs`) fields. Existing data is never overwritten: categories
whose slug exists and images whose URL exists are skipped.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from portfolio.catalog import slugify
from portfolio.db import CategoryRecord, DbClient, ImageRecord
from portfolio.dependencies import get_db_client

logger = logging.getLogger(__name__)


@dataclass
class ImportStats:
    created: int = 0
    skipped: int = 0
    uncategorized: int = 0


def load_documents(path: Path) -> list[dict]:
    text = path.read_text(encoding="utf-8").strip()
    if not text:
        return []
    if text.startswith("["):
        return json.loads(text)
    return [json.loads(line) for line in text.splitlines() if line.strip()]


def import_categories(db: DbClient, docs: Iterable[dict], *, dry_run: bool = False) -> ImportStats:
    stats = ImportStats()
    for doc in docs:
        category = CategoryRecord.from_document(doc)
        slug = slugify(category.slug)
        if not slug or not category.name:
            logger.warning("Skipping category without name/slug: %s", doc)
            stats.skipped += 1
            continue
        if slug != category.slug:
            # Slugs double as storage folder names.
            logger.warning("Renaming category slug %r to %r", category.slug, slug)
            category.slug = slug
        if db.get_category_by_slug(slug):
            stats.skipped += 1
            continue
        category.id = ""
        if not dry_run:
            db.create_category(category, preserve_timestamps=True)
        stats.created += 1
    return stats


def _local_category_refs(db: DbClient, image: ImageRecord) -> tuple[list[str], list[str]]:
    # Slugs are stable across databases; ids usually are not.
    ids: list[str] = []
    slugs: list[str] = []
    candidates = [db.get_category_by_slug(slugify(slug)) for slug in image.category_slugs]
    candidates += [db.get_category(category_id) for category_id in image.category_ids]
    for category in candidates:
        if category and category.id not in ids:
            ids.append(category.id)
            slugs.append(category.slug)
    return ids, slugs


def import_images(db: DbClient, docs: Iterable[dict], *, dry_run: bool = False) -> ImportStats:
    stats = ImportStats()
    existing_urls = {image.url for image in db.list_images()}
    for doc in docs:
        image = ImageRecord.from_document(doc)
        if not image.url or not image.title:
            logger.warning("Skipping image without title/url: %s", image.id or doc)
            stats.skipped += 1
            continue
        if image.url in existing_urls:
            stats.skipped += 1
            continue

        image.category_ids, image.category_slugs = _local_category_refs(db, image)
        if not image.category_ids:
            logger.warning(
                "No matching category for %r; run assign_image_categories.py afterwards",
                image.title,
            )
            stats.uncategorized += 1
        image.id = ""
        if not dry_run:
            db.create_image(image, preserve_timestamps=True)
        existing_urls.add(image.url)
        stats.created += 1
    return stats


def main() -> int:
    parser = argparse.ArgumentParser(description="Import exported portfolio documents")
    parser.add_argument("kind", choices=["categories", "images"])
    parser.add_argument("path", type=Path, help="JSON array or JSON lines file")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would be imported without saving",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(message)s")
    docs = load_documents(args.path)
    db = get_db_client()
    if args.kind == "categories":
        stats = import_categories(db, docs, dry_run=args.dry_run)
    else:
        stats = import_images(db, docs, dry_run=args.dry_run)

    logger.info(
        "Imported %d %s, skipped %d, uncategorized %d",
        stats.created,
        args.kind,
        stats.skipped,
        stats.uncategorized,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
