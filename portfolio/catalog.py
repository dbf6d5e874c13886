"""
Catalog rules layered over the database: slug uniqueness, category
resolution for images, manual ordering.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional

from portfolio.db import CategoryRecord, DbClient, ImageRecord
from shared.documents import as_str_list

DEFAULT_FEATURED_LIMIT = 12


class CategoryConflictError(Exception):
    """A category with the requested slug already exists."""


class UnknownCategoryError(ValueError):
    """An image referenced no category, or one that does not exist."""


def slugify(value: str) -> str:
    """`"Black & White"` -> `"black-white"`; matches `schemas.SLUG_PATTERN`."""
    return re.sub(r"[^a-z0-9]+", "-", (value or "").lower()).strip("-")


def create_category(
    db: DbClient,
    *,
    name: str,
    slug: str,
    description: str = "",
    order: int = 0,
) -> CategoryRecord:
    # Read-then-write; concurrent creates with the same slug can still race.
    if db.get_category_by_slug(slug):
        raise CategoryConflictError("Category with this slug already exists")
    return db.create_category(
        CategoryRecord(name=name, slug=slug, description=description or "", order=order or 0)
    )


def resolve_categories(
    db: DbClient,
    category_ids: Optional[Iterable[str]] = None,
    category_slugs: Optional[Iterable[str]] = None,
) -> tuple[list[str], list[str]]:
    """Resolve ids and/or slugs to matching `(ids, slugs)` lists.

    Every reference must name an existing category and at least one is
    required.
    """
    resolved: list[CategoryRecord] = []
    for category_id in as_str_list(list(category_ids or [])):
        category = db.get_category(category_id)
        if not category:
            raise UnknownCategoryError(f"Unknown category id: {category_id}")
        resolved.append(category)
    for slug in as_str_list(list(category_slugs or [])):
        category = db.get_category_by_slug(slug)
        if not category:
            raise UnknownCategoryError(f"Unknown category slug: {slug}")
        resolved.append(category)

    ids: list[str] = []
    slugs: list[str] = []
    for category in resolved:
        if category.id not in ids:
            ids.append(category.id)
            slugs.append(category.slug)
    if not ids:
        raise UnknownCategoryError("At least one category is required")
    return ids, slugs


def next_image_order(db: DbClient, category_slug: str) -> int:
    return len(db.list_images(category_slug))


def featured_images(db: DbClient, limit: int = DEFAULT_FEATURED_LIMIT) -> list[ImageRecord]:
    return db.list_featured_images(limit)
