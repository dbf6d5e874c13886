"""
Helpers for reading stored or exported documents.

Image documents have been written with a single category (`categoryId` /
`categorySlug`) and with many (`categoryIds` / `categorySlugs`), in camelCase
and snake_case. Everything that reads raw documents goes through
`category_refs` so consumers only ever see lists.
"""

from typing import Any, Optional


def get_value(data: dict, *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


def as_str_list(value: Any) -> list[str]:
    """Coerce a single value or a sequence into a list of non-empty strings."""
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        items = value
    else:
        items = [value]
    return [str(item) for item in items if item not in (None, "")]


def _merge_unique(*groups: list[str]) -> list[str]:
    seen: list[str] = []
    for group in groups:
        for item in group:
            if item not in seen:
                seen.append(item)
    return seen


def category_refs(doc: Any) -> tuple[list[str], list[str]]:
    """Return `(category_ids, category_slugs)` for a document in any schema."""
    if not isinstance(doc, dict):
        return (
            list(getattr(doc, "category_ids", None) or []),
            list(getattr(doc, "category_slugs", None) or []),
        )
    ids = _merge_unique(
        as_str_list(get_value(doc, "category_ids", "categoryIds")),
        as_str_list(get_value(doc, "category_id", "categoryId")),
    )
    slugs = _merge_unique(
        as_str_list(get_value(doc, "category_slugs", "categorySlugs")),
        as_str_list(get_value(doc, "category_slug", "categorySlug", "slug")),
    )
    return ids, slugs


def document_id(doc: dict) -> Optional[str]:
    """Return the id of an exported document (`_id` may be `{"$oid": ...}`)."""
    raw = get_value(doc, "id", "_id")
    if isinstance(raw, dict):
        raw = raw.get("$oid")
    return str(raw) if raw is not None else None
