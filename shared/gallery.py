"""
Gallery filtering and the lightbox viewer state.

These mirror the public gallery page: a category filter over the image list
and a modal viewer navigated by keyboard or thumbnails.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from shared.documents import category_refs, get_value
from shared.types import ALL_CATEGORIES


def image_category_slugs(image: Any) -> list[str]:
    return category_refs(image)[1]


def filter_images(images: Sequence[Any], category: Optional[str]) -> list[Any]:
    """Return the images tagged with `category`; everything for None/"all"."""
    if not category or category == ALL_CATEGORIES:
        return list(images)
    return [image for image in images if category in image_category_slugs(image)]


class Lightbox:
    """Modal viewer over `count` images.

    closed -> open(index) -> open(index +/- 1 mod count) -> closed
    """

    KEY_ACTIONS = {
        "Escape": "close",
        "ArrowRight": "next",
        "ArrowLeft": "previous",
    }

    def __init__(self, count: int):
        if count < 0:
            raise ValueError("count must be non-negative")
        self.count = count
        self.is_open = False
        self.current_index = 0

    def open(self, index: int) -> int:
        if not 0 <= index < self.count:
            raise IndexError(f"image index {index} out of range for {self.count}")
        self.current_index = index
        self.is_open = True
        return index

    def close(self) -> None:
        self.is_open = False

    def next(self) -> int:
        if self.count:
            self.current_index = (self.current_index + 1) % self.count
        return self.current_index

    def previous(self) -> int:
        if self.count:
            self.current_index = (self.current_index - 1 + self.count) % self.count
        return self.current_index

    def select(self, index: int) -> int:
        """Jump to a thumbnail while the viewer is open."""
        return self.open(index)

    def handle_key(self, key: str) -> bool:
        """Apply a keyboard shortcut; returns False when the key is ignored."""
        if not self.is_open:
            return False
        action = self.KEY_ACTIONS.get(key)
        if action is None:
            return False
        getattr(self, action)()
        return True


@dataclass
class GalleryState:
    images: list = field(default_factory=list)
    categories: list = field(default_factory=list)
    selected_category: str = ALL_CATEGORIES
    lightbox: Lightbox = field(default_factory=lambda: Lightbox(0))

    @property
    def visible_images(self) -> list:
        return filter_images(self.images, self.selected_category)

    @property
    def category_slugs(self) -> list[str]:
        slugs = []
        for category in self.categories:
            slug = (
                get_value(category, "slug")
                if isinstance(category, dict)
                else getattr(category, "slug", None)
            )
            if slug:
                slugs.append(slug)
        return slugs

    def select_category(self, category: str) -> list:
        self.selected_category = category or ALL_CATEGORIES
        self.lightbox.close()
        return self.visible_images

    def set_images(self, images: list) -> None:
        self.images = list(images)
        self.lightbox.close()

    def set_categories(self, categories: list) -> None:
        self.categories = list(categories)

    def open_image(self, index: int) -> Any:
        visible = self.visible_images
        self.lightbox = Lightbox(len(visible))
        self.lightbox.open(index)
        return visible[index]

    @property
    def current_image(self) -> Any:
        if not self.lightbox.is_open:
            return None
        visible = self.visible_images
        if not visible:
            return None
        return visible[self.lightbox.current_index % len(visible)]
