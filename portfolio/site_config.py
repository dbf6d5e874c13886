"""
Site configuration and photographer profile singletons.

Stored documents are merged over the defaults on every read so fields added
after a document was written show up with sane values, without a migration.
"""

from __future__ import annotations

import copy
import logging
from typing import Any

from portfolio.db import DbClient, utcnow

logger = logging.getLogger(__name__)

SITE_CONFIG_KEY = "site_config"
PROFILE_KEY = "profile"
RESERVED_KEYS = ("id", "_id", "updated_at")

DEFAULT_SITE_CONFIG: dict[str, Any] = {
    "seo": {
        "title": "NYC Professional Photographer | Architecture, Interiors & Travel Photography",
        "description": (
            "Award-winning NYC-based photographer specializing in architectural "
            "photography, interior design, and travel documentation. Available for "
            "commercial and editorial projects."
        ),
        "keywords": [
            "photographer",
            "NYC photographer",
            "architecture photography",
            "interior photography",
            "travel photography",
            "commercial photographer",
            "New York",
        ],
        "favicon": "",
    },
    "analytics": {
        "google_analytics_id": "",
        "google_tag_manager_id": "",
    },
    "hero": {
        "enabled": True,
        "title": "Visual Stories",
        "subtitle": "Through the Lens",
        "description": (
            "NYC-based photographer specializing in architecture, interiors, and "
            "travel photography. Capturing moments that matter."
        ),
        "primary_button_text": "View Portfolio",
        "primary_button_link": "/gallery",
        "secondary_button_text": "Get in Touch",
        "secondary_button_link": "/contact",
    },
    "stats": {
        "projects": "500+",
        "projects_label": "Projects",
        "years": "10+",
        "years_label": "Years",
        "location": "NYC",
        "location_label": "Based",
    },
    "about": {
        "title": "About Me",
        "subtitle": "Professional Photographer",
        "bio": (
            "I am a professional photographer based in New York City, specializing in "
            "architecture, interior design, and travel photography. With over a decade "
            "of experience, I bring a unique perspective to every project."
        ),
        "skills": [
            "Architecture Photography",
            "Interior Design",
            "Travel Photography",
            "Commercial Projects",
            "Editorial Work",
        ],
        "interests": [
            "Urban Exploration",
            "Minimalist Design",
            "Street Photography",
            "Documentary Work",
            "Fine Art",
        ],
    },
    "contact": {
        "email": "hello@photographer.com",
        "phone": "+1 (555) 123-4567",
        "address": "New York, NY",
        "social_links": {
            "instagram": "https://instagram.com/photographer",
            "twitter": "https://twitter.com/photographer",
            "linkedin": "https://linkedin.com/in/photographer",
            "facebook": "",
        },
    },
    "footer": {
        "copyright_text": "© 2024 Professional Photographer. All rights reserved.",
        "tagline": "Capturing moments that matter",
    },
    "theme": {
        "fonts": {
            "heading_font": "Playfair Display",
            "body_font": "Inter",
            "logo_font": "Playfair Display",
        },
        "light_mode": {
            "primary_color": "#111827",
            "background_color": "#ffffff",
            "text_color": "#111827",
            "accent_color": "#6b7280",
        },
        "dark_mode": {
            "primary_color": "#ffffff",
            "background_color": "#111827",
            "text_color": "#f9fafb",
            "accent_color": "#9ca3af",
        },
    },
}

DEFAULT_PROFILE: dict[str, Any] = {
    "name": "Professional Photographer",
    "bio": "NYC-based photographer specializing in architecture, interiors, and travel photography.",
    "location": "New York, NY",
    "email": "contact@photographer.com",
    "phone": "",
    "avatar_url": "",
    "skills": [
        "Architectural Photography",
        "Interior Design Photography",
        "Travel Photography",
        "Commercial Photography",
        "Photo Editing & Retouching",
        "Drone Photography",
    ],
    "interests": [
        "Urban Landscapes",
        "Modern Architecture",
        "Minimalist Design",
        "Cultural Documentation",
        "Light & Shadow",
    ],
    "social_links": {
        "instagram": "https://instagram.com/photographer",
        "facebook": "",
        "twitter": "",
        "linkedin": "",
    },
}


def deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge `override` over `base` without mutating either.

    Nested dicts merge key by key; any other value in `override` replaces
    the one in `base`, except None, which leaves the base value in place.
    """
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        elif value is None and key in merged:
            continue
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _clean(changes: dict) -> dict:
    return {k: v for k, v in (changes or {}).items() if k not in RESERVED_KEYS}


def get_site_config(db: DbClient) -> dict:
    stored = db.get_document(SITE_CONFIG_KEY)
    if stored is None:
        logger.info("No site configuration stored; creating defaults")
        stored = db.save_document(
            SITE_CONFIG_KEY, {**DEFAULT_SITE_CONFIG, "updated_at": utcnow().isoformat()}
        )
    return deep_merge(DEFAULT_SITE_CONFIG, stored)


def update_site_config(db: DbClient, changes: dict) -> dict:
    # Read-modify-write; concurrent admin edits can overwrite each other.
    stored = db.get_document(SITE_CONFIG_KEY) or {}
    updated = deep_merge(stored, _clean(changes))
    updated["updated_at"] = utcnow().isoformat()
    saved = db.save_document(SITE_CONFIG_KEY, updated)
    return deep_merge(DEFAULT_SITE_CONFIG, saved)


def get_profile(db: DbClient) -> dict:
    stored = db.get_document(PROFILE_KEY)
    if stored is None:
        stored = db.save_document(
            PROFILE_KEY, {**DEFAULT_PROFILE, "updated_at": utcnow().isoformat()}
        )
    return stored


def update_profile(db: DbClient, changes: dict) -> dict:
    stored = db.get_document(PROFILE_KEY) or copy.deepcopy(DEFAULT_PROFILE)
    stored.update(_clean(changes))
    stored["updated_at"] = utcnow().isoformat()
    return db.save_document(PROFILE_KEY, stored)
