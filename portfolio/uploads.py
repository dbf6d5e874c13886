"""
Upload pipeline: validate an incoming image, name it, hand it to storage.
"""

from __future__ import annotations

import io
import logging
import os
import re
import time
from dataclasses import dataclass
from typing import Optional
from uuid import uuid4

from fastapi import UploadFile
from PIL import Image, UnidentifiedImageError

from portfolio.storage import StorageChain
from shared.types import StorageTag

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/webp"}
MAX_UPLOAD_BYTES = 10 * 1024 * 1024
READ_CHUNK_BYTES = 1024 * 1024
RANDOM_TOKEN_LENGTH = 6


class UploadValidationError(ValueError):
    """Client-side problem with an upload; carries the HTTP status to return."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class UploadResult:
    url: str
    storage: StorageTag
    file_name: str
    width: int
    height: int


def validate_upload(
    content_type: Optional[str], size: int, max_bytes: int = MAX_UPLOAD_BYTES
) -> None:
    if (content_type or "").lower() not in ALLOWED_CONTENT_TYPES:
        raise UploadValidationError(
            "Invalid file type. Only JPEG, PNG, and WebP images are allowed."
        )
    if size > max_bytes:
        raise UploadValidationError(
            f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB.",
            status_code=413,
        )


def generate_unique_file_name(original_name: str, now_ms: Optional[int] = None) -> str:
    """`"My Photo.jpg"` -> `"my-photo-<ms>-<token>.jpg"`."""
    base, ext = os.path.splitext(os.path.basename(original_name or ""))
    sanitized = re.sub(r"[^a-zA-Z0-9]", "-", base).lower() or "image"
    timestamp = now_ms if now_ms is not None else int(time.time() * 1000)
    token = uuid4().hex[:RANDOM_TOKEN_LENGTH]
    return f"{sanitized}-{timestamp}-{token}{ext}"


def read_dimensions(data: bytes) -> tuple[int, int]:
    try:
        with Image.open(io.BytesIO(data)) as img:
            return img.size
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise UploadValidationError(f"Invalid or unsupported image: {str(e)[:80]}") from e


class UploadPipeline:
    def __init__(self, chain: StorageChain, max_bytes: int = MAX_UPLOAD_BYTES):
        self.chain = chain
        self.max_bytes = max_bytes

    async def read_limited(self, upload: UploadFile) -> bytes:
        """Read an UploadFile, stopping as soon as it exceeds the size cap."""
        raw = bytearray()
        while True:
            chunk = await upload.read(READ_CHUNK_BYTES)
            if not chunk:
                break
            raw.extend(chunk)
            if len(raw) > self.max_bytes:
                validate_upload(upload.content_type, len(raw), self.max_bytes)
        return bytes(raw)

    def store(
        self, data: bytes, original_name: str, content_type: Optional[str], category: str
    ) -> UploadResult:
        validate_upload(content_type, len(data), self.max_bytes)
        width, height = read_dimensions(data)
        file_name = generate_unique_file_name(original_name)
        stored = self.chain.upload(data, file_name, category, content_type.lower())
        return UploadResult(
            url=stored.url,
            storage=stored.storage,
            file_name=file_name,
            width=width,
            height=height,
        )


def describe(chain: StorageChain) -> dict:
    configured = chain.configured_tags()
    active = configured[0] if configured else None
    if active:
        message = f"Images will be uploaded to {active} storage"
    else:
        message = "No storage backend is configured"
    return {
        "configured": [tag.value for tag in configured],
        "active": active.value if active else None,
        "message": message,
    }
