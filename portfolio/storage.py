"""
Storage backends for uploaded images and the fallback chain that picks one.

Backends are tried in a fixed priority order (Vercel Blob, Firebase Storage,
local disk). A backend takes part only when its configuration is present,
each is tried once, and local disk refuses to write on a serverless runtime.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Protocol, Sequence
from urllib.parse import quote

import firebase_admin
import requests
from firebase_admin import credentials, storage as firebase_storage

from portfolio.config import Settings
from shared.types import StorageTag

logger = logging.getLogger(__name__)

SAFE_CATEGORY_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")
VERCEL_BLOB_API_VERSION = "7"
FIREBASE_APP_NAME = "portfolio-storage"


class StorageBackendError(Exception):
    """Raised by a backend that could not store a file."""


class StorageUnavailableError(Exception):
    """Raised when every configured backend failed."""

    def __init__(self, message: str, attempted: Sequence[str] = ()):
        super().__init__(message)
        self.attempted = list(attempted)


class StorageBackend(Protocol):
    """Defines the operations the upload pipeline needs from a storage provider."""

    tag: StorageTag

    def is_configured(self) -> bool:
        ...

    def upload(
        self, data: bytes, file_name: str, category: str, content_type: str
    ) -> str:
        """Store the bytes and return a publicly reachable URL."""
        ...


@dataclass(frozen=True)
class StoredFile:
    url: str
    storage: StorageTag


def object_path(file_name: str, category: str) -> str:
    if not SAFE_CATEGORY_PATTERN.match(category or ""):
        raise StorageBackendError(f"Invalid storage category: {category!r}")
    return f"images/{category}/{file_name}"


@dataclass
class VercelBlobBackend:
    """Vercel Blob store, addressed over its HTTP API."""

    token: Optional[str]
    api_url: str = "https://blob.vercel-storage.com"
    timeout: float = 30.0
    tag: StorageTag = field(default=StorageTag.VERCEL_BLOB, init=False)

    def is_configured(self) -> bool:
        return bool(self.token)

    def upload(
        self, data: bytes, file_name: str, category: str, content_type: str
    ) -> str:
        path = object_path(file_name, category)
        response = requests.put(
            f"{self.api_url.rstrip('/')}/{quote(path)}",
            data=data,
            headers={
                "authorization": f"Bearer {self.token}",
                "x-api-version": VERCEL_BLOB_API_VERSION,
                "x-content-type": content_type,
                "x-add-random-suffix": "0",
            },
            timeout=self.timeout,
        )
        if not response.ok:
            raise StorageBackendError(
                f"Vercel Blob returned {response.status_code}: {response.text[:200]}"
            )
        url = response.json().get("url")
        if not url:
            raise StorageBackendError("Vercel Blob response did not include a url")
        return url


@dataclass
class FirebaseStorageBackend:
    """Firebase Storage bucket accessed through the Admin SDK."""

    api_key: Optional[str]
    project_id: Optional[str]
    bucket: Optional[str]
    credentials_path: Optional[str] = None
    tag: StorageTag = field(default=StorageTag.FIREBASE, init=False)

    def is_configured(self) -> bool:
        return bool(self.api_key and self.project_id and self.bucket)

    def _app(self) -> firebase_admin.App:
        try:
            return firebase_admin.get_app(FIREBASE_APP_NAME)
        except ValueError:
            cred = (
                credentials.Certificate(self.credentials_path)
                if self.credentials_path
                else credentials.ApplicationDefault()
            )
            return firebase_admin.initialize_app(
                cred,
                {"storageBucket": self.bucket, "projectId": self.project_id},
                name=FIREBASE_APP_NAME,
            )

    def upload(
        self, data: bytes, file_name: str, category: str, content_type: str
    ) -> str:
        path = object_path(file_name, category)
        bucket = firebase_storage.bucket(self.bucket, app=self._app())
        blob = bucket.blob(path)
        blob.upload_from_string(data, content_type=content_type)
        blob.make_public()
        return blob.public_url


@dataclass
class LocalStorageBackend:
    """Writes under a public uploads directory; development only."""

    root_dir: str
    url_prefix: str = "/uploads"
    serverless: bool = False
    tag: StorageTag = field(default=StorageTag.LOCAL, init=False)

    def is_configured(self) -> bool:
        return True

    def upload(
        self, data: bytes, file_name: str, category: str, content_type: str
    ) -> str:
        if self.serverless:
            raise StorageBackendError(
                "Local file storage is not available in production. Please configure "
                "either Vercel Blob (BLOB_READ_WRITE_TOKEN) or Firebase Storage "
                "(FIREBASE_API_KEY, FIREBASE_PROJECT_ID, FIREBASE_STORAGE_BUCKET)."
            )
        if not SAFE_CATEGORY_PATTERN.match(category or ""):
            raise StorageBackendError(f"Invalid storage category: {category!r}")
        upload_dir = Path(self.root_dir) / category
        upload_dir.mkdir(parents=True, exist_ok=True)
        (upload_dir / file_name).write_bytes(data)
        return f"{self.url_prefix.rstrip('/')}/{category}/{file_name}"


@dataclass
class InMemoryStorageBackend:
    """Test double for storage interactions."""

    tag: StorageTag = StorageTag.LOCAL
    configured: bool = True
    fail: bool = False
    base_url: str = "https://example.test/storage"
    stored_objects: dict = None

    def __post_init__(self):
        if self.stored_objects is None:
            self.stored_objects = {}

    def is_configured(self) -> bool:
        return self.configured

    def upload(
        self, data: bytes, file_name: str, category: str, content_type: str
    ) -> str:
        if self.fail:
            raise StorageBackendError(f"{self.tag} is unavailable")
        path = object_path(file_name, category)
        self.stored_objects[path] = data
        return f"{self.base_url}/{path}"


class StorageChain:
    """Ordered list of capability-gated storage providers."""

    def __init__(self, backends: Sequence[StorageBackend]):
        self.backends = list(backends)

    def configured_tags(self) -> list[StorageTag]:
        return [backend.tag for backend in self.backends if backend.is_configured()]

    def upload(
        self, data: bytes, file_name: str, category: str, content_type: str
    ) -> StoredFile:
        attempted: list[str] = []
        last_error: Optional[Exception] = None
        for backend in self.backends:
            if not backend.is_configured():
                continue
            attempted.append(backend.tag.value)
            try:
                url = backend.upload(data, file_name, category, content_type)
            except Exception as e:
                logger.warning("%s upload failed, trying next backend: %s", backend.tag, e)
                last_error = e
                continue
            logger.info("Stored %s via %s", file_name, backend.tag)
            return StoredFile(url=url, storage=backend.tag)

        if last_error is None:
            raise StorageUnavailableError("No storage backend is configured", attempted)
        raise StorageUnavailableError(str(last_error), attempted) from last_error


def build_storage_chain(settings: Settings) -> StorageChain:
    """Fixed priority: Vercel Blob, then Firebase, then local disk."""
    if settings.use_in_memory_backends:
        return StorageChain([InMemoryStorageBackend()])
    return StorageChain(
        [
            VercelBlobBackend(
                token=settings.blob_read_write_token, api_url=settings.blob_api_url
            ),
            FirebaseStorageBackend(
                api_key=settings.firebase_api_key,
                project_id=settings.firebase_project_id,
                bucket=settings.firebase_storage_bucket,
                credentials_path=settings.firebase_credentials,
            ),
            LocalStorageBackend(
                root_dir=settings.upload_dir,
                url_prefix=settings.upload_url_prefix,
                serverless=settings.is_serverless,
            ),
        ]
    )
