"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging

from portfolio.config import get_settings
from portfolio.db import DbClient, InMemoryDbClient, SqlDbClient
from portfolio.storage import StorageChain, build_storage_chain
from portfolio.uploads import UploadPipeline

logger = logging.getLogger(__name__)

_db_client: DbClient | None = None
_storage_chain: StorageChain | None = None
_upload_pipeline: UploadPipeline | None = None


def get_db_client() -> DbClient:
    """
    Return a singleton DB client; it owns the connection pool, not any data.
    """
    global _db_client
    if _db_client:
        return _db_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.database_url:
        logger.info("Using in-memory database")
        _db_client = InMemoryDbClient()
    else:
        _db_client = SqlDbClient(settings.database_url)
    return _db_client


def get_storage_chain() -> StorageChain:
    global _storage_chain
    if _storage_chain:
        return _storage_chain

    _storage_chain = build_storage_chain(get_settings())
    return _storage_chain


def get_upload_pipeline() -> UploadPipeline:
    global _upload_pipeline
    if _upload_pipeline:
        return _upload_pipeline

    settings = get_settings()
    _upload_pipeline = UploadPipeline(
        get_storage_chain(), max_bytes=settings.max_upload_bytes
    )
    return _upload_pipeline


def reset_dependencies() -> None:
    """Drop cached clients so the next call rebuilds them from settings."""
    global _db_client, _storage_chain, _upload_pipeline
    _db_client = None
    _storage_chain = None
    _upload_pipeline = None
