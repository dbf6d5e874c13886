"""
FastAPI application entry point for the portfolio backend.
"""

from __future__ import annotations

import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError

from portfolio.config import get_settings
from portfolio.routes import router

logger = logging.getLogger(__name__)


async def _database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "Database error"})


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    app = FastAPI(title="Photography Portfolio API", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(SQLAlchemyError, _database_error_handler)
    app.include_router(router, prefix=settings.api_prefix)

    if not settings.is_serverless and not settings.use_in_memory_backends:
        # Serves files written by the local storage backend.
        os.makedirs(settings.upload_dir, exist_ok=True)
        app.mount(
            settings.upload_url_prefix,
            StaticFiles(directory=settings.upload_dir),
            name="uploads",
        )
    return app


app = create_app()
