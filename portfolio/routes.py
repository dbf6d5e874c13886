"""
HTTP routes for the portfolio API.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, File, Form, HTTPException, Query, UploadFile
from fastapi.concurrency import run_in_threadpool
from pydantic import EmailStr, TypeAdapter, ValidationError
from sqlalchemy.exc import SQLAlchemyError

from portfolio import catalog, site_config
from portfolio.auth import require_admin
from portfolio.catalog import CategoryConflictError, UnknownCategoryError
from portfolio.db import ContactRecord, DbClient, ImageRecord
from portfolio.dependencies import get_db_client, get_storage_chain, get_upload_pipeline
from portfolio.schemas import (
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    ContactCreatedResponse,
    ContactRequest,
    ContactResponse,
    ContactStatusUpdate,
    DeleteResponse,
    HealthResponse,
    ImageCreate,
    ImageResponse,
    ImageUpdate,
    StorageStatusResponse,
    UploadResponse,
)
from portfolio.storage import StorageChain, StorageUnavailableError
from portfolio.uploads import UploadPipeline, UploadValidationError, describe, validate_upload

logger = logging.getLogger(__name__)

router = APIRouter()
admin = [Depends(require_admin)]

_email_adapter = TypeAdapter(EmailStr)
TRUTHY_FORM_VALUES = {"true", "1", "on", "yes"}


def _category_response(record) -> CategoryResponse:
    return CategoryResponse(**record.as_dict())


def _image_response(record) -> ImageResponse:
    return ImageResponse(**record.as_dict())


def _parse_list_field(values: list[str]) -> list[str]:
    """Accept repeated form fields and/or JSON array strings."""
    items: list[str] = []
    for value in values or []:
        value = (value or "").strip()
        if not value:
            continue
        if value.startswith("["):
            try:
                parsed = json.loads(value)
            except json.JSONDecodeError as e:
                raise HTTPException(status_code=400, detail=f"Malformed list field: {e.msg}")
            items.extend(str(item) for item in parsed if item)
        else:
            items.append(value)
    return items


def _resolve_or_400(db: DbClient, ids, slugs) -> tuple[list[str], list[str]]:
    try:
        return catalog.resolve_categories(db, ids, slugs)
    except UnknownCategoryError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/health", response_model=HealthResponse)
def health(
    db: DbClient = Depends(get_db_client),
    chain: StorageChain = Depends(get_storage_chain),
):
    try:
        db.count_categories()
        database = "connected"
    except SQLAlchemyError as e:
        logger.exception("Database health check failed")
        database = f"error: {str(e)[:80]}"
    return HealthResponse(
        status="ok",
        database=database,
        storage=[tag.value for tag in chain.configured_tags()],
    )


# Categories


@router.get("/categories", response_model=list[CategoryResponse])
def list_categories(db: DbClient = Depends(get_db_client)):
    return [_category_response(c) for c in db.list_categories()]


@router.post(
    "/categories", response_model=CategoryResponse, status_code=201, dependencies=admin
)
def create_category(payload: CategoryCreate, db: DbClient = Depends(get_db_client)):
    try:
        category = catalog.create_category(
            db,
            name=payload.name,
            slug=payload.slug,
            description=payload.description or "",
            order=payload.order or 0,
        )
    except CategoryConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _category_response(category)


@router.get("/categories/{category_id}", response_model=CategoryResponse)
def get_category(category_id: str, db: DbClient = Depends(get_db_client)):
    category = db.get_category(category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return _category_response(category)


@router.put("/categories/{category_id}", response_model=CategoryResponse, dependencies=admin)
def update_category(
    category_id: str, payload: CategoryUpdate, db: DbClient = Depends(get_db_client)
):
    category = db.update_category(category_id, payload.model_dump(exclude_none=True))
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return _category_response(category)


@router.delete("/categories/{category_id}", response_model=DeleteResponse, dependencies=admin)
def delete_category(category_id: str, db: DbClient = Depends(get_db_client)):
    # Images that reference the category are left untouched.
    if not db.delete_category(category_id):
        raise HTTPException(status_code=404, detail="Category not found")
    return DeleteResponse(deleted=True)


# Images


@router.get("/images", response_model=list[ImageResponse])
def list_images(
    category: Optional[str] = Query(None, description="Category slug filter"),
    db: DbClient = Depends(get_db_client),
):
    return [_image_response(i) for i in db.list_images(category)]


@router.get("/images/featured", response_model=list[ImageResponse])
def list_featured_images(
    limit: int = Query(catalog.DEFAULT_FEATURED_LIMIT, ge=1, le=100),
    db: DbClient = Depends(get_db_client),
):
    return [_image_response(i) for i in catalog.featured_images(db, limit)]


@router.get("/images/{image_id}", response_model=ImageResponse)
def get_image(image_id: str, db: DbClient = Depends(get_db_client)):
    image = db.get_image(image_id)
    if not image:
        raise HTTPException(status_code=404, detail="Image not found")
    return _image_response(image)


@router.post("/images", response_model=ImageResponse, status_code=201, dependencies=admin)
def create_image(payload: ImageCreate, db: DbClient = Depends(get_db_client)):
    category_ids, category_slugs = _resolve_or_400(
        db, payload.category_ids, payload.category_slugs
    )
    record = ImageRecord(
        title=payload.title,
        url=payload.url,
        category_ids=category_ids,
        category_slugs=category_slugs,
        description=payload.description or "",
        location=payload.location or "",
        thumbnail_url=payload.thumbnail_url,
        order=payload.order or 0,
        featured=payload.featured,
    )
    if payload.width:
        record.width = payload.width
    if payload.height:
        record.height = payload.height
    return _image_response(db.create_image(record))


@router.put("/images/{image_id}", response_model=ImageResponse, dependencies=admin)
def update_image(image_id: str, payload: ImageUpdate, db: DbClient = Depends(get_db_client)):
    if not db.get_image(image_id):
        raise HTTPException(status_code=404, detail="Image not found")
    updates = payload.model_dump(exclude_none=True, exclude={"category_ids", "category_slugs"})
    if payload.category_ids is not None or payload.category_slugs is not None:
        updates["category_ids"], updates["category_slugs"] = _resolve_or_400(
            db, payload.category_ids, payload.category_slugs
        )
    image = db.update_image(image_id, updates)
    if not image:
        raise HTTPException(status_code=404, detail="Image not found")
    return _image_response(image)


@router.delete("/images/{image_id}", response_model=DeleteResponse, dependencies=admin)
def delete_image(image_id: str, db: DbClient = Depends(get_db_client)):
    if not db.delete_image(image_id):
        raise HTTPException(status_code=404, detail="Image not found")
    return DeleteResponse(deleted=True)


# Uploads


@router.get("/upload", response_model=StorageStatusResponse)
def upload_status(chain: StorageChain = Depends(get_storage_chain)):
    return StorageStatusResponse(**describe(chain))


@router.post("/upload", response_model=UploadResponse, dependencies=admin)
async def upload_image(
    file: Optional[UploadFile] = File(None),
    title: str = Form(""),
    category_ids: list[str] = Form([]),
    category_slugs: list[str] = Form([]),
    category_id: Optional[str] = Form(None),
    category_slug: Optional[str] = Form(None),
    description: str = Form(""),
    location: str = Form(""),
    featured: str = Form("false"),
    db: DbClient = Depends(get_db_client),
    pipeline: UploadPipeline = Depends(get_upload_pipeline),
):
    if file is None:
        raise HTTPException(status_code=400, detail="No file provided")
    if not title.strip():
        raise HTTPException(status_code=400, detail="Missing required field: title")

    ids = _parse_list_field(category_ids) + ([category_id] if category_id else [])
    slugs = _parse_list_field(category_slugs) + ([category_slug] if category_slug else [])
    resolved_ids, resolved_slugs = await run_in_threadpool(_resolve_or_400, db, ids, slugs)

    try:
        validate_upload(file.content_type, 0, pipeline.max_bytes)
        data = await pipeline.read_limited(file)
        result = await run_in_threadpool(
            pipeline.store,
            data,
            file.filename or "image",
            file.content_type,
            resolved_slugs[0],
        )
    except UploadValidationError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except StorageUnavailableError as e:
        logger.error("Upload failed on every backend (%s): %s", ", ".join(e.attempted), e)
        raise HTTPException(status_code=500, detail=f"Failed to upload image: {e}")

    order = await run_in_threadpool(catalog.next_image_order, db, resolved_slugs[0])
    image = await run_in_threadpool(
        db.create_image,
        ImageRecord(
            title=title.strip(),
            url=result.url,
            category_ids=resolved_ids,
            category_slugs=resolved_slugs,
            description=description,
            location=location,
            width=result.width,
            height=result.height,
            order=order,
            featured=featured.strip().lower() in TRUTHY_FORM_VALUES,
        ),
    )
    return UploadResponse(
        success=True,
        image=_image_response(image),
        storage=result.storage.value,
        message=f"Image uploaded successfully to {result.storage.value} storage",
    )


# Site configuration


@router.get("/site-config")
def get_site_config(db: DbClient = Depends(get_db_client)) -> dict[str, Any]:
    return site_config.get_site_config(db)


@router.put("/site-config", dependencies=admin)
def update_site_config(
    changes: dict[str, Any] = Body(...), db: DbClient = Depends(get_db_client)
) -> dict[str, Any]:
    return site_config.update_site_config(db, changes)


@router.get("/profile")
def get_profile(db: DbClient = Depends(get_db_client)) -> dict[str, Any]:
    return site_config.get_profile(db)


@router.put("/profile", dependencies=admin)
def update_profile(
    changes: dict[str, Any] = Body(...), db: DbClient = Depends(get_db_client)
) -> dict[str, Any]:
    return site_config.update_profile(db, changes)


# Contact


@router.post("/contact", response_model=ContactCreatedResponse, status_code=201)
def submit_contact(payload: ContactRequest, db: DbClient = Depends(get_db_client)):
    required = (payload.name, payload.email, payload.subject, payload.message)
    if not all(value.strip() for value in required):
        raise HTTPException(
            status_code=400, detail="Name, email, subject, and message are required"
        )
    try:
        email = _email_adapter.validate_python(payload.email.strip())
    except ValidationError:
        raise HTTPException(status_code=400, detail="Please provide a valid email address")

    contact = db.create_contact(
        ContactRecord(
            name=payload.name.strip(),
            email=email,
            subject=payload.subject.strip(),
            message=payload.message.strip(),
            project_type=payload.project_type or "",
            budget=payload.budget or "",
        )
    )
    return ContactCreatedResponse(message="Contact form submitted successfully", id=contact.id)


@router.get("/contact", response_model=list[ContactResponse], dependencies=admin)
def list_contacts(db: DbClient = Depends(get_db_client)):
    return [ContactResponse(**c.as_dict()) for c in db.list_contacts()]


@router.patch("/contact/{contact_id}", response_model=ContactResponse, dependencies=admin)
def update_contact_status(
    contact_id: str, payload: ContactStatusUpdate, db: DbClient = Depends(get_db_client)
):
    contact = db.update_contact_status(contact_id, payload.status)
    if not contact:
        raise HTTPException(status_code=404, detail="Contact not found")
    return ContactResponse(**contact.as_dict())


@router.delete("/contact/{contact_id}", response_model=DeleteResponse, dependencies=admin)
def delete_contact(contact_id: str, db: DbClient = Depends(get_db_client)):
    if not db.delete_contact(contact_id):
        raise HTTPException(status_code=404, detail="Contact not found")
    return DeleteResponse(deleted=True)
