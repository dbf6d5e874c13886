"""
Pydantic schemas for the portfolio API.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from shared.types import ContactStatus

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    slug: str = Field(..., min_length=1, max_length=100, pattern=SLUG_PATTERN)
    description: Optional[str] = ""
    order: Optional[int] = 0


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    slug: Optional[str] = Field(None, min_length=1, max_length=100, pattern=SLUG_PATTERN)
    description: Optional[str] = None
    order: Optional[int] = None


class CategoryResponse(BaseModel):
    id: str
    name: str
    slug: str
    description: str = ""
    order: int = 0
    created_at: datetime
    updated_at: datetime


class ImageCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    url: str = Field(..., min_length=1)
    category_ids: list[str] = Field(default_factory=list)
    category_slugs: list[str] = Field(default_factory=list)
    description: Optional[str] = ""
    location: Optional[str] = ""
    thumbnail_url: Optional[str] = None
    width: Optional[int] = Field(None, gt=0)
    height: Optional[int] = Field(None, gt=0)
    order: Optional[int] = 0
    featured: bool = False


class ImageUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    location: Optional[str] = None
    featured: Optional[bool] = None
    order: Optional[int] = None
    thumbnail_url: Optional[str] = None
    category_ids: Optional[list[str]] = None
    category_slugs: Optional[list[str]] = None


class ImageResponse(BaseModel):
    id: str
    title: str
    description: str = ""
    location: str = ""
    category_ids: list[str]
    category_slugs: list[str]
    url: str
    thumbnail_url: Optional[str] = None
    width: int
    height: int
    order: int
    featured: bool
    created_at: datetime
    updated_at: datetime


class UploadResponse(BaseModel):
    success: bool
    image: ImageResponse
    storage: str
    message: str


class StorageStatusResponse(BaseModel):
    configured: list[str]
    active: Optional[str] = None
    message: str


class ContactRequest(BaseModel):
    # Required fields are checked by the route so blanks produce a 400.
    name: str = ""
    email: str = ""
    subject: str = ""
    message: str = Field("", max_length=5000)
    project_type: Optional[str] = ""
    budget: Optional[str] = ""


class ContactCreatedResponse(BaseModel):
    message: str
    id: str


class ContactResponse(BaseModel):
    id: str
    name: str
    email: str
    subject: str
    message: str
    project_type: str = ""
    budget: str = ""
    status: ContactStatus
    created_at: datetime


class ContactStatusUpdate(BaseModel):
    status: ContactStatus


class DeleteResponse(BaseModel):
    deleted: bool


class HealthResponse(BaseModel):
    status: str
    database: str
    storage: list[str]
