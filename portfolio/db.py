"""
Database abstraction for SQL databases and an in-memory test implementation.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timezone
from typing import Dict, Optional, Protocol

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Integer,
    String,
    Text,
    create_engine,
    func,
    select,
)
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from shared.documents import category_refs, document_id, get_value
from shared.gallery import filter_images
from shared.types import ContactStatus, UserRole

DEFAULT_IMAGE_WIDTH = 1200
DEFAULT_IMAGE_HEIGHT = 800


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


class DbClient(Protocol):
    """Interface for database access."""

    def list_categories(self) -> list["CategoryRecord"]:
        ...

    def get_category(self, category_id: str) -> Optional["CategoryRecord"]:
        ...

    def get_category_by_slug(self, slug: str) -> Optional["CategoryRecord"]:
        ...

    def create_category(
        self, category: "CategoryRecord", preserve_timestamps: bool = False
    ) -> "CategoryRecord":
        ...

    def update_category(
        self, category_id: str, updates: dict
    ) -> Optional["CategoryRecord"]:
        ...

    def delete_category(self, category_id: str) -> bool:
        ...

    def count_categories(self) -> int:
        ...

    def list_images(self, category_slug: Optional[str] = None) -> list["ImageRecord"]:
        ...

    def list_featured_images(self, limit: int = 12) -> list["ImageRecord"]:
        ...

    def get_image(self, image_id: str) -> Optional["ImageRecord"]:
        ...

    def create_image(
        self, image: "ImageRecord", preserve_timestamps: bool = False
    ) -> "ImageRecord":
        ...

    def update_image(self, image_id: str, updates: dict) -> Optional["ImageRecord"]:
        ...

    def delete_image(self, image_id: str) -> bool:
        ...

    def get_document(self, key: str) -> Optional[dict]:
        ...

    def save_document(self, key: str, data: dict) -> dict:
        ...

    def create_contact(self, contact: "ContactRecord") -> "ContactRecord":
        ...

    def list_contacts(self) -> list["ContactRecord"]:
        ...

    def get_contact(self, contact_id: str) -> Optional["ContactRecord"]:
        ...

    def update_contact_status(
        self, contact_id: str, status: ContactStatus
    ) -> Optional["ContactRecord"]:
        ...

    def delete_contact(self, contact_id: str) -> bool:
        ...

    def create_user(self, user: "UserRecord") -> "UserRecord":
        ...

    def get_user_by_email(self, email: str) -> Optional["UserRecord"]:
        ...

    def count_users(self) -> int:
        ...


@dataclass
class CategoryRecord:
    name: str
    slug: str
    description: str = ""
    order: int = 0
    id: str = ""
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @classmethod
    def from_document(cls, doc: dict) -> "CategoryRecord":
        record = cls(
            id=document_id(doc) or "",
            name=get_value(doc, "name") or "",
            slug=get_value(doc, "slug") or "",
            description=get_value(doc, "description") or "",
            order=int(get_value(doc, "order") or 0),
        )
        return _apply_document_stamps(record, doc)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "order": self.order,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass
class ImageRecord:
    title: str
    url: str
    category_ids: list[str] = field(default_factory=list)
    category_slugs: list[str] = field(default_factory=list)
    description: str = ""
    location: str = ""
    thumbnail_url: Optional[str] = None
    width: int = DEFAULT_IMAGE_WIDTH
    height: int = DEFAULT_IMAGE_HEIGHT
    order: int = 0
    featured: bool = False
    id: str = ""
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @classmethod
    def from_document(cls, doc: dict) -> "ImageRecord":
        """Build a record from a stored/exported document in any schema."""
        category_ids, category_slugs = category_refs(doc)
        record = cls(
            id=document_id(doc) or "",
            title=get_value(doc, "title") or "",
            url=get_value(doc, "url", "firebase_url", "firebaseUrl") or "",
            category_ids=category_ids,
            category_slugs=category_slugs,
            description=get_value(doc, "description") or "",
            location=get_value(doc, "location") or "",
            thumbnail_url=get_value(doc, "thumbnail_url", "thumbnailUrl"),
            width=int(get_value(doc, "width") or DEFAULT_IMAGE_WIDTH),
            height=int(get_value(doc, "height") or DEFAULT_IMAGE_HEIGHT),
            order=int(get_value(doc, "order") or 0),
            featured=bool(get_value(doc, "featured")),
        )
        return _apply_document_stamps(record, doc)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "location": self.location,
            "category_ids": list(self.category_ids),
            "category_slugs": list(self.category_slugs),
            "url": self.url,
            "thumbnail_url": self.thumbnail_url,
            "width": self.width,
            "height": self.height,
            "order": self.order,
            "featured": self.featured,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass
class ContactRecord:
    name: str
    email: str
    subject: str
    message: str
    project_type: str = ""
    budget: str = ""
    status: ContactStatus = ContactStatus.NEW
    id: str = ""
    created_at: datetime = field(default_factory=utcnow)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "subject": self.subject,
            "message": self.message,
            "project_type": self.project_type,
            "budget": self.budget,
            "status": self.status.value,
            "created_at": self.created_at,
        }


@dataclass
class UserRecord:
    email: str
    password_hash: str
    name: str
    role: UserRole = UserRole.USER
    id: str = ""
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def as_dict(self) -> dict:
        # Never expose the password hash.
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role.value,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


CATEGORY_UPDATE_FIELDS = {"name", "slug", "description", "order"}
IMAGE_UPDATE_FIELDS = {
    f.name for f in fields(ImageRecord) if f.name not in ("id", "created_at", "updated_at")
}


def _parse_timestamp(value) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, dict):
        value = value.get("$date")
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


def _apply_document_stamps(record, doc: dict):
    for attr, keys in (
        ("created_at", ("created_at", "createdAt")),
        ("updated_at", ("updated_at", "updatedAt")),
    ):
        stamp = _parse_timestamp(get_value(doc, *keys))
        if stamp:
            setattr(record, attr, stamp)
    return record


def _creation_stamps(record, preserve: bool) -> tuple[datetime, datetime]:
    """`(created_at, updated_at)` for a new row; imports keep their originals."""
    if preserve:
        return record.created_at, record.updated_at
    now = utcnow()
    return now, now


def _sort_key(record) -> tuple:
    return (record.order, record.created_at.timestamp())


def _json_copy(data: dict) -> dict:
    # Mimic a round trip through a JSON column.
    return json.loads(json.dumps(data, default=str))


class InMemoryDbClient:
    """Simple in-memory database for development and tests."""

    def __init__(self):
        self.categories: Dict[str, CategoryRecord] = {}
        self.images: Dict[str, ImageRecord] = {}
        self.documents: Dict[str, dict] = {}
        self.contacts: Dict[str, ContactRecord] = {}
        self.users: Dict[str, UserRecord] = {}

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.categories.clear()
        self.images.clear()
        self.documents.clear()
        self.contacts.clear()
        self.users.clear()

    def list_categories(self) -> list[CategoryRecord]:
        return sorted(self.categories.values(), key=_sort_key)

    def get_category(self, category_id: str) -> Optional[CategoryRecord]:
        return self.categories.get(category_id)

    def get_category_by_slug(self, slug: str) -> Optional[CategoryRecord]:
        for category in self.categories.values():
            if category.slug == slug:
                return category
        return None

    def create_category(
        self, category: CategoryRecord, preserve_timestamps: bool = False
    ) -> CategoryRecord:
        created_at, updated_at = _creation_stamps(category, preserve_timestamps)
        record = replace(
            category, id=category.id or new_id(), created_at=created_at, updated_at=updated_at
        )
        self.categories[record.id] = record
        return record

    def update_category(self, category_id: str, updates: dict) -> Optional[CategoryRecord]:
        category = self.categories.get(category_id)
        if not category:
            return None
        changes = {k: v for k, v in updates.items() if k in CATEGORY_UPDATE_FIELDS}
        record = replace(category, **changes, updated_at=utcnow())
        self.categories[category_id] = record
        return record

    def delete_category(self, category_id: str) -> bool:
        return self.categories.pop(category_id, None) is not None

    def count_categories(self) -> int:
        return len(self.categories)

    def list_images(self, category_slug: Optional[str] = None) -> list[ImageRecord]:
        images = sorted(self.images.values(), key=_sort_key)
        return filter_images(images, category_slug)

    def list_featured_images(self, limit: int = 12) -> list[ImageRecord]:
        featured = [image for image in self.list_images() if image.featured]
        return featured[:limit]

    def get_image(self, image_id: str) -> Optional[ImageRecord]:
        return self.images.get(image_id)

    def create_image(
        self, image: ImageRecord, preserve_timestamps: bool = False
    ) -> ImageRecord:
        created_at, updated_at = _creation_stamps(image, preserve_timestamps)
        record = replace(
            image, id=image.id or new_id(), created_at=created_at, updated_at=updated_at
        )
        self.images[record.id] = record
        return record

    def update_image(self, image_id: str, updates: dict) -> Optional[ImageRecord]:
        image = self.images.get(image_id)
        if not image:
            return None
        changes = {k: v for k, v in updates.items() if k in IMAGE_UPDATE_FIELDS}
        record = replace(image, **changes, updated_at=utcnow())
        self.images[image_id] = record
        return record

    def delete_image(self, image_id: str) -> bool:
        return self.images.pop(image_id, None) is not None

    def get_document(self, key: str) -> Optional[dict]:
        stored = self.documents.get(key)
        return _json_copy(stored) if stored is not None else None

    def save_document(self, key: str, data: dict) -> dict:
        self.documents[key] = _json_copy(data)
        return _json_copy(data)

    def create_contact(self, contact: ContactRecord) -> ContactRecord:
        record = replace(contact, id=contact.id or new_id(), created_at=utcnow())
        self.contacts[record.id] = record
        return record

    def list_contacts(self) -> list[ContactRecord]:
        return sorted(self.contacts.values(), key=lambda c: c.created_at, reverse=True)

    def get_contact(self, contact_id: str) -> Optional[ContactRecord]:
        return self.contacts.get(contact_id)

    def update_contact_status(
        self, contact_id: str, status: ContactStatus
    ) -> Optional[ContactRecord]:
        contact = self.contacts.get(contact_id)
        if not contact:
            return None
        contact.status = ContactStatus(status)
        return contact

    def delete_contact(self, contact_id: str) -> bool:
        return self.contacts.pop(contact_id, None) is not None

    def create_user(self, user: UserRecord) -> UserRecord:
        now = utcnow()
        record = replace(user, id=user.id or new_id(), created_at=now, updated_at=now)
        self.users[record.id] = record
        return record

    def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        for user in self.users.values():
            if user.email == email:
                return user
        return None

    def count_users(self) -> int:
        return len(self.users)


class SqlDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlDbClient")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    @staticmethod
    def _to_category(row: "CategoryRow") -> CategoryRecord:
        return CategoryRecord(
            id=row.id,
            name=row.name,
            slug=row.slug,
            description=row.description or "",
            order=row.order,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    @staticmethod
    def _to_image(row: "ImageRow") -> ImageRecord:
        return ImageRecord(
            id=row.id,
            title=row.title,
            description=row.description or "",
            location=row.location or "",
            category_ids=list(row.category_ids or []),
            category_slugs=list(row.category_slugs or []),
            url=row.url,
            thumbnail_url=row.thumbnail_url,
            width=row.width,
            height=row.height,
            order=row.order,
            featured=row.featured,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    @staticmethod
    def _to_contact(row: "ContactRow") -> ContactRecord:
        return ContactRecord(
            id=row.id,
            name=row.name,
            email=row.email,
            subject=row.subject,
            message=row.message,
            project_type=row.project_type or "",
            budget=row.budget or "",
            status=ContactStatus(row.status),
            created_at=row.created_at,
        )

    @staticmethod
    def _to_user(row: "UserRow") -> UserRecord:
        return UserRecord(
            id=row.id,
            email=row.email,
            password_hash=row.password_hash,
            name=row.name,
            role=UserRole(row.role),
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def list_categories(self) -> list[CategoryRecord]:
        with self.Session() as session:
            rows = session.execute(
                select(CategoryRow).order_by(CategoryRow.order.asc(), CategoryRow.created_at.asc())
            ).scalars()
            return [self._to_category(row) for row in rows]

    def get_category(self, category_id: str) -> Optional[CategoryRecord]:
        with self.Session() as session:
            row = session.get(CategoryRow, category_id)
            return self._to_category(row) if row else None

    def get_category_by_slug(self, slug: str) -> Optional[CategoryRecord]:
        with self.Session() as session:
            row = session.execute(
                select(CategoryRow).where(CategoryRow.slug == slug).limit(1)
            ).scalar_one_or_none()
            return self._to_category(row) if row else None

    def create_category(
        self, category: CategoryRecord, preserve_timestamps: bool = False
    ) -> CategoryRecord:
        created_at, updated_at = _creation_stamps(category, preserve_timestamps)
        with self.Session() as session:
            row = CategoryRow(
                id=category.id or new_id(),
                name=category.name,
                slug=category.slug,
                description=category.description,
                order=category.order,
                created_at=created_at,
                updated_at=updated_at,
            )
            session.add(row)
            session.commit()
            return self._to_category(row)

    def update_category(self, category_id: str, updates: dict) -> Optional[CategoryRecord]:
        with self.Session() as session:
            row = session.get(CategoryRow, category_id)
            if not row:
                return None
            for key, value in updates.items():
                if key in CATEGORY_UPDATE_FIELDS:
                    setattr(row, key, value)
            row.updated_at = utcnow()
            session.commit()
            return self._to_category(row)

    def delete_category(self, category_id: str) -> bool:
        with self.Session() as session:
            row = session.get(CategoryRow, category_id)
            if not row:
                return False
            session.delete(row)
            session.commit()
            return True

    def count_categories(self) -> int:
        with self.Session() as session:
            return session.execute(select(func.count()).select_from(CategoryRow)).scalar_one()

    def list_images(self, category_slug: Optional[str] = None) -> list[ImageRecord]:
        with self.Session() as session:
            rows = session.execute(
                select(ImageRow).order_by(ImageRow.order.asc(), ImageRow.created_at.asc())
            ).scalars()
            images = [self._to_image(row) for row in rows]
        # Category lists live in a JSON column; filter portably in Python.
        return filter_images(images, category_slug)

    def list_featured_images(self, limit: int = 12) -> list[ImageRecord]:
        with self.Session() as session:
            rows = session.execute(
                select(ImageRow)
                .where(ImageRow.featured.is_(True))
                .order_by(ImageRow.order.asc(), ImageRow.created_at.asc())
                .limit(limit)
            ).scalars()
            return [self._to_image(row) for row in rows]

    def get_image(self, image_id: str) -> Optional[ImageRecord]:
        with self.Session() as session:
            row = session.get(ImageRow, image_id)
            return self._to_image(row) if row else None

    def create_image(
        self, image: ImageRecord, preserve_timestamps: bool = False
    ) -> ImageRecord:
        created_at, updated_at = _creation_stamps(image, preserve_timestamps)
        with self.Session() as session:
            row = ImageRow(
                id=image.id or new_id(),
                title=image.title,
                description=image.description,
                location=image.location,
                category_ids=list(image.category_ids),
                category_slugs=list(image.category_slugs),
                url=image.url,
                thumbnail_url=image.thumbnail_url,
                width=image.width,
                height=image.height,
                order=image.order,
                featured=image.featured,
                created_at=created_at,
                updated_at=updated_at,
            )
            session.add(row)
            session.commit()
            return self._to_image(row)

    def update_image(self, image_id: str, updates: dict) -> Optional[ImageRecord]:
        with self.Session() as session:
            row = session.get(ImageRow, image_id)
            if not row:
                return None
            for key, value in updates.items():
                if key in IMAGE_UPDATE_FIELDS:
                    setattr(row, key, list(value) if isinstance(value, (list, tuple)) else value)
            row.updated_at = utcnow()
            session.commit()
            return self._to_image(row)

    def delete_image(self, image_id: str) -> bool:
        with self.Session() as session:
            row = session.get(ImageRow, image_id)
            if not row:
                return False
            session.delete(row)
            session.commit()
            return True

    def get_document(self, key: str) -> Optional[dict]:
        with self.Session() as session:
            row = session.get(DocumentRow, key)
            return dict(row.data) if row else None

    def save_document(self, key: str, data: dict) -> dict:
        payload = _json_copy(data)
        with self.Session() as session:
            row = session.get(DocumentRow, key)
            if row:
                row.data = payload
                row.updated_at = utcnow()
            else:
                session.add(DocumentRow(key=key, data=payload, updated_at=utcnow()))
            session.commit()
        return _json_copy(payload)

    def create_contact(self, contact: ContactRecord) -> ContactRecord:
        with self.Session() as session:
            row = ContactRow(
                id=contact.id or new_id(),
                name=contact.name,
                email=contact.email,
                subject=contact.subject,
                message=contact.message,
                project_type=contact.project_type,
                budget=contact.budget,
                status=ContactStatus(contact.status).value,
                created_at=utcnow(),
            )
            session.add(row)
            session.commit()
            return self._to_contact(row)

    def list_contacts(self) -> list[ContactRecord]:
        with self.Session() as session:
            rows = session.execute(
                select(ContactRow).order_by(ContactRow.created_at.desc())
            ).scalars()
            return [self._to_contact(row) for row in rows]

    def get_contact(self, contact_id: str) -> Optional[ContactRecord]:
        with self.Session() as session:
            row = session.get(ContactRow, contact_id)
            return self._to_contact(row) if row else None

    def update_contact_status(
        self, contact_id: str, status: ContactStatus
    ) -> Optional[ContactRecord]:
        with self.Session() as session:
            row = session.get(ContactRow, contact_id)
            if not row:
                return None
            row.status = ContactStatus(status).value
            session.commit()
            return self._to_contact(row)

    def delete_contact(self, contact_id: str) -> bool:
        with self.Session() as session:
            row = session.get(ContactRow, contact_id)
            if not row:
                return False
            session.delete(row)
            session.commit()
            return True

    def create_user(self, user: UserRecord) -> UserRecord:
        now = utcnow()
        with self.Session() as session:
            row = UserRow(
                id=user.id or new_id(),
                email=user.email,
                password_hash=user.password_hash,
                name=user.name,
                role=UserRole(user.role).value,
                created_at=now,
                updated_at=now,
            )
            session.add(row)
            session.commit()
            return self._to_user(row)

    def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        with self.Session() as session:
            row = session.execute(
                select(UserRow).where(UserRow.email == email).limit(1)
            ).scalar_one_or_none()
            return self._to_user(row) if row else None

    def count_users(self) -> int:
        with self.Session() as session:
            return session.execute(select(func.count()).select_from(UserRow)).scalar_one()


Base = declarative_base()


class CategoryRow(Base):
    __tablename__ = "categories"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    # Uniqueness is checked by the catalog, not the database.
    slug = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=True)
    order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)


class ImageRow(Base):
    __tablename__ = "images"

    id = Column(String, primary_key=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    location = Column(String, nullable=True)
    category_ids = Column(JSON, nullable=False, default=list)
    category_slugs = Column(JSON, nullable=False, default=list)
    url = Column(String, nullable=False)
    thumbnail_url = Column(String, nullable=True)
    width = Column(Integer, nullable=False)
    height = Column(Integer, nullable=False)
    order = Column(Integer, nullable=False, default=0)
    featured = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)


class DocumentRow(Base):
    __tablename__ = "documents"

    key = Column(String, primary_key=True)
    data = Column(JSON, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)


class ContactRow(Base):
    __tablename__ = "contacts"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    subject = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    project_type = Column(String, nullable=True)
    budget = Column(String, nullable=True)
    status = Column(String, nullable=False, default=ContactStatus.NEW.value)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)


class UserRow(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True)
    email = Column(String, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    name = Column(String, nullable=False)
    role = Column(String, nullable=False, default=UserRole.USER.value)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
