"""
Admin access for mutating endpoints.

Either a shared key in the `X-Admin-Key` header or HTTP Basic credentials of
a stored admin user are accepted.
"""

from __future__ import annotations

import logging
import secrets
from typing import Optional

import bcrypt
from fastapi import Depends, Header, HTTPException
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from portfolio.config import Settings, get_settings
from portfolio.db import DbClient, UserRecord
from portfolio.dependencies import get_db_client
from shared.types import UserRole

logger = logging.getLogger(__name__)

basic_auth = HTTPBasic(auto_error=False)
BCRYPT_MAX_PASSWORD_BYTES = 72


def _password_bytes(password: str) -> bytes:
    # bcrypt rejects passwords longer than 72 bytes.
    return password.encode("utf-8")[:BCRYPT_MAX_PASSWORD_BYTES]


def hash_password(password: str) -> str:
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=10)).decode("utf-8")


def verify_password(user: UserRecord, password: str) -> bool:
    return bcrypt.checkpw(_password_bytes(password), user.password_hash.encode("utf-8"))


def create_user(
    db: DbClient, *, email: str, password: str, name: str, role: UserRole = UserRole.USER
) -> UserRecord:
    return db.create_user(
        UserRecord(email=email, password_hash=hash_password(password), name=name, role=role)
    )


def authenticate(db: DbClient, email: str, password: str) -> Optional[UserRecord]:
    user = db.get_user_by_email(email)
    if user and verify_password(user, password):
        return user
    return None


def require_admin(
    x_admin_key: Optional[str] = Header(None),
    credentials: Optional[HTTPBasicCredentials] = Depends(basic_auth),
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
) -> None:
    if not settings.admin_auth_enabled:
        return
    if x_admin_key and settings.admin_api_key and secrets.compare_digest(
        x_admin_key.encode("utf-8"), settings.admin_api_key.encode("utf-8")
    ):
        return
    if credentials:
        user = authenticate(db, credentials.username, credentials.password)
        if user and user.role == UserRole.ADMIN:
            return
        logger.warning("Rejected admin credentials for %s", credentials.username)
    raise HTTPException(
        status_code=401,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Basic"},
    )
