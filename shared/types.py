from enum import StrEnum


class StorageTag(StrEnum):
    """Identifies which storage backend served an upload."""

    VERCEL_BLOB = "vercel-blob"
    FIREBASE = "firebase"
    LOCAL = "local"


class ContactStatus(StrEnum):
    NEW = "new"
    READ = "read"
    REPLIED = "replied"


class UserRole(StrEnum):
    ADMIN = "admin"
    USER = "user"


ALL_CATEGORIES = "all"
