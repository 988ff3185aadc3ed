"""SQLite repository implementations."""

from dwight_soundboard.infrastructure.persistence.repositories.catalog_repository import (
    SQLiteCatalogStore,
)

__all__ = [
    "SQLiteCatalogStore",
]
