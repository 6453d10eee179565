"""
Repository layer for DB and catalog storage access patterns.
"""

from revius_backend.repositories.lists import ListRepositoryError, bulk_insert_items, create_list
from revius_backend.repositories.novela_catalog import (
    CatalogStore,
    CatalogStoreError,
    InMemoryCatalogStore,
    JsonFileCatalogStore,
)

__all__ = [
    "CatalogStore",
    "CatalogStoreError",
    "InMemoryCatalogStore",
    "JsonFileCatalogStore",
    "ListRepositoryError",
    "bulk_insert_items",
    "create_list",
]
