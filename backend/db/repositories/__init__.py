"""Repository layer for SEOPilot database operations.

Each repository class wraps one aggregate. Module-level convenience
functions delegate to fresh repository instances so callers do not need
to manage repository objects.
"""

from db.repositories.base import BaseRepository
from db.repositories.catalog import CatalogRepository
from db.repositories.diagnostics import DiagnosticRepository
from db.repositories.jobs import (
    ACTIVE_STATUSES,
    GENERATION_ACTIONS,
    GenerationJobRepository,
    ResolutionJobRepository,
)

__all__ = [
    "ACTIVE_STATUSES",
    "GENERATION_ACTIONS",
    "BaseRepository",
    "CatalogRepository",
    "DiagnosticRepository",
    "GenerationJobRepository",
    "ResolutionJobRepository",
    "get_shop",
    "get_product",
    "list_products",
    "update_product",
    "get_diagnostic",
]


# ---- Catalog convenience functions ----

def get_shop(shop_id: str):
    return CatalogRepository().get_shop(shop_id)


def get_product(product_id: str):
    return CatalogRepository().get_product(product_id)


def list_products(shop_id: str) -> list:
    return CatalogRepository().list_products(shop_id)


def update_product(product_id: str, fields: dict):
    return CatalogRepository().update_product(product_id, fields)


# ---- Diagnostics convenience functions ----

def get_diagnostic(diagnostic_id: str):
    return DiagnosticRepository().get_diagnostic(diagnostic_id)
