"""Shared result type and persistence helpers for remediation routines.

A routine loads one product, asks the LLM gateway for new content, writes
it back through the catalog repository and, for WooCommerce shops, pushes
the product to the store. A failed push never fails the routine; it is
reported as remote_updated=False.
"""

import logging
from dataclasses import dataclass, field

from catalog_sync import is_remote_syncable, try_push_product
from db.repositories import CatalogRepository
from error_handler import NotFoundError

logger = logging.getLogger(__name__)


@dataclass
class RemediationResult:
    """Outcome of one remediation routine on one product."""

    success: bool = True
    message: str = ""
    error: str | None = None
    data: dict = field(default_factory=dict)
    links_added: int | None = None
    remote_updated: bool | None = None

    def to_dict(self) -> dict:
        result = {"success": self.success, **self.data}
        if self.message:
            result["message"] = self.message
        if self.error:
            result["error"] = self.error
        if self.links_added is not None:
            result["links_added"] = self.links_added
        if self.remote_updated is not None:
            result["remote_updated"] = self.remote_updated
        return result


def load_product(product_id: str) -> dict:
    product = CatalogRepository().get_product(product_id)
    if not product:
        raise NotFoundError("Product not found", context={"product_id": product_id})
    return product


def load_shop(shop_id: str) -> dict:
    shop = CatalogRepository().get_shop(shop_id)
    if not shop:
        raise NotFoundError("Shop not found", context={"shop_id": shop_id})
    return shop


def save_product(product: dict, fields: dict) -> tuple[dict, bool | None]:
    """Persist fields, then push to WooCommerce when the product lives there.

    Returns:
        (updated product, remote_updated) where remote_updated is None when
        the product has no remote counterpart.
    """
    updated = CatalogRepository().update_product(product["id"], fields)
    shop = CatalogRepository().get_shop(product["shop_id"]) or {}
    if not is_remote_syncable(shop, product):
        logger.debug("Product %s has no WooCommerce counterpart, skipping push", product["id"])
        return updated, None
    return updated, try_push_product(shop, updated)
