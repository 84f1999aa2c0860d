"""Catalog synchronization between local tables and a WooCommerce store."""

import logging

from db.repositories import CatalogRepository
from error_handler import NotFoundError
from woocommerce_client import get_client_for_shop, product_to_woocommerce, woocommerce_to_product

logger = logging.getLogger(__name__)


def _require_shop(shop_id: str) -> dict:
    shop = CatalogRepository().get_shop(shop_id)
    if not shop:
        raise NotFoundError("Boutique non trouvée", context={"shop_id": shop_id})
    return shop


def sync_products(shop_id: str) -> int:
    """Replace the shop's products with the current WooCommerce catalog."""
    shop = _require_shop(shop_id)
    client = get_client_for_shop(shop)
    remote = client.get_all_products()
    count = CatalogRepository().replace_products(shop_id, [woocommerce_to_product(p) for p in remote])
    logger.info("Synced %d products for shop %s", count, shop_id)
    return count


def sync_categories(shop_id: str) -> int:
    """Replace the shop's collections with the WooCommerce product categories."""
    shop = _require_shop(shop_id)
    client = get_client_for_shop(shop)
    remote = client.get_all_categories()
    collections = [
        {
            "woocommerce_id": c.get("id"),
            "name": c.get("name", ""),
            "slug": c.get("slug", ""),
            "description": c.get("description", ""),
            "product_count": c.get("count", 0),
        }
        for c in remote
    ]
    count = CatalogRepository().replace_collections(shop_id, collections)
    logger.info("Synced %d collections for shop %s", count, shop_id)
    return count


def is_remote_syncable(shop: dict, product: dict) -> bool:
    return shop.get("type") == "woocommerce" and bool(product.get("woocommerce_id"))


def push_product(product_id: str) -> dict:
    """Push a local product's content to WooCommerce.

    Returns:
        The updated remote product.

    Raises:
        NotFoundError: unknown product or shop.
        ConfigurationError: shop credentials missing.
        WooCommerceError: API failure.
    """
    repo = CatalogRepository()
    product = repo.get_product(product_id)
    if not product:
        raise NotFoundError("Product not found", context={"product_id": product_id})
    shop = _require_shop(product["shop_id"])
    client = get_client_for_shop(shop)
    return client.update_product(product["woocommerce_id"], product_to_woocommerce(product))


def try_push_product(shop: dict, product: dict) -> bool:
    """Push when the product lives in WooCommerce. Failures are logged, never raised."""
    if not is_remote_syncable(shop, product):
        return False
    try:
        push_product(product["id"])
        return True
    except Exception as e:
        logger.warning("WooCommerce sync failed for product %s: %s", product["id"], e)
        return False


def get_shop_stats(shop_id: str) -> dict:
    """Dashboard totals straight from WooCommerce."""
    shop = _require_shop(shop_id)
    client = get_client_for_shop(shop)
    orders = client.get_completed_orders()
    revenue = 0.0
    for order in orders:
        try:
            revenue += float(order.get("total") or 0)
        except (TypeError, ValueError):
            continue
    return {
        "products": client.get_total("products"),
        "collections": client.get_total("products/categories"),
        "orders": len(orders),
        "revenue": f"{revenue:.2f}€",
        "customers": client.get_total("customers"),
    }


def test_shop_connection(shop_id: str) -> tuple:
    shop = _require_shop(shop_id)
    return get_client_for_shop(shop).test_connection()
