"""Catalog routes — /shops, /shops/<id>/products, sync, stats and connection test."""

import logging

from flask import Blueprint, jsonify

from db.repositories import CatalogRepository
from error_handler import NotFoundError, ValidationError
from routes import get_json_body

bp = Blueprint("catalog", __name__, url_prefix="/api/v1")
logger = logging.getLogger(__name__)

SHOP_TYPES = ("woocommerce", "shopify", "wordpress")
SECRET_FIELDS = ("consumer_key", "consumer_secret", "openai_api_key")


def _mask_shop(shop: dict) -> dict:
    masked = dict(shop)
    for key in SECRET_FIELDS:
        masked[key] = "***configured***" if shop.get(key) else ""
    return masked


def _get_shop_or_404(shop_id: str) -> dict:
    shop = CatalogRepository().get_shop(shop_id)
    if not shop:
        raise NotFoundError("Boutique non trouvée", context={"shop_id": shop_id})
    return shop


@bp.route("/shops", methods=["POST"])
def create_shop():
    """Register a shop. Requires name and url."""
    data = get_json_body()
    if not data.get("name") or not data.get("url"):
        raise ValidationError("name and url are required")
    shop_type = data.get("type") or "woocommerce"
    if shop_type not in SHOP_TYPES:
        raise ValidationError(f"Invalid shop type: {shop_type}", context={"allowed": list(SHOP_TYPES)})

    shop = CatalogRepository().create_shop({**data, "type": shop_type})
    logger.info("Created %s shop %s (%s)", shop_type, shop["id"], shop["url"])
    return jsonify({"success": True, "shop": _mask_shop(shop)}), 201


@bp.route("/shops/<shop_id>", methods=["GET"])
def get_shop(shop_id):
    return jsonify({"success": True, "shop": _mask_shop(_get_shop_or_404(shop_id))})


@bp.route("/shops/<shop_id>/products", methods=["GET"])
def list_products(shop_id):
    _get_shop_or_404(shop_id)
    products = CatalogRepository().list_products(shop_id)
    return jsonify({"success": True, "products": products, "count": len(products)})


@bp.route("/shops/<shop_id>/sync", methods=["POST"])
def sync_shop(shop_id):
    """Pull products and categories from WooCommerce, replacing local copies."""
    from catalog_sync import sync_categories, sync_products

    products = sync_products(shop_id)
    collections = sync_categories(shop_id)
    return jsonify({"success": True, "products": products, "collections": collections})


@bp.route("/shops/<shop_id>/test-connection", methods=["POST"])
def test_connection(shop_id):
    from catalog_sync import test_shop_connection

    ok, message = test_shop_connection(shop_id)
    body = {"success": ok, "message": message}
    if not ok:
        body["error"] = message
    return jsonify(body), 200 if ok else 502


@bp.route("/shops/<shop_id>/stats", methods=["GET"])
def shop_stats(shop_id):
    from catalog_sync import get_shop_stats

    return jsonify({"success": True, "stats": get_shop_stats(shop_id)})
