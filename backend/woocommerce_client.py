"""WooCommerce REST API (wc/v3) client.

Provides paginated product/category listing, header-based totals for
dashboard stats, completed-order revenue, and product updates pushed
after content generation. Authentication is HTTP Basic with the shop's
consumer key and secret.
"""

import time
import logging

import requests

from config import get_settings
from error_handler import ConfigurationError, WooCommerceError

logger = logging.getLogger(__name__)

BACKOFF_BASE = 2

YOAST_TITLE_KEY = "_yoast_wpseo_title"
YOAST_METADESC_KEY = "_yoast_wpseo_metadesc"


def get_client_for_shop(shop: dict) -> "WooCommerceClient":
    """Build a client for a shop row. Raises ConfigurationError when credentials are missing."""
    if not shop.get("url") or not shop.get("consumer_key") or not shop.get("consumer_secret"):
        raise ConfigurationError(
            "Identifiants WooCommerce manquants",
            troubleshooting="Renseignez l'URL, la consumer key et le consumer secret de la boutique.",
        )
    return WooCommerceClient(shop["url"], shop["consumer_key"], shop["consumer_secret"])


class WooCommerceClient:
    """WooCommerce REST API client."""

    def __init__(self, url, consumer_key, consumer_secret):
        settings = get_settings()
        self.url = url.rstrip("/")
        self.base_url = f"{self.url}/wp-json/wc/v3"
        self.timeout = settings.woocommerce_request_timeout
        self.max_retries = settings.woocommerce_max_retries
        self.page_size = settings.woocommerce_page_size
        self.session = requests.Session()
        self.session.auth = (consumer_key, consumer_secret)
        self.session.headers["Content-Type"] = "application/json"

    def _request(self, method, endpoint, params=None, json=None):
        """Send a request, retrying 5xx/429 responses and timeouts with backoff.

        Returns:
            requests.Response for a 2xx answer.

        Raises:
            WooCommerceError: non-retryable HTTP error, or retries exhausted.
        """
        url = f"{self.base_url}/{endpoint}"
        last_error = None
        for attempt in range(self.max_retries + 1):
            try:
                resp = self.session.request(method, url, params=params, json=json, timeout=self.timeout)
            except requests.Timeout:
                logger.warning("WooCommerce %s %s timed out (attempt %d)", method, endpoint, attempt + 1)
                last_error = "Request timeout after retries"
            except requests.ConnectionError as e:
                logger.warning("WooCommerce %s %s failed (attempt %d): %s", method, endpoint, attempt + 1, e)
                last_error = f"Connection error: {e}"
            else:
                if resp.ok:
                    return resp
                if resp.status_code >= 500 or resp.status_code == 429:
                    logger.warning("WooCommerce %s %s returned %d (attempt %d)",
                                   method, endpoint, resp.status_code, attempt + 1)
                    last_error = f"WooCommerce API error: {resp.status_code} - {resp.text[:200]}"
                else:
                    logger.error("WooCommerce HTTP %d on %s %s", resp.status_code, method, endpoint)
                    raise WooCommerceError(
                        f"WooCommerce API error: {resp.status_code} - {resp.text[:200]}",
                        context={"status": resp.status_code, "endpoint": endpoint},
                    )
            if attempt < self.max_retries:
                time.sleep(BACKOFF_BASE ** attempt)

        raise WooCommerceError(last_error or "WooCommerce request failed", context={"endpoint": endpoint})

    def _get_all(self, endpoint):
        """Fetch every page of a collection endpoint until an empty page."""
        items = []
        page = 1
        while True:
            resp = self._request("GET", endpoint, params={"page": page, "per_page": self.page_size})
            data = resp.json() or []
            if not data:
                break
            items.extend(data)
            page += 1
        return items

    def get_all_products(self):
        return self._get_all("products")

    def get_all_categories(self):
        return self._get_all("products/categories")

    def get_total(self, endpoint):
        """Collection size from the X-WP-Total header."""
        resp = self._request("GET", endpoint, params={"per_page": 1})
        try:
            return int(resp.headers.get("X-WP-Total", "0"))
        except ValueError:
            return 0

    def get_completed_orders(self):
        resp = self._request("GET", "orders", params={"per_page": 100, "status": "completed"})
        return resp.json() or []

    def update_product(self, woocommerce_id, data):
        """PUT product fields. Returns the updated remote product."""
        resp = self._request("PUT", f"products/{woocommerce_id}", json=data)
        return resp.json()

    def test_connection(self):
        """Check credentials and reachability.

        Returns:
            tuple: (ok: bool, message: str)
        """
        try:
            self._request("GET", "system_status")
            return True, "Connexion réussie"
        except WooCommerceError as e:
            return False, str(e)


def product_to_woocommerce(product: dict) -> dict:
    """Map a local product to a WooCommerce update payload.

    Prices are only sent when positive; SEO title/description go to Yoast meta.
    """
    payload = {
        "name": product.get("name") or "",
        "description": product.get("description") or "",
        "short_description": product.get("short_description") or "",
    }
    for key in ("regular_price", "sale_price"):
        value = product.get(key)
        if value and float(value) > 0:
            payload[key] = str(value)
    if product.get("sku"):
        payload["sku"] = product["sku"]
    if product.get("stock_quantity") is not None:
        payload["manage_stock"] = True
        payload["stock_quantity"] = product["stock_quantity"]
    if product.get("stock_status"):
        payload["stock_status"] = product["stock_status"]
    if product.get("images"):
        payload["images"] = [
            {k: v for k, v in img.items() if k in ("id", "src", "alt", "name")}
            for img in product["images"]
        ]

    meta_data = []
    if product.get("meta_title"):
        meta_data.append({"key": YOAST_TITLE_KEY, "value": product["meta_title"]})
    if product.get("meta_description"):
        meta_data.append({"key": YOAST_METADESC_KEY, "value": product["meta_description"]})
    if meta_data:
        payload["meta_data"] = meta_data
    return payload


def woocommerce_to_product(data: dict) -> dict:
    """Map a WooCommerce product to local product fields."""
    meta = {m.get("key"): m.get("value") for m in data.get("meta_data") or [] if isinstance(m, dict)}
    images = [
        {"id": img.get("id"), "src": img.get("src", ""), "alt": img.get("alt", "")}
        for img in data.get("images") or []
    ]
    return {
        "woocommerce_id": data.get("id"),
        "name": data.get("name", ""),
        "slug": data.get("slug", ""),
        "status": data.get("status", ""),
        "description": data.get("description", ""),
        "short_description": data.get("short_description", ""),
        "sku": data.get("sku", ""),
        "price": _to_float(data.get("price")),
        "regular_price": _to_float(data.get("regular_price")),
        "sale_price": _to_float(data.get("sale_price")),
        "stock_quantity": data.get("stock_quantity"),
        "stock_status": data.get("stock_status", ""),
        "images": images,
        "categories": [
            {"id": c.get("id"), "name": c.get("name", ""), "slug": c.get("slug", "")}
            for c in data.get("categories") or []
        ],
        "featured_image": images[0]["src"] if images else "",
        "meta_title": meta.get(YOAST_TITLE_KEY) or "",
        "meta_description": meta.get(YOAST_METADESC_KEY) or "",
    }


def _to_float(value) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0
