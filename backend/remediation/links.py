"""Internal linking: link product descriptions to their collections."""

import html
import logging

from remediation.base import RemediationResult, load_product, load_shop, save_product

logger = logging.getLogger(__name__)


def build_collection_links(shop: dict, categories: list) -> list:
    """Anchor tags pointing at each category's collection page."""
    base_url = (shop.get("url") or "").rstrip("/")
    collections_slug = shop.get("collections_slug") or "collections"
    links = []
    for category in categories:
        slug = category.get("slug")
        if not slug:
            continue
        name = html.escape(category.get("name") or slug, quote=True)
        links.append(f'<a href="{base_url}/{collections_slug}/{slug}" title="{name}">{name}</a>')
    return links


def build_linking_paragraph(links: list) -> str:
    if len(links) == 1:
        text = f"Découvrez également notre collection {links[0]} pour plus de produits similaires."
    else:
        text = (f"Découvrez également nos collections {', '.join(links[:-1])} "
                f"et {links[-1]} pour plus de produits similaires.")
    return f"<p>{text}</p>"


def add_internal_links(product_id: str, preserve_existing: bool = True) -> RemediationResult:
    """Append a paragraph linking the product's collections to its description."""
    product = load_product(product_id)
    shop = load_shop(product["shop_id"])
    description = product.get("description") or ""

    if preserve_existing and "<a href=" in description:
        logger.debug("Product %s already has internal links, preserving", product_id)
        return RemediationResult(message="Internal links preserved", links_added=0,
                                 data={"description": description})

    categories = product.get("categories") or []
    if not categories:
        return RemediationResult(message="No categories to link to", links_added=0,
                                 data={"description": description})

    links = build_collection_links(shop, categories)
    if not links:
        return RemediationResult(message="No valid category links to add", links_added=0,
                                 data={"description": description})

    paragraph = build_linking_paragraph(links)
    updated = f"{description}\n\n{paragraph}" if description else paragraph
    _, remote_updated = save_product(product, {"description": updated})

    message = "Internal links added successfully"
    if remote_updated is False:
        message = "Links added to database but failed to sync to remote site"
    logger.info("Added %d internal links to product %s", len(links), product_id)
    return RemediationResult(
        message=message,
        links_added=len(links),
        data={"description": updated},
        remote_updated=remote_updated,
    )
