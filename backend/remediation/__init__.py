"""Remediation routines and the registries that dispatch to them.

ACTION_HANDLERS maps a generation job's action to a callable taking the
job dict. CATEGORY_HANDLERS maps a diagnostic issue category to a callable
taking (shop_id, affected_item). Both return a RemediationResult; errors
from collaborators propagate to the caller.
"""

from remediation.base import RemediationResult, load_product
from remediation.descriptions import generate_meta_description, generate_product_description
from remediation.images import generate_alt_texts
from remediation.links import add_internal_links
from remediation.translation import translate_product


def _complete(job: dict) -> RemediationResult:
    """Short + long description, meta description and alt texts."""
    product_id = job["product_id"]
    for kind in ("short", "long"):
        generate_product_description(product_id, kind)
    generate_meta_description(product_id)
    if load_product(product_id).get("images"):
        result = generate_alt_texts(product_id)
        if not result.success:
            return result
    return RemediationResult(message="Product content generated")


ACTION_HANDLERS = {
    "complete": _complete,
    "long_descriptions": lambda job: generate_product_description(job["product_id"], "long"),
    "short_descriptions": lambda job: generate_product_description(job["product_id"], "short"),
    "alt_images": lambda job: generate_alt_texts(job["product_id"]),
    "internal_linking": lambda job: add_internal_links(
        job["product_id"], preserve_existing=job.get("preserve_internal_links", True)),
    "translate": lambda job: translate_product(
        job["product_id"], job.get("language") or "", apply=True,
        preserve_internal_links=job.get("preserve_internal_links", True)),
}


def _alt_texts(shop_id, item):
    return generate_alt_texts(item["id"])


def _long_description(shop_id, item):
    return generate_product_description(item["id"], "long")


def _meta_description(shop_id, item):
    return generate_meta_description(item["id"])


def _internal_links(shop_id, item):
    return add_internal_links(item["id"], preserve_existing=True)


CATEGORY_HANDLERS = {
    "Images": _alt_texts,
    "SEO Images": _alt_texts,
    "Contenu": _long_description,
    "Structure": _long_description,
    "SEO": _meta_description,
    "Contenu dupliqué": _meta_description,
    "Maillage interne": _internal_links,
}


def get_category_handler(category: str, item: dict):
    """Handler for an issue category and item, None when unsupported."""
    if (item.get("type") or "product") != "product":
        return None
    return CATEGORY_HANDLERS.get(category)


__all__ = [
    "ACTION_HANDLERS",
    "CATEGORY_HANDLERS",
    "RemediationResult",
    "add_internal_links",
    "generate_alt_texts",
    "generate_meta_description",
    "generate_product_description",
    "get_category_handler",
    "translate_product",
]
