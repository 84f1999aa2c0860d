"""Product description and meta description generation."""

import logging

from config import get_settings
from error_handler import ValidationError
from generation import get_gateway
from generation.llm_utils import (
    SEO_SYSTEM_PROMPT,
    build_long_description_prompt,
    build_meta_description_prompt,
    build_short_description_prompt,
    language_name,
    strip_code_fences,
    truncate_meta_description,
)
from remediation.base import RemediationResult, load_product, load_shop, save_product

logger = logging.getLogger(__name__)

DESCRIPTION_KINDS = ("short", "long")


def generate_product_description(product_id: str, kind: str) -> RemediationResult:
    """Write a short (plain text) or long (HTML) description for a product."""
    if kind not in DESCRIPTION_KINDS:
        raise ValidationError(f"Invalid description type: {kind}")
    product = load_product(product_id)
    shop = load_shop(product["shop_id"])
    language = language_name(shop.get("language") or get_settings().default_language)

    if kind == "short":
        prompt = build_short_description_prompt(product, language)
        field_name = "short_description"
    else:
        prompt = build_long_description_prompt(product, language)
        field_name = "description"

    text = get_gateway().complete([
        {"role": "system", "content": SEO_SYSTEM_PROMPT},
        {"role": "user", "content": prompt},
    ])
    if kind == "long":
        text = strip_code_fences(text)

    _, remote_updated = save_product(product, {field_name: text})
    logger.info("Generated %s description for product %s", kind, product_id)
    return RemediationResult(
        message=f"{kind.capitalize()} description generated",
        data={field_name: text},
        remote_updated=remote_updated,
    )


def generate_meta_description(product_id: str) -> RemediationResult:
    """Write a 150-160 character meta description."""
    product = load_product(product_id)
    text = get_gateway().complete([
        {"role": "user", "content": build_meta_description_prompt(product)},
    ])
    meta_description = truncate_meta_description(text)

    _, remote_updated = save_product(product, {"meta_description": meta_description})
    logger.info("Generated meta description for product %s (%d chars)", product_id, len(meta_description))
    return RemediationResult(
        message="Meta description generated",
        data={"meta_description": meta_description},
        remote_updated=remote_updated,
    )
