"""Alt text generation for product images."""

import logging

from error_handler import LLMCreditsError, LLMRateLimitError, SeoPilotError
from generation import get_gateway
from generation.llm_utils import ALT_TEXT_SYSTEM_PROMPT, build_alt_text_prompt
from remediation.base import RemediationResult, load_product, save_product

logger = logging.getLogger(__name__)


def generate_alt_texts(product_id: str) -> RemediationResult:
    """Generate an alt text for every image of a product.

    Rate limit and credit errors abort the whole product. Any other
    per-image failure keeps that image as it was.
    """
    product = load_product(product_id)
    images = product.get("images") or []
    if not images:
        return RemediationResult(success=False, error="No images found for this product")

    gateway = get_gateway()
    name = product.get("name") or ""
    updated_images = []
    for index, image in enumerate(images):
        try:
            text = gateway.complete([
                {"role": "system", "content": ALT_TEXT_SYSTEM_PROMPT},
                {"role": "user", "content": build_alt_text_prompt(product, index, len(images))},
            ])
        except (LLMRateLimitError, LLMCreditsError):
            raise
        except SeoPilotError as e:
            logger.warning("Alt text generation failed for image %d of product %s: %s",
                           index, product_id, e)
            updated_images.append(image)
            continue
        alt = text.strip().strip('"') or image.get("alt") or f"{name} - Image {index + 1}"
        updated_images.append({**image, "alt": alt})

    _, remote_updated = save_product(product, {"images": updated_images})
    return RemediationResult(
        message=f"{len(updated_images)} alt texts generated",
        data={"images": updated_images},
        remote_updated=remote_updated,
    )
