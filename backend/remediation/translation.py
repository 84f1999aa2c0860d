"""Product translation with optional preservation of internal link targets."""

import re
import logging

from error_handler import ValidationError
from generation import get_gateway
from generation.llm_utils import (
    LANGUAGE_NAMES,
    TRANSLATED_FIELDS,
    TRANSLATION_SYSTEM_PROMPT,
    build_translation_prompt,
)
from remediation.base import RemediationResult, load_product, save_product

logger = logging.getLogger(__name__)

_HREF_RE = re.compile(r"""href=(["'])(.*?)\1""", re.IGNORECASE)


def restore_hrefs(original: str, translated: str) -> str:
    """Put the original href values back into the translated HTML, in order.

    Extra links in the translation (beyond the original count) are left as is.
    """
    original_hrefs = [m.group(2) for m in _HREF_RE.finditer(original or "")]
    if not original_hrefs or not translated:
        return translated
    position = iter(original_hrefs)

    def _replace(match):
        href = next(position, None)
        if href is None:
            return match.group(0)
        quote = match.group(1)
        return f"href={quote}{href}{quote}"

    return _HREF_RE.sub(_replace, translated)


def translate_product(product_id: str, language: str, apply: bool = True,
                      preserve_internal_links: bool = True) -> RemediationResult:
    """Translate name, descriptions and meta fields into `language`."""
    if not language:
        raise ValidationError("Product ID and target language are required")
    if language not in LANGUAGE_NAMES:
        logger.info("Translating to unlisted language code %r", language)

    product = load_product(product_id)
    data = get_gateway().complete_json([
        {"role": "system", "content": TRANSLATION_SYSTEM_PROMPT},
        {"role": "user", "content": build_translation_prompt(product, language)},
    ])
    translation = {key: data[key] for key in TRANSLATED_FIELDS if isinstance(data.get(key), str)}

    if preserve_internal_links and "description" in translation:
        translation["description"] = restore_hrefs(product.get("description"), translation["description"])

    remote_updated = None
    if apply and translation:
        _, remote_updated = save_product(product, translation)
        logger.info("Applied %s translation to product %s", language, product_id)

    return RemediationResult(
        message="Translation applied" if apply else "Translation generated",
        data={"translation": translation, "applied": bool(apply)},
        remote_updated=remote_updated,
    )
