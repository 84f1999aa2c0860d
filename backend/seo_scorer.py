"""SEO score aggregation for a single content item.

Runs the six content analyzer categories over one blog post or product,
sums their points into a 0-100 score, and attaches the letter grade and
the summary sentence.
"""

import logging

from content_analyzer import (
    analyze_advanced,
    analyze_content,
    analyze_keywords,
    analyze_links,
    analyze_media,
    analyze_metadata,
    count_words,
    strip_html,
)
from seo_weights import GRADE_BANDS, LOWEST_GRADE, LOWEST_SUMMARY, SUMMARY_BANDS

logger = logging.getLogger(__name__)


def calculate_grade(score: int) -> str:
    """Map a 0-100 score to A+/A/B/C/D/F."""
    for minimum, grade in GRADE_BANDS:
        if score >= minimum:
            return grade
    return LOWEST_GRADE


def generate_summary(score: int) -> str:
    """Map a 0-100 score to its summary sentence."""
    for minimum, text in SUMMARY_BANDS:
        if score >= minimum:
            return text
    return LOWEST_SUMMARY


def _featured_image(item: dict):
    if item.get("featured_image"):
        return item["featured_image"]
    images = item.get("images") or []
    if images and isinstance(images[0], dict):
        return images[0].get("src")
    return None


def analyze_seo(item: dict) -> dict:
    """Analyze one content item and return the full SEO analysis.

    Args:
        item: Blog post (content, title) or product (description, name) dict.
              Optional keys: meta_title, meta_description, focus_keyword,
              featured_image, images.

    Returns:
        Dict with score, categories (content, keywords, metadata, media,
        links, advanced), summary and grade.
    """
    content = item.get("content") or item.get("description") or ""
    title = item.get("title") or item.get("name") or ""
    meta_title = item.get("meta_title") or ""
    meta_description = item.get("meta_description") or ""
    focus_keyword = item.get("focus_keyword") or ""

    plain_text = strip_html(content)
    word_count = count_words(plain_text)

    categories = {
        "content": analyze_content(content, word_count),
        "keywords": analyze_keywords(content, plain_text, focus_keyword, title, meta_title),
        "metadata": analyze_metadata(meta_title, meta_description),
        "media": analyze_media(content, _featured_image(item)),
        "links": analyze_links(content),
        "advanced": analyze_advanced(content),
    }

    score = sum(c.score for c in categories.values())
    logger.debug("SEO analysis for %r: %d/100", title[:50], score)

    return {
        "score": score,
        "categories": {name: c.to_dict() for name, c in categories.items()},
        "summary": generate_summary(score),
        "grade": calculate_grade(score),
    }
