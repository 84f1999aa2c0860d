"""Scoring tables for content analysis and catalog diagnostics.

Kept as data so the scoring contract can be audited and tested apart
from the code that applies it. Bump SEO_WEIGHTS_VERSION whenever a
value changes; persisted diagnostics record the version they used.
"""

SEO_WEIGHTS_VERSION = 2

# Per-item content analysis: category -> maximum points
CATEGORY_MAXIMA = {
    "content": 30,
    "keywords": 20,
    "metadata": 20,
    "media": 15,
    "links": 10,
    "advanced": 5,
}

# (minimum score, grade), checked top-down
GRADE_BANDS = (
    (95, "A+"),
    (85, "A"),
    (70, "B"),
    (55, "C"),
    (40, "D"),
)
LOWEST_GRADE = "F"

# Summary text bands intentionally differ from the grade bands
SUMMARY_BANDS = (
    (90, "Excellent ! Votre article est parfaitement optimisé pour le SEO."),
    (80, "Très bon ! Quelques améliorations mineures pourraient renforcer votre SEO."),
    (70, "Bon travail ! Appliquez les recommandations pour améliorer votre positionnement."),
    (55, "Moyen. Des optimisations importantes sont nécessaires pour un bon référencement."),
    (40, "Insuffisant. Votre article nécessite des améliorations majeures en SEO."),
)
LOWEST_SUMMARY = "Critique. Cet article doit être entièrement revu pour être performant en SEO."

# Catalog diagnostic weights. Catalog checks plus advanced checks total 100.
SEO_WEIGHTS = {
    # Catalog checks (diagnostics.py)
    "PRODUCT_DESCRIPTIONS": 15,
    "PRODUCT_META_DESCRIPTIONS": 12,
    "PRODUCT_META_TITLES": 8,
    "PRODUCT_IMAGES": 10,
    "PRODUCT_ALT_TEXTS": 10,
    "PRODUCT_STRUCTURE": 5,
    "COLLECTION_DESCRIPTIONS": 5,
    "BLOG_CONTENT": 5,
    # Advanced checks (advanced_checks.py)
    "ADVANCED_IMAGE_SIZE": 5,
    "ADVANCED_ALT_GENERIC": 6,
    "ADVANCED_DUPLICATE_META": 6,
    "ADVANCED_BROKEN_LINKS": 5,
    "ADVANCED_LINK_HIERARCHY": 5,
    "ADVANCED_SCHEMA_MARKUP": 3,
}

# Affected-fraction thresholds above which an advanced check fails
ADVANCED_THRESHOLDS = {
    "heavy_images_per_product": 5,
    "heavy_images_ratio": 0.3,
    "generic_alt_ratio": 0.2,
    "duplicate_meta_ratio": 0.1,
    "weak_hierarchy_ratio": 0.3,
    "min_links_per_description": 2,
    "min_alt_length": 3,
}

# Catalog check thresholds
MIN_DESCRIPTION_LENGTH = 50
BLOG_MIN_SCORE = 55

TOTAL_POINTS = 100


def check_total(table: dict, name: str) -> None:
    """Raise ValueError unless the points of table add up to TOTAL_POINTS."""
    total = sum(table.values())
    if total != TOTAL_POINTS:
        raise ValueError(f"{name} must total {TOTAL_POINTS}, got {total}")


check_total(CATEGORY_MAXIMA, "content category maxima")
check_total(SEO_WEIGHTS, "diagnostic weights")
