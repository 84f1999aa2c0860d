"""Catalog-wide advanced SEO checks.

Scans every product of a shop for defects that only show up across the
catalog: heavy image galleries, generic alt texts, duplicated meta
descriptions, broken product links and a weak internal-link hierarchy.
Each check emits exactly one issue (failure or success) so its full
weight is always accounted for. Read-only; the caller persists issues.
"""

import re
import logging

from seo_issues import make_issue, weighted_check
from seo_weights import ADVANCED_THRESHOLDS, SEO_WEIGHTS

logger = logging.getLogger(__name__)

GENERIC_ALT_PATTERNS = [
    re.compile(r"^image\d*\.?(jpe?g|png|gif|webp)?$", re.IGNORECASE),
    re.compile(r"^photo\d*\.?(jpe?g|png|gif|webp)?$", re.IGNORECASE),
    re.compile(r"^img[-_]?\d+$", re.IGNORECASE),
    re.compile(r"^picture\d*$", re.IGNORECASE),
    re.compile(r"^untitled", re.IGNORECASE),
    re.compile(r"^dsc\d+", re.IGNORECASE),
]

_HREF_RE = re.compile(r"""href=["']([^"']+)["']""", re.IGNORECASE)
_ANCHOR_RE = re.compile(r"<a\s+[^>]*href=", re.IGNORECASE)


def is_generic_alt(alt: str) -> bool:
    alt = alt or ""
    if len(alt) < ADVANCED_THRESHOLDS["min_alt_length"]:
        return True
    return any(pattern.search(alt) for pattern in GENERIC_ALT_PATTERNS)


def _images(product: dict) -> list:
    return product.get("images") or []


def _ratio(count: int, total: int) -> float:
    return count / total if total else 0.0


def check_heavy_images(products: list, weights: dict) -> dict:
    limit = ADVANCED_THRESHOLDS["heavy_images_per_product"]
    heavy = [p for p in products if len(_images(p)) > limit]
    total = len(products)
    return weighted_check(
        weights["ADVANCED_IMAGE_SIZE"], heavy, total,
        bool(heavy) and _ratio(len(heavy), total) > ADVANCED_THRESHOLDS["heavy_images_ratio"],
        "Performance",
        failure={
            "type": "warning",
            "title": "Images potentiellement trop lourdes",
            "description": f"{len(heavy)} produits ont beaucoup d'images, ce qui peut ralentir le chargement.",
            "recommendation": "Optimisez vos images : compressez-les à moins de 500 KB "
                              "et utilisez des formats modernes (WebP).",
        },
        success={
            "title": "Gestion des images optimale",
            "description": "Vos produits ont un nombre raisonnable d'images, bon pour la performance.",
        },
    )


def check_generic_alt_texts(products: list, weights: dict) -> dict:
    generic = [
        p for p in products
        if any(is_generic_alt(img.get("alt")) for img in _images(p))
    ]
    total = len(products)
    return weighted_check(
        weights["ADVANCED_ALT_GENERIC"], generic, total,
        bool(generic) and _ratio(len(generic), total) > ADVANCED_THRESHOLDS["generic_alt_ratio"],
        "SEO Images",
        failure={
            "type": "error",
            "title": "Textes alternatifs génériques",
            "description": f'{len(generic)} produits ont des textes alt génériques (ex: "image1.jpg"), '
                           "ce qui nuit au référencement.",
            "recommendation": "Remplacez les textes alt génériques par des descriptions précises "
                              "incluant vos mots-clés.",
        },
        success={
            "title": "Textes alternatifs descriptifs",
            "description": "Vos images ont des textes alternatifs descriptifs et pertinents.",
        },
        action_available=True,
    )


def check_duplicate_meta_descriptions(products: list, weights: dict) -> dict:
    groups: dict[str, list] = {}
    for product in products:
        meta = product.get("meta_description")
        if meta:
            groups.setdefault(meta.strip().lower(), []).append(product)

    duplicated = [p for group in groups.values() if len(group) > 1 for p in group]
    total = len(products)
    return weighted_check(
        weights["ADVANCED_DUPLICATE_META"], duplicated, total,
        bool(duplicated) and _ratio(len(duplicated), total) > ADVANCED_THRESHOLDS["duplicate_meta_ratio"],
        "Contenu dupliqué",
        failure={
            "type": "error",
            "title": "Méta-descriptions dupliquées",
            "description": f"{len(duplicated)} produits partagent des méta-descriptions identiques, "
                           "ce qui peut nuire au classement.",
            "recommendation": "Créez des méta-descriptions uniques pour chaque produit, en mettant "
                              "en avant leurs caractéristiques spécifiques.",
        },
        success={
            "title": "Méta-descriptions uniques",
            "description": "Chaque produit a une méta-description unique, excellent pour le SEO.",
        },
        action_available=True,
    )


def _has_broken_link(description: str, slugs: set) -> bool:
    for url in _HREF_RE.findall(description):
        if "/product/" in url or "/produit/" in url:
            slug = url.split("/")[-1]
            if slug and slug not in slugs:
                return True
    return False


def check_broken_links(products: list, weights: dict) -> dict:
    slugs = {p.get("slug") for p in products}
    broken = [
        p for p in products
        if p.get("description") and _has_broken_link(p["description"], slugs)
    ]
    return weighted_check(
        weights["ADVANCED_BROKEN_LINKS"], broken, len(products), bool(broken),
        "Maillage interne",
        failure={
            "type": "error",
            "title": "Liens internes cassés détectés",
            "description": f"{len(broken)} produits contiennent des liens vers des produits "
                           "supprimés ou inexistants.",
            "recommendation": "Vérifiez et corrigez les liens internes dans vos descriptions de produits.",
        },
        success={
            "title": "Aucun lien cassé détecté",
            "description": "Tous vos liens internes pointent vers des pages valides.",
        },
    )


def _has_weak_linking(product: dict) -> bool:
    description = product.get("description")
    if not description:
        return True
    link_count = len(_ANCHOR_RE.findall(description))
    return link_count < ADVANCED_THRESHOLDS["min_links_per_description"] or not product.get("categories")


def check_link_hierarchy(products: list, weights: dict) -> dict:
    weak = [p for p in products if _has_weak_linking(p)]
    total = len(products)
    return weighted_check(
        weights["ADVANCED_LINK_HIERARCHY"], weak, total,
        bool(weak) and _ratio(len(weak), total) > ADVANCED_THRESHOLDS["weak_hierarchy_ratio"],
        "Maillage interne",
        failure={
            "type": "warning",
            "title": "Structure de liens hiérarchique faible",
            "description": f"{len(weak)} produits ont une structure de liens insuffisante "
                           "(catégorie + produits complémentaires).",
            "recommendation": "Ajoutez au moins 2 liens par produit : un vers la catégorie "
                              "et un vers un produit complémentaire.",
        },
        success={
            "title": "Bonne structure de liens hiérarchique",
            "description": "Vos produits ont une bonne structure de liens internes.",
        },
        action_available=True,
    )


def check_schema_markup(products: list, weights: dict) -> dict:
    """Always informational with zero credit: needs storefront template changes."""
    return make_issue(
        "info",
        "Données structurées",
        "Schema.org Product markup",
        "Les données structurées JSON-LD augmentent considérablement la visibilité "
        "dans Google Shopping et les rich snippets.",
        "Implémentez le balisage Schema.org Product sur votre site. Cela nécessite des "
        "modifications du template WooCommerce/Shopify.",
        max_points=weights["ADVANCED_SCHEMA_MARKUP"],
        earned_points=0,
        total_count=len(products),
    )


ADVANCED_CHECKS = (
    check_heavy_images,
    check_generic_alt_texts,
    check_duplicate_meta_descriptions,
    check_broken_links,
    check_link_hierarchy,
    check_schema_markup,
)


def run_advanced_checks(products: list, weights: dict = None) -> dict:
    """Run every advanced check over a product catalog.

    Args:
        products: Product dicts (images, meta_description, description,
                  categories, slug, name, id).
        weights: Weight table, defaults to SEO_WEIGHTS.

    Returns:
        Dict with issues, max_score (sum of weights) and current_score
        (sum of earned credit).
    """
    weights = weights or SEO_WEIGHTS
    products = products or []
    issues = [check(products, weights) for check in ADVANCED_CHECKS]
    max_score = sum(i["maxPoints"] for i in issues)
    current_score = sum(i["earnedPoints"] for i in issues)
    logger.debug("Advanced checks: %d/%d over %d products", current_score, max_score, len(products))
    return {"issues": issues, "max_score": max_score, "current_score": current_score}
