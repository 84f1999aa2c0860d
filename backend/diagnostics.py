"""Shop diagnostic runs: catalog checks, advanced checks and resolution bookkeeping.

run_diagnostic() scores a shop out of 100. Every weighted check emits one
issue (failure or success) so the maxPoints of a run always total 100 and
its score is the sum of earnedPoints. Configuration and inventory findings
are informational and carry zero points.

Resolutions (manual or automatic) remove items from an issue's
affected_items and recompute its earned credit from what remains.
"""

import logging

from advanced_checks import run_advanced_checks
from db.repositories import CatalogRepository, DiagnosticRepository
from error_handler import NotFoundError, ValidationError
from seo_issues import make_issue, round_half_up, summarize_issues, weighted_check
from seo_scorer import analyze_seo
from seo_weights import BLOG_MIN_SCORE, MIN_DESCRIPTION_LENGTH, SEO_WEIGHTS, SEO_WEIGHTS_VERSION

logger = logging.getLogger(__name__)

_HEADING_TAGS = ("<h2", "<h3")


def _has_structure(description: str) -> bool:
    lowered = (description or "").lower()
    return any(tag in lowered for tag in _HEADING_TAGS)


def _missing_alt(product: dict) -> bool:
    return any(not (img.get("alt") or "").strip() for img in product.get("images") or [])


def check_product_descriptions(products: list, weights: dict) -> dict:
    affected = [p for p in products
                if len((p.get("description") or "").strip()) < MIN_DESCRIPTION_LENGTH]
    return weighted_check(
        weights["PRODUCT_DESCRIPTIONS"], affected, len(products), bool(affected), "Contenu",
        failure={
            "type": "error",
            "title": "Descriptions produits manquantes ou trop courtes",
            "description": f"{len(affected)} produits n'ont pas de description ou ont une "
                           f"description de moins de {MIN_DESCRIPTION_LENGTH} caractères.",
            "recommendation": "Ajoutez des descriptions détaillées d'au moins 150 caractères "
                              "pour améliorer le SEO.",
        },
        success={
            "title": "Descriptions produits complètes",
            "description": "Tous vos produits ont une description suffisante.",
        },
        action_available=True,
    )


def check_meta_descriptions(products: list, weights: dict) -> dict:
    affected = [p for p in products if not (p.get("meta_description") or "").strip()]
    return weighted_check(
        weights["PRODUCT_META_DESCRIPTIONS"], affected, len(products), bool(affected), "SEO",
        failure={
            "type": "warning",
            "title": "Meta descriptions manquantes",
            "description": f"{len(affected)} produits n'ont pas de meta description.",
            "recommendation": "Ajoutez des meta descriptions de 150-160 caractères optimisées "
                              "pour les résultats de recherche.",
        },
        success={
            "title": "Meta descriptions présentes",
            "description": "Tous vos produits ont une meta description.",
        },
        action_available=True,
    )


def check_meta_titles(products: list, weights: dict) -> dict:
    affected = [p for p in products if not (p.get("meta_title") or "").strip()]
    return weighted_check(
        weights["PRODUCT_META_TITLES"], affected, len(products), bool(affected), "SEO",
        failure={
            "type": "warning",
            "title": "Meta titres manquants",
            "description": f"{len(affected)} produits n'ont pas de meta titre.",
            "recommendation": "Rédigez des meta titres de 50-60 caractères incluant le mot-clé principal.",
        },
        success={
            "title": "Meta titres présents",
            "description": "Tous vos produits ont un meta titre.",
        },
    )


def check_product_images(products: list, weights: dict) -> dict:
    affected = [p for p in products if not p.get("images")]
    return weighted_check(
        weights["PRODUCT_IMAGES"], affected, len(products), bool(affected), "Images",
        failure={
            "type": "error",
            "title": "Images produits manquantes",
            "description": f"{len(affected)} produits n'ont pas d'images.",
            "recommendation": "Ajoutez au moins une image de qualité pour chaque produit avec "
                              "des attributs alt descriptifs.",
        },
        success={
            "title": "Images produits présentes",
            "description": "Tous vos produits ont au moins une image.",
        },
    )


def check_alt_texts(products: list, weights: dict) -> dict:
    affected = [p for p in products if _missing_alt(p)]
    return weighted_check(
        weights["PRODUCT_ALT_TEXTS"], affected, len(products), bool(affected), "Images",
        failure={
            "type": "warning",
            "title": "Textes alternatifs manquants",
            "description": f"{len(affected)} produits ont des images sans texte alternatif.",
            "recommendation": "Générez des textes alt descriptifs pour chaque image afin "
                              "d'améliorer l'accessibilité et le référencement des images.",
        },
        success={
            "title": "Textes alternatifs présents",
            "description": "Toutes vos images produits ont un texte alternatif.",
        },
        action_available=True,
    )


def check_description_structure(products: list, weights: dict) -> dict:
    affected = [p for p in products
                if (p.get("description") or "").strip() and not _has_structure(p.get("description"))]
    return weighted_check(
        weights["PRODUCT_STRUCTURE"], affected, len(products), bool(affected), "Structure",
        failure={
            "type": "info",
            "title": "Descriptions sans structure",
            "description": f"{len(affected)} descriptions produits n'utilisent aucun sous-titre H2 ou H3.",
            "recommendation": "Structurez vos descriptions avec des sous-titres H2/H3 et des listes.",
        },
        success={
            "title": "Descriptions bien structurées",
            "description": "Vos descriptions utilisent des sous-titres.",
        },
        action_available=True,
    )


def check_collection_descriptions(collections: list, weights: dict) -> dict:
    affected = [c for c in collections if not (c.get("description") or "").strip()]
    return weighted_check(
        weights["COLLECTION_DESCRIPTIONS"], affected, len(collections), bool(affected), "Contenu",
        failure={
            "type": "warning",
            "title": "Descriptions collections manquantes",
            "description": f"{len(affected)} collections n'ont pas de description.",
            "recommendation": "Ajoutez des descriptions SEO optimisées pour vos collections.",
        },
        success={
            "title": "Collections décrites",
            "description": "Toutes vos collections ont une description.",
        },
        item_type="collection",
    )


def check_blog_content(posts: list, weights: dict) -> dict:
    affected = [p for p in posts if analyze_seo(p)["score"] < BLOG_MIN_SCORE]
    return weighted_check(
        weights["BLOG_CONTENT"], affected, len(posts), bool(affected), "Contenu",
        failure={
            "type": "warning",
            "title": "Articles de blog peu optimisés",
            "description": f"{len(affected)} articles ont un score SEO inférieur à {BLOG_MIN_SCORE}/100.",
            "recommendation": "Enrichissez vos articles : structure H2/H3, mot-clé principal, "
                              "meta données et liens internes.",
        },
        success={
            "title": "Articles de blog optimisés",
            "description": "Vos articles de blog ont un bon score SEO.",
        },
        item_type="blog",
    )


def informational_issues(shop: dict, products: list) -> list:
    """Zero-point findings about inventory and shop configuration."""
    issues = []
    out_of_stock = [p for p in products
                    if p.get("stock_status") == "outofstock" and p.get("status") == "publish"]
    if out_of_stock:
        issues.append(make_issue(
            "warning", "Inventaire", "Produits en rupture de stock",
            f"{len(out_of_stock)} produits publiés sont en rupture de stock.",
            "Considérez mettre ces produits en brouillon ou ajoutez une date de réapprovisionnement.",
            affected_items=[{"id": p["id"], "name": p.get("name", ""), "slug": p.get("slug") or "",
                             "type": "product"} for p in out_of_stock],
            total_count=len(products),
        ))
    if not shop.get("consumer_key") or not shop.get("consumer_secret"):
        issues.append(make_issue(
            "error", "Configuration", "Clés API WooCommerce manquantes",
            "Les identifiants WooCommerce ne sont pas configurés.",
            "Configurez les clés API WooCommerce pour synchroniser vos données automatiquement.",
            resource_type="shop",
        ))
    if not shop.get("openai_api_key"):
        issues.append(make_issue(
            "info", "Configuration", "Clé API OpenAI manquante",
            "La clé API OpenAI n'est pas configurée pour cette boutique.",
            "Ajoutez votre clé API OpenAI pour utiliser la génération automatique de contenu.",
            resource_type="shop",
        ))
    return issues


def build_issues(shop: dict, products: list, collections: list, posts: list,
                 weights: dict = None) -> list:
    """All issues for one shop, weighted checks first."""
    weights = weights or SEO_WEIGHTS
    issues = [
        check_product_descriptions(products, weights),
        check_meta_descriptions(products, weights),
        check_meta_titles(products, weights),
        check_product_images(products, weights),
        check_alt_texts(products, weights),
        check_description_structure(products, weights),
        check_collection_descriptions(collections, weights),
        check_blog_content(posts, weights),
    ]
    issues.extend(run_advanced_checks(products, weights)["issues"])
    issues.extend(informational_issues(shop, products))
    return issues


def run_diagnostic(shop_id: str) -> dict:
    """Score a shop's catalog and persist the run.

    Raises:
        NotFoundError: unknown shop.
    """
    catalog = CatalogRepository()
    shop = catalog.get_shop(shop_id)
    if not shop:
        raise NotFoundError("Boutique non trouvée", context={"shop_id": shop_id})

    repo = DiagnosticRepository()
    run = repo.create_diagnostic(shop_id, weights_version=SEO_WEIGHTS_VERSION)
    try:
        issues = build_issues(
            shop,
            catalog.list_products(shop_id),
            catalog.list_collections(shop_id),
            catalog.list_blog_posts(shop_id),
        )
        summary = summarize_issues(issues)
        result = repo.complete_diagnostic(run["id"], issues, summary)
    except Exception as e:
        logger.error("Diagnostic %s for shop %s failed: %s", run["id"], shop_id, e)
        repo.fail_diagnostic(run["id"], str(e))
        raise

    logger.info("Diagnostic %s: score %d, %d issues (%d errors, %d warnings)",
                run["id"], summary["score"], summary["total_issues"],
                summary["errors_count"], summary["warnings_count"])
    return result


def _resolve_items(issue: dict, item_ids: list) -> int:
    """Move item_ids from affected to resolved and recompute credit.

    Returns the number of affected items that were removed. Issues that never
    listed affected items (schema, configuration) are left unchanged.
    """
    affected = issue.get("affected_items") or []
    if not affected:
        return 0

    resolved = issue.setdefault("resolved_items", [])
    for item_id in item_ids:
        if item_id not in resolved:
            resolved.append(item_id)

    remaining = [item for item in affected if item.get("id") not in resolved]
    removed = len(affected) - len(remaining)
    issue["affected_items"] = remaining

    max_points = issue.get("maxPoints", 0)
    total = issue.get("total_count") or 0
    if not remaining:
        issue["type"] = "success"
        issue["resolved"] = True
        issue["earnedPoints"] = max_points
    elif total > 0:
        issue["earnedPoints"] = max(0, min(max_points, round_half_up(max_points * (1 - len(remaining) / total))))
    issue["score_improvement"] = max_points - issue["earnedPoints"]
    return removed


def _save_resolution(repo: DiagnosticRepository, diagnostic: dict) -> dict:
    summary = summarize_issues(diagnostic["issues"])
    return repo.update_issues(diagnostic["id"], diagnostic["issues"], summary)


def mark_items_resolved(diagnostic_id: str, issue_index: int, item_ids: list,
                        manual: bool = True) -> dict:
    """Mark items of one issue as resolved and rescore the diagnostic.

    Raises:
        NotFoundError: unknown diagnostic.
        ValidationError: issue_index out of range.
    """
    repo = DiagnosticRepository()
    diagnostic = repo.get_diagnostic(diagnostic_id)
    if not diagnostic:
        raise NotFoundError("Diagnostic not found", context={"diagnostic_id": diagnostic_id})
    issues = diagnostic["issues"]
    if not isinstance(issue_index, int) or issue_index < 0 or issue_index >= len(issues):
        raise ValidationError("Invalid issue index", context={"issue_index": issue_index})

    issue = issues[issue_index]
    removed = _resolve_items(issue, item_ids or [])
    if manual and removed:
        issue["manually_resolved"] = True
    updated = _save_resolution(repo, diagnostic)
    logger.info("Diagnostic %s issue %d: %d items marked resolved, score now %d",
                diagnostic_id, issue_index, len(item_ids or []), updated["score"])
    return updated


def _resolution_target(issues: list, category: str, item_ids: list, issue_index=None):
    """The one issue an automatic resolution applies to, or None.

    With issue_index, that issue. Otherwise the single actionable issue of
    category listing one of item_ids; several candidates are ambiguous.
    """
    if issue_index is not None:
        if 0 <= issue_index < len(issues):
            return issues[issue_index]
        return None

    wanted = (category or "").lower()
    ids = set(item_ids)
    candidates = [
        issue for issue in issues
        if issue.get("type") != "success"
        and issue.get("action_available")
        and (issue.get("category") or "").lower() == wanted
        and any(item.get("id") in ids for item in issue.get("affected_items") or [])
    ]
    if len(candidates) > 1:
        logger.warning("Resolution of %s matches %d issues, none credited", category, len(candidates))
        return None
    return candidates[0] if candidates else None


def apply_resolution(diagnostic_id: str, category: str, item_ids: list, issue_index: int = None) -> dict:
    """Record automatically resolved items on the issue the run targeted."""
    repo = DiagnosticRepository()
    diagnostic = repo.get_diagnostic(diagnostic_id)
    if not diagnostic:
        raise NotFoundError("Diagnostic not found", context={"diagnostic_id": diagnostic_id})

    issue = _resolution_target(diagnostic["issues"], category, item_ids, issue_index)
    touched = _resolve_items(issue, item_ids) if issue and issue.get("type") != "success" else 0
    if not touched:
        logger.debug("Resolution of %s on %s changed no issue", category, diagnostic_id)
        return diagnostic
    return _save_resolution(repo, diagnostic)
