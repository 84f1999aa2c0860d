"""Content routes — SEO analysis, SERP analysis and per-product generation."""

import logging

from flask import Blueprint, jsonify

from db.repositories import CatalogRepository
from error_handler import NotFoundError, ValidationError
from routes import get_json_body

bp = Blueprint("content", __name__, url_prefix="/api/v1")
logger = logging.getLogger(__name__)


@bp.route("/seo/analyze", methods=["POST"])
def analyze_content():
    """Analyze a saved blog post (post_id) or unsaved content (content object)."""
    from seo_scorer import analyze_seo

    data = get_json_body()
    post_id = data.get("post_id")
    if post_id:
        item = CatalogRepository().get_blog_post(post_id)
        if not item:
            raise NotFoundError("Article non trouvé", context={"post_id": post_id})
    elif isinstance(data.get("content"), dict):
        item = data["content"]
    else:
        raise ValidationError("post_id or content is required")

    return jsonify({"success": True, "analysis": analyze_seo(item)})


@bp.route("/seo/serp", methods=["POST"])
def analyze_serp():
    from serp_client import analyze_serp as _analyze

    data = get_json_body()
    keyword = (data.get("keyword") or "").strip()
    if not keyword:
        raise ValidationError("keyword is required")
    return jsonify({"success": True, "analysis": _analyze(keyword)})


@bp.route("/products/<product_id>/description", methods=["POST"])
def generate_description(product_id):
    """Body: {"type": "short" | "long"}."""
    from remediation import generate_product_description

    data = get_json_body()
    kind = data.get("type")
    if not kind:
        raise ValidationError("type is required")
    return jsonify(generate_product_description(product_id, kind).to_dict())


@bp.route("/products/<product_id>/meta-description", methods=["POST"])
def generate_meta_description(product_id):
    from remediation import generate_meta_description as _generate

    return jsonify(_generate(product_id).to_dict())


@bp.route("/products/<product_id>/alt-texts", methods=["POST"])
def generate_alt_texts(product_id):
    from remediation import generate_alt_texts as _generate

    result = _generate(product_id)
    return jsonify(result.to_dict()), 200 if result.success else 400


@bp.route("/products/<product_id>/internal-links", methods=["POST"])
def add_internal_links(product_id):
    from remediation import add_internal_links as _add

    data = get_json_body()
    return jsonify(_add(product_id, preserve_existing=bool(data.get("preserve_existing", True))).to_dict())


@bp.route("/products/<product_id>/translate", methods=["POST"])
def translate_product(product_id):
    """Body: {"target_language": "en", "apply": bool, "preserve_internal_links": bool}."""
    from remediation import translate_product as _translate

    data = get_json_body()
    language = data.get("target_language")
    if not language:
        raise ValidationError("Product ID and target language are required")
    result = _translate(
        product_id, language,
        apply=bool(data.get("apply", False)),
        preserve_internal_links=bool(data.get("preserve_internal_links", True)),
    )
    return jsonify(result.to_dict())
