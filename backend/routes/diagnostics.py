"""Diagnostic routes — run, fetch, history and manual issue resolution."""

import logging

from flask import Blueprint, jsonify

from db.repositories import DiagnosticRepository
from error_handler import NotFoundError, ValidationError
from routes import get_json_body

bp = Blueprint("diagnostics", __name__, url_prefix="/api/v1")
logger = logging.getLogger(__name__)


@bp.route("/diagnostics/run", methods=["POST"])
def run_diagnostic():
    """Score a shop. Body: {"shop_id": "..."}."""
    from diagnostics import run_diagnostic as _run

    data = get_json_body()
    shop_id = data.get("shop_id")
    if not shop_id:
        raise ValidationError("shop_id is required")
    return jsonify({"success": True, "diagnostic": _run(shop_id)})


@bp.route("/diagnostics/<diagnostic_id>", methods=["GET"])
def get_diagnostic(diagnostic_id):
    diagnostic = DiagnosticRepository().get_diagnostic(diagnostic_id)
    if not diagnostic:
        raise NotFoundError("Diagnostic not found", context={"diagnostic_id": diagnostic_id})
    return jsonify({"success": True, "diagnostic": diagnostic})


@bp.route("/shops/<shop_id>/diagnostics", methods=["GET"])
def list_diagnostics(shop_id):
    diagnostics = DiagnosticRepository().list_diagnostics(shop_id)
    return jsonify({"success": True, "diagnostics": diagnostics})


@bp.route("/diagnostics/<diagnostic_id>/issues/<int:issue_index>/resolve", methods=["POST"])
def resolve_issue(diagnostic_id, issue_index):
    """Manually mark items of one issue as resolved. Body: {"item_ids": [...]}."""
    from diagnostics import mark_items_resolved

    data = get_json_body()
    item_ids = data.get("item_ids")
    if not isinstance(item_ids, list) or not item_ids:
        raise ValidationError("item_ids must be a non-empty list")

    diagnostic = mark_items_resolved(diagnostic_id, issue_index, item_ids)
    return jsonify({
        "success": True,
        "resolved_count": len(item_ids),
        "new_score": diagnostic["score"],
        "diagnostic": diagnostic,
    })
