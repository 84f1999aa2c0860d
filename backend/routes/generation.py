"""Generation job routes — bulk enqueue, listing and dispatcher tick."""

import logging

from flask import Blueprint, current_app, jsonify, request

from error_handler import ValidationError
from extensions import socketio
from routes import get_json_body

bp = Blueprint("generation", __name__, url_prefix="/api/v1")
logger = logging.getLogger(__name__)


@bp.route("/generation-jobs", methods=["POST"])
def enqueue_jobs():
    """Enqueue one job per product.

    Body: {"shop_id", "product_ids": [...], "action", "language"?,
    "preserve_internal_links"?, "created_by"?}
    """
    from generation_queue import enqueue_generation_jobs

    data = get_json_body()
    product_ids = data.get("product_ids")
    if product_ids is not None and not isinstance(product_ids, list):
        raise ValidationError("product_ids must be a list")
    jobs = enqueue_generation_jobs(
        data.get("shop_id"),
        product_ids or [],
        data.get("action"),
        language=data.get("language") or "",
        preserve_internal_links=bool(data.get("preserve_internal_links", True)),
        created_by=data.get("created_by") or "",
    )
    return jsonify({"success": True, "jobs": jobs, "count": len(jobs)}), 201


@bp.route("/generation-jobs", methods=["GET"])
def list_jobs():
    from generation_queue import list_generation_jobs

    limit = request.args.get("limit", 100, type=int)
    jobs = list_generation_jobs(
        shop_id=request.args.get("shop_id"),
        status=request.args.get("status"),
        limit=max(1, min(limit, 500)),
    )
    return jsonify({"success": True, "jobs": jobs})


@bp.route("/generation-jobs/<job_id>", methods=["GET"])
def get_job(job_id):
    from generation_queue import get_generation_job

    return jsonify({"success": True, "job": get_generation_job(job_id)})


@bp.route("/generation-jobs/process", methods=["POST"])
def process_jobs():
    """Run one dispatcher tick synchronously."""
    from generation_queue import process_pending_jobs

    result = process_pending_jobs(app=current_app._get_current_object(), socketio=socketio)
    return jsonify({"success": True, **result})
