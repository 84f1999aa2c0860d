"""Resolution routes — queue an issue resolution and poll its progress."""

import logging

from flask import Blueprint, current_app, jsonify

from error_handler import ConflictError
from extensions import socketio
from routes import get_json_body

bp = Blueprint("resolution", __name__, url_prefix="/api/v1")
logger = logging.getLogger(__name__)


@bp.route("/resolutions", methods=["POST"])
def queue():
    """Queue automatic resolution of one issue.

    Body: {"shop_id", "diagnostic_id", "issue_type", "category"?, "issue_index"?,
           "affected_items": [...]}
    Returns 202 with the job id, or 409 with existing_job_id when one is active.
    """
    from resolution import queue_resolution

    data = get_json_body()
    try:
        run = queue_resolution(
            data.get("shop_id"),
            data.get("diagnostic_id") or "",
            data.get("issue_type") or "",
            data.get("affected_items"),
            category=data.get("category"),
            issue_index=data.get("issue_index"),
            job_queue=current_app.job_queue,
            socketio=socketio,
        )
    except ConflictError as e:
        return jsonify({
            "success": False,
            "error": str(e),
            "code": e.code,
            "existing_job_id": e.context.get("existing_job_id"),
        }), 409

    return jsonify({
        "success": True,
        "job_id": run["id"],
        "total_items": run["total_items"],
    }), 202


@bp.route("/resolutions/<job_id>", methods=["GET"])
def status(job_id):
    from resolution import get_resolution_status

    return jsonify({"success": True, "job": get_resolution_status(job_id)})
