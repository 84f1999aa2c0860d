"""Bulk product generation queue.

The dashboard enqueues one pending row per (product, action). Each
dispatcher tick claims at most MAX_QUEUE_BATCH_SIZE rows, runs them in
parallel and records a terminal state per row. Failed jobs are never
retried automatically; enqueue a new row to retry.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed

from flask import current_app, has_app_context

from config import get_settings
from db.repositories.jobs import GENERATION_ACTIONS, GenerationJobRepository
from error_handler import NotFoundError, ValidationError
from remediation import ACTION_HANDLERS

logger = logging.getLogger(__name__)


def enqueue_generation_jobs(shop_id: str, product_ids: list, action: str,
                            language: str = "", preserve_internal_links: bool = True,
                            created_by: str = "") -> list:
    """Insert one pending job per product.

    Raises:
        ValidationError: missing shop/products or unknown action.
    """
    if not shop_id:
        raise ValidationError("shop_id is required")
    if not product_ids:
        raise ValidationError("product_ids must be a non-empty list")
    if action not in GENERATION_ACTIONS:
        raise ValidationError(
            f"Unknown action: {action}",
            context={"allowed": list(GENERATION_ACTIONS)},
        )
    if action == "translate" and not language:
        raise ValidationError("language is required for translate jobs")

    jobs = GenerationJobRepository().create_jobs(
        shop_id, product_ids, action,
        language=language,
        preserve_internal_links=preserve_internal_links,
        created_by=created_by,
    )
    logger.info("Enqueued %d %s jobs for shop %s", len(jobs), action, shop_id)
    return jobs


def list_generation_jobs(shop_id: str = None, status: str = None, limit: int = 100) -> list:
    return GenerationJobRepository().list_jobs(shop_id=shop_id, status=status, limit=limit)


def get_generation_job(job_id: str) -> dict:
    job = GenerationJobRepository().get_job(job_id)
    if not job:
        raise NotFoundError("Job not found", context={"job_id": job_id})
    return job


def run_generation_job(job: dict) -> dict:
    """Run one claimed job and record its terminal state. Never raises."""
    repo = GenerationJobRepository()
    try:
        handler = ACTION_HANDLERS.get(job["action"])
        if handler is None:
            raise ValueError(f"Unknown action: {job['action']}")
        result = handler(job)
        if not result.success:
            raise RuntimeError(result.error or result.message or "Generation failed")
    except Exception as e:
        logger.warning("Generation job %s (%s, product %s) failed: %s",
                       job["id"], job["action"], job["product_id"], e)
        repo.finish_job(job["id"], "failed", str(e))
        return {"job_id": job["id"], "success": False, "error": str(e)}

    repo.finish_job(job["id"], "completed")
    return {"job_id": job["id"], "success": True}


def process_pending_jobs(app=None, socketio=None) -> dict:
    """One dispatcher tick: claim a bounded batch and process it concurrently.

    Args:
        app: Flask app pushed in each worker thread. Defaults to current_app.
        socketio: Optional SocketIO instance for per-job status events.

    Returns:
        Dict with processed count and per-job results.
    """
    if app is None and has_app_context():
        app = current_app._get_current_object()

    batch_size = get_settings().get_queue_batch_size()
    jobs = GenerationJobRepository().claim_pending(batch_size)
    if not jobs:
        return {"processed": 0, "results": []}

    logger.info("Processing %d generation jobs", len(jobs))

    def _run(job):
        if app is not None:
            with app.app_context():
                return run_generation_job(job)
        return run_generation_job(job)

    results = []
    with ThreadPoolExecutor(max_workers=len(jobs)) as executor:
        future_to_job = {executor.submit(_run, job): job for job in jobs}
        for future in as_completed(future_to_job):
            job = future_to_job[future]
            try:
                outcome = future.result()
            except Exception as e:
                logger.exception("Generation job %s crashed: %s", job["id"], e)
                outcome = {"job_id": job["id"], "success": False, "error": str(e)}
            results.append(outcome)
            if socketio is not None:
                socketio.emit("generation_job_update", {
                    "job_id": job["id"],
                    "product_id": job["product_id"],
                    "action": job["action"],
                    "status": "completed" if outcome["success"] else "failed",
                    "error": outcome.get("error"),
                })

    succeeded = sum(1 for r in results if r["success"])
    logger.info("Generation batch done: %d completed, %d failed", succeeded, len(results) - succeeded)
    return {"processed": len(jobs), "results": results}
