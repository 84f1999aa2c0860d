"""Automatic resolution of diagnostic issues.

queue_resolution() stores a pending run row and hands the run to the
background job queue. ResolutionOrchestrator then applies the category's
remediation routine to every affected item: batches run one after another,
items inside a batch run concurrently. Progress, counters and result
lists are persisted after every item so the dashboard can poll them, and
a heartbeat is written before each item so a stalled run can be detected.
"""

import time
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed

from flask import current_app, has_app_context

from config import get_settings
from db.repositories import CatalogRepository
from db.repositories.jobs import ResolutionJobRepository, seconds_since
from error_handler import ConflictError, NotFoundError, ValidationError
from remediation import get_category_handler
from seo_issues import round_half_up

logger = logging.getLogger(__name__)

INTERNAL_LINKING_CATEGORY = "maillage interne"
UNSUPPORTED_MESSAGE = "Issue type not yet supported"
LINKS_PRESENT_MESSAGE = "Links already present"


def is_rate_limited(message: str) -> bool:
    return "429" in message or "rate limit" in message.lower()


def _chunks(items: list, size: int) -> list:
    return [items[i:i + size] for i in range(0, len(items), size)]


class ResolutionOrchestrator:
    """Runs one resolution: batched, concurrent per item, progress after every item."""

    def __init__(self, run: dict, app=None, socketio=None):
        settings = get_settings()
        self.run = run
        self.app = app
        self.socketio = socketio
        self.repo = ResolutionJobRepository()
        self.batch_size = max(1, settings.resolution_batch_size)
        self.batch_pause = settings.resolution_batch_pause_ms / 1000.0
        self.rate_limit_pause = settings.resolution_rate_limit_pause_seconds
        self.item_workers = max(1, settings.resolution_item_workers)
        self.results = {"success": [], "failed": [], "skipped": []}

    @property
    def processed_count(self) -> int:
        return sum(len(v) for v in self.results.values())

    def execute(self) -> dict:
        """Process every affected item and mark the run completed.

        Returns:
            The results dict (success/failed/skipped lists).
        """
        run_id = self.run["id"]
        items = self.run["affected_items"]
        self.repo.mark_processing(run_id)

        batches = _chunks(items, self.batch_size)
        for index, batch in enumerate(batches):
            logger.info("Resolution %s: batch %d/%d (%d items)",
                        run_id, index + 1, len(batches), len(batch))
            self._process_batch(batch)
            if index < len(batches) - 1 and self.batch_pause > 0:
                time.sleep(self.batch_pause)

        self.repo.complete_run(run_id)
        logger.info("Resolution %s completed: %d success, %d failed, %d skipped",
                    run_id, len(self.results["success"]),
                    len(self.results["failed"]), len(self.results["skipped"]))
        self._emit("resolution_completed", {"job_id": run_id, "results": self.results})
        return self.results

    def _process_batch(self, batch: list) -> None:
        workers = min(self.item_workers, len(batch))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            future_to_item = {executor.submit(self._run_item, item): item for item in batch}
            for future in as_completed(future_to_item):
                item = future_to_item[future]
                try:
                    bucket, entry = future.result()
                except Exception as e:
                    bucket, entry = "failed", self._entry(item, str(e))
                self._record(item, bucket, entry)

    def _run_item(self, item: dict) -> tuple:
        if self.app is not None:
            with self.app.app_context():
                return self.resolve_item(item)
        return self.resolve_item(item)

    def resolve_item(self, item: dict) -> tuple:
        """Apply the category handler to one item.

        Returns:
            (bucket, entry) where bucket is success, failed or skipped.
        """
        ResolutionJobRepository().heartbeat(self.run["id"], current_item=item.get("name") or "")

        handler = get_category_handler(self.run["category"], item)
        if handler is None:
            return "skipped", self._entry(item, UNSUPPORTED_MESSAGE)

        try:
            result = handler(self.run["shop_id"], item)
        except Exception as e:
            message = str(e)
            if is_rate_limited(message):
                logger.warning("Rate limited on %s, pausing %.1fs", item.get("name"), self.rate_limit_pause)
                time.sleep(self.rate_limit_pause)
                return "skipped", self._entry(item, message)
            logger.warning("Resolution of %s failed: %s", item.get("name"), message)
            return "failed", self._entry(item, message)

        if not result.success:
            return "failed", self._entry(item, result.error or result.message or "Unknown error")
        if self.run["category"].lower() == INTERNAL_LINKING_CATEGORY and not result.links_added:
            return "skipped", self._entry(item, LINKS_PRESENT_MESSAGE)
        return "success", self._entry(item, result.message or None)

    def _entry(self, item: dict, message: str = None) -> dict:
        entry = {"id": item.get("id"), "name": item.get("name") or ""}
        if message:
            entry["message"] = message
        return entry

    def _record(self, item: dict, bucket: str, entry: dict) -> None:
        self.results[bucket].append(entry)
        total = len(self.run["affected_items"]) or 1
        # 100 is reserved for the completed state
        progress = min(99, round_half_up(self.processed_count / total * 100))
        self.repo.save_progress(self.run["id"], self.results, progress, item.get("name") or "")
        self._emit("resolution_progress", {
            "job_id": self.run["id"],
            "progress": progress,
            "processed_items": self.processed_count,
            "total_items": len(self.run["affected_items"]),
            "current_item": item.get("name") or "",
        })

    def _emit(self, event: str, data: dict) -> None:
        if self.socketio is None:
            return
        try:
            self.socketio.emit(event, data)
        except Exception as e:
            logger.debug("Could not emit %s: %s", event, e)


def process_resolution(run_id: str, socketio=None) -> dict:
    """Background entry point. Marks the run failed on any orchestration error."""
    repo = ResolutionJobRepository()
    run = repo.get_run(run_id)
    if not run:
        raise NotFoundError("Resolution job not found", context={"job_id": run_id})

    app = current_app._get_current_object() if has_app_context() else None
    try:
        if not CatalogRepository().get_shop(run["shop_id"]):
            raise NotFoundError(f"Shop not found: {run['shop_id']}")
        results = ResolutionOrchestrator(run, app=app, socketio=socketio).execute()
    except Exception as e:
        logger.error("Resolution %s failed: %s", run_id, e)
        repo.fail_run(run_id, str(e))
        raise

    if run.get("diagnostic_id") and results["success"]:
        from diagnostics import apply_resolution
        try:
            apply_resolution(run["diagnostic_id"], run["category"], [r["id"] for r in results["success"]],
                             issue_index=run.get("issue_index"))
        except Exception as e:
            logger.warning("Could not update diagnostic %s after resolution %s: %s",
                           run["diagnostic_id"], run_id, e)
    return results


def queue_resolution(shop_id: str, diagnostic_id: str, issue_type: str,
                     affected_items: list, category: str = None, issue_index: int = None,
                     job_queue=None, socketio=None) -> dict:
    """Create a pending resolution run and submit it to the job queue.

    issue_index points at the diagnostic issue the run resolves; only that
    issue is credited when the run completes.

    Raises:
        ValidationError: missing shop, issue type or affected items.
        ConflictError: the shop already has an active run for this diagnostic and issue type.
    """
    if not shop_id or not issue_type:
        raise ValidationError("shop_id and issue_type are required")
    if not isinstance(affected_items, list) or not affected_items:
        raise ValidationError("affected_items must be a non-empty list")
    if any(not isinstance(item, dict) or not item.get("id") for item in affected_items):
        raise ValidationError("Each affected item needs an id")
    if issue_index is not None and (type(issue_index) is not int or issue_index < 0):
        raise ValidationError("issue_index must be a non-negative integer", context={"issue_index": issue_index})

    issue_key = issue_type.lower()
    repo = ResolutionJobRepository()
    existing = repo.find_active(shop_id, diagnostic_id or "", issue_key)
    if existing:
        raise ConflictError(
            "A resolution job is already running for this issue",
            context={"existing_job_id": existing["id"]},
        )

    run = repo.create_run(shop_id, diagnostic_id, issue_key, category or issue_type, affected_items,
                          issue_index=issue_index)
    logger.info("Queued resolution %s (%s, %d items)", run["id"], issue_key, len(affected_items))

    if job_queue is None:
        job_queue = current_app.job_queue
    job_queue.enqueue(process_resolution, run["id"], socketio=socketio, job_id=run["id"])
    return run


def get_resolution_status(job_id: str) -> dict:
    """Run row plus a stale flag for runs whose heartbeat stopped."""
    run = ResolutionJobRepository().get_run(job_id)
    if not run:
        raise NotFoundError("Resolution job not found", context={"job_id": job_id})

    stale = False
    if run["status"] == "processing":
        age = seconds_since(run.get("heartbeat_at") or run.get("started_at"))
        stale = age is not None and age > get_settings().resolution_stale_after_seconds
    run["stale"] = stale
    return run
