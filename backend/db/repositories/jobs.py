"""Job repositories: product generation jobs and issue resolution runs.

Status transitions are single-row updates. Claiming a generation job is a
conditional update on status='pending' so two dispatcher ticks cannot both
move the same row to 'processing'.
"""

import uuid
import logging
from datetime import UTC, datetime
from typing import Optional

from sqlalchemy import select, update

from db.models.jobs import ProductGenerationJob, ResolutionJob
from db.repositories.base import BaseRepository, dump_json

logger = logging.getLogger(__name__)

GENERATION_ACTIONS = (
    "complete",
    "long_descriptions",
    "short_descriptions",
    "alt_images",
    "internal_linking",
    "translate",
)

ACTIVE_STATUSES = ("pending", "processing")


class GenerationJobRepository(BaseRepository):
    """Repository for the product_generation_jobs table."""

    def create_jobs(self, shop_id: str, product_ids: list, action: str,
                    language: str = "", preserve_internal_links: bool = True,
                    created_by: str = "") -> list:
        """Insert one pending job per product."""
        now = self._now()
        jobs = [
            ProductGenerationJob(
                id=str(uuid.uuid4()),
                shop_id=shop_id,
                product_id=product_id,
                action=action,
                status="pending",
                language=language or "",
                preserve_internal_links=int(bool(preserve_internal_links)),
                created_by=created_by or "",
                created_at=now,
            )
            for product_id in product_ids
        ]
        with self.batch():
            self.session.add_all(jobs)
        return [self._row_to_job(j) for j in jobs]

    def claim_pending(self, limit: int) -> list:
        """Move up to `limit` pending jobs to processing, oldest first.

        Returns the claimed jobs. A row already claimed by a concurrent
        dispatcher is skipped.
        """
        stmt = (
            select(ProductGenerationJob.id)
            .where(ProductGenerationJob.status == "pending")
            .order_by(ProductGenerationJob.created_at)
            .limit(limit)
        )
        candidate_ids = list(self.session.execute(stmt).scalars().all())

        claimed_ids = []
        now = self._now()
        for job_id in candidate_ids:
            result = self.session.execute(
                update(ProductGenerationJob)
                .where(ProductGenerationJob.id == job_id,
                       ProductGenerationJob.status == "pending")
                .values(status="processing", started_at=now)
            )
            if result.rowcount == 1:
                claimed_ids.append(job_id)
        self.session.commit()

        if len(claimed_ids) < len(candidate_ids):
            logger.info("Claimed %d of %d pending jobs (others taken concurrently)",
                        len(claimed_ids), len(candidate_ids))
        return [self.get_job(job_id) for job_id in claimed_ids]

    def finish_job(self, job_id: str, status: str, error_message: str = "") -> None:
        """Record a terminal state. Jobs already terminal are left untouched."""
        self.session.execute(
            update(ProductGenerationJob)
            .where(ProductGenerationJob.id == job_id,
                   ProductGenerationJob.status == "processing")
            .values(status=status, completed_at=self._now(), error_message=error_message or "")
        )
        self._commit()

    def get_job(self, job_id: str) -> Optional[dict]:
        job = self.session.get(ProductGenerationJob, job_id)
        if not job:
            return None
        self.session.refresh(job)
        return self._row_to_job(job)

    def list_jobs(self, shop_id: str = None, status: str = None, limit: int = 100) -> list:
        stmt = (
            select(ProductGenerationJob)
            .order_by(ProductGenerationJob.created_at.desc())
            .limit(limit)
            # Rows are updated by worker threads through other sessions
            .execution_options(populate_existing=True)
        )
        if shop_id:
            stmt = stmt.where(ProductGenerationJob.shop_id == shop_id)
        if status:
            stmt = stmt.where(ProductGenerationJob.status == status)
        return [self._row_to_job(r) for r in self.session.execute(stmt).scalars().all()]

    def _row_to_job(self, job: ProductGenerationJob) -> dict:
        d = self._to_dict(job)
        d["preserve_internal_links"] = bool(d["preserve_internal_links"])
        return d


class ResolutionJobRepository(BaseRepository):
    """Repository for resolution runs (generation_jobs table)."""

    def find_active(self, shop_id: str, diagnostic_id: str, issue_type: str) -> Optional[dict]:
        """A pending or processing run of the shop for the same diagnostic and issue type."""
        stmt = (
            select(ResolutionJob)
            .where(
                ResolutionJob.shop_id == shop_id,
                ResolutionJob.diagnostic_id == diagnostic_id,
                ResolutionJob.type == issue_type,
                ResolutionJob.status.in_(ACTIVE_STATUSES),
            )
            .limit(1)
        )
        row = self.session.execute(stmt).scalars().first()
        return self._row_to_run(row) if row else None

    def create_run(self, shop_id: str, diagnostic_id: str, issue_type: str,
                   category: str, affected_items: list, issue_index: int = None) -> dict:
        run = ResolutionJob(
            id=str(uuid.uuid4()),
            shop_id=shop_id,
            diagnostic_id=diagnostic_id or "",
            issue_index=issue_index,
            type=issue_type,
            category=category,
            status="pending",
            total_items=len(affected_items),
            processed_items=0,
            progress=0,
            affected_items_json=dump_json(affected_items),
            results_json=dump_json({"success": [], "failed": [], "skipped": []}),
            created_at=self._now(),
        )
        self.session.add(run)
        self._commit()
        return self._row_to_run(run)

    def mark_processing(self, run_id: str) -> None:
        now = self._now()
        self.session.execute(
            update(ResolutionJob)
            .where(ResolutionJob.id == run_id)
            .values(status="processing", started_at=now, heartbeat_at=now)
        )
        self._commit()

    def heartbeat(self, run_id: str, current_item: str = None) -> None:
        values = {"heartbeat_at": self._now()}
        if current_item is not None:
            values["current_item"] = current_item
        self.session.execute(update(ResolutionJob).where(ResolutionJob.id == run_id).values(**values))
        self._commit()

    def save_progress(self, run_id: str, results: dict, progress: int, current_item: str) -> None:
        """Persist counters and result lists after one processed item."""
        self.session.execute(
            update(ResolutionJob)
            .where(ResolutionJob.id == run_id)
            .values(
                processed_items=len(results["success"]) + len(results["failed"]) + len(results["skipped"]),
                success_count=len(results["success"]),
                failed_count=len(results["failed"]),
                skipped_count=len(results["skipped"]),
                progress=progress,
                current_item=current_item,
                results_json=dump_json(results),
                heartbeat_at=self._now(),
            )
        )
        self._commit()

    def complete_run(self, run_id: str) -> None:
        self.session.execute(
            update(ResolutionJob)
            .where(ResolutionJob.id == run_id)
            .values(status="completed", progress=100, current_item=None, completed_at=self._now())
        )
        self._commit()

    def fail_run(self, run_id: str, error: str) -> None:
        self.session.execute(
            update(ResolutionJob)
            .where(ResolutionJob.id == run_id)
            .values(status="failed", error_message=error, completed_at=self._now())
        )
        self._commit()

    def get_run(self, run_id: str) -> Optional[dict]:
        run = self.session.get(ResolutionJob, run_id)
        if not run:
            return None
        self.session.refresh(run)
        return self._row_to_run(run)

    def _row_to_run(self, run: ResolutionJob) -> dict:
        d = self._to_dict(run)
        d["affected_items"] = d["affected_items"] or []
        d["results"] = d["results"] or {}
        return d


def seconds_since(timestamp: str) -> Optional[float]:
    """Age of an ISO timestamp in seconds, None when unset or unparseable."""
    if not timestamp:
        return None
    try:
        then = datetime.fromisoformat(timestamp)
    except ValueError:
        return None
    if then.tzinfo is None:
        then = then.replace(tzinfo=UTC)
    return (datetime.now(UTC) - then).total_seconds()
