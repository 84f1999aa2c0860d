"""Diagnostic run repository (seo_diagnostics table)."""

import uuid
import logging
from typing import Optional

from sqlalchemy import select

from db.models.diagnostics import DiagnosticRun
from db.repositories.base import BaseRepository, dump_json

logger = logging.getLogger(__name__)


class DiagnosticRepository(BaseRepository):
    """Repository for seo_diagnostics table operations."""

    def create_diagnostic(self, shop_id: str, weights_version: int = 0) -> dict:
        now = self._now()
        run = DiagnosticRun(
            id=str(uuid.uuid4()),
            shop_id=shop_id,
            status="pending",
            issues_json="[]",
            weights_version=weights_version,
            created_at=now,
            updated_at=now,
            completed_at="",
        )
        self.session.add(run)
        self._commit()
        return self._row_to_diagnostic(run)

    def complete_diagnostic(self, diagnostic_id: str, issues: list, summary: dict) -> Optional[dict]:
        """Store issues and summary counts, mark completed."""
        run = self.session.get(DiagnosticRun, diagnostic_id)
        if not run:
            return None
        self._apply(run, issues, summary)
        run.status = "completed"
        run.completed_at = run.updated_at
        self._commit()
        return self._row_to_diagnostic(run)

    def update_issues(self, diagnostic_id: str, issues: list, summary: dict) -> Optional[dict]:
        """Rewrite issues after a resolution without changing status."""
        run = self.session.get(DiagnosticRun, diagnostic_id)
        if not run:
            return None
        self._apply(run, issues, summary)
        self._commit()
        return self._row_to_diagnostic(run)

    def fail_diagnostic(self, diagnostic_id: str, error: str) -> None:
        run = self.session.get(DiagnosticRun, diagnostic_id)
        if run:
            run.status = "failed"
            run.error_message = error
            run.updated_at = self._now()
            run.completed_at = run.updated_at
            self._commit()

    def get_diagnostic(self, diagnostic_id: str) -> Optional[dict]:
        run = self.session.get(DiagnosticRun, diagnostic_id, populate_existing=True)
        if not run:
            return None
        return self._row_to_diagnostic(run)

    def list_diagnostics(self, shop_id: str, limit: int = 50) -> list:
        """Diagnostic history for a shop, newest first."""
        stmt = (
            select(DiagnosticRun)
            .where(DiagnosticRun.shop_id == shop_id)
            .order_by(DiagnosticRun.created_at.desc())
            .limit(limit)
        )
        return [self._row_to_diagnostic(r) for r in self.session.execute(stmt).scalars().all()]

    def _apply(self, run: DiagnosticRun, issues: list, summary: dict) -> None:
        run.issues_json = dump_json(issues)
        run.score = summary["score"]
        run.errors_count = summary["errors_count"]
        run.warnings_count = summary["warnings_count"]
        run.info_count = summary["info_count"]
        run.total_issues = summary["total_issues"]
        run.updated_at = self._now()

    def _row_to_diagnostic(self, run: DiagnosticRun) -> dict:
        d = self._to_dict(run)
        d["issues"] = d["issues"] or []
        return d
