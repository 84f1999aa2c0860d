"""Job ORM models: bulk per-product generation jobs and issue resolution runs."""

from typing import Optional

from sqlalchemy import Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from extensions import db


class ProductGenerationJob(db.Model):
    """One queued content-generation action for one product."""

    __tablename__ = "product_generation_jobs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    shop_id: Mapped[str] = mapped_column(String(36), nullable=False)
    product_id: Mapped[str] = mapped_column(String(36), nullable=False)
    action: Mapped[str] = mapped_column(String(30), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    language: Mapped[Optional[str]] = mapped_column(String(10), default="")
    preserve_internal_links: Mapped[Optional[int]] = mapped_column(Integer, default=1)
    error_message: Mapped[Optional[str]] = mapped_column(Text, default="")
    created_by: Mapped[Optional[str]] = mapped_column(String(36), default="")
    created_at: Mapped[str] = mapped_column(Text, nullable=False)
    started_at: Mapped[Optional[str]] = mapped_column(Text, default="")
    completed_at: Mapped[Optional[str]] = mapped_column(Text, default="")

    __table_args__ = (
        Index("idx_generation_jobs_status", "status", "created_at"),
        Index("idx_generation_jobs_shop", "shop_id"),
    )


class ResolutionJob(db.Model):
    """Progress row for one issue resolution run."""

    __tablename__ = "generation_jobs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    shop_id: Mapped[str] = mapped_column(String(36), nullable=False)
    diagnostic_id: Mapped[Optional[str]] = mapped_column(String(36), default="")
    issue_index: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    type: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    total_items: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    processed_items: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    success_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    failed_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    skipped_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    current_item: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    affected_items_json: Mapped[Optional[str]] = mapped_column(Text, default="[]")
    results_json: Mapped[Optional[str]] = mapped_column(Text, default="{}")
    error_message: Mapped[Optional[str]] = mapped_column(Text, default="")
    heartbeat_at: Mapped[Optional[str]] = mapped_column(Text, default="")
    created_at: Mapped[str] = mapped_column(Text, nullable=False)
    started_at: Mapped[Optional[str]] = mapped_column(Text, default="")
    completed_at: Mapped[Optional[str]] = mapped_column(Text, default="")

    __table_args__ = (
        Index("idx_resolution_jobs_diag", "shop_id", "diagnostic_id", "type", "status"),
    )
