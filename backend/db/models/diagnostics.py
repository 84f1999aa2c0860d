"""Diagnostic run model: one scoring pass over a shop's catalog."""

from typing import Optional

from sqlalchemy import Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from extensions import db


class DiagnosticRun(db.Model):
    """Persisted diagnostic with its issues list (JSON)."""

    __tablename__ = "seo_diagnostics"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    shop_id: Mapped[str] = mapped_column(String(36), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    score: Mapped[Optional[int]] = mapped_column(Integer, default=0)
    errors_count: Mapped[Optional[int]] = mapped_column(Integer, default=0)
    warnings_count: Mapped[Optional[int]] = mapped_column(Integer, default=0)
    info_count: Mapped[Optional[int]] = mapped_column(Integer, default=0)
    total_issues: Mapped[Optional[int]] = mapped_column(Integer, default=0)
    issues_json: Mapped[Optional[str]] = mapped_column(Text, default="[]")
    weights_version: Mapped[Optional[int]] = mapped_column(Integer, default=0)
    error_message: Mapped[Optional[str]] = mapped_column(Text, default="")
    created_at: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[str] = mapped_column(Text, nullable=False)
    completed_at: Mapped[Optional[str]] = mapped_column(Text, default="")

    __table_args__ = (
        Index("idx_seo_diagnostics_shop", "shop_id", "created_at"),
    )
