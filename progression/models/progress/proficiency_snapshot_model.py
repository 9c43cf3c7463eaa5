"""Append-only proficiency history, one row per assessment."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from progression.core.levels import ProficiencyLevel
from progression.db.base_class import Base
from progression.models.catalog.vocabulary_model import level_column_type


class ProficiencySnapshot(Base):
    __tablename__ = "proficiency_snapshots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    language: Mapped[str] = mapped_column(String(2), nullable=False)
    level: Mapped[ProficiencyLevel] = mapped_column(
        level_column_type("snapshotlevel"), nullable=False
    )
    vocabulary_percentage: Mapped[float] = mapped_column(Float, nullable=False)
    grammar_percentage: Mapped[float] = mapped_column(Float, nullable=False)
    overall_percentage: Mapped[float] = mapped_column(Float, nullable=False)
    assessed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        Index("ix_proficiency_snapshots_user_language", "user_id", "language", "assessed_at"),
    )


__all__ = ["ProficiencySnapshot"]
