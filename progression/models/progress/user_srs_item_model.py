"""SM-2 scheduling rows and their review audit trail."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Index, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from progression.db.base_class import Base


class UserSRSItem(Base):
    """Stores spaced-repetition planning metadata for a vocabulary item."""

    __tablename__ = "user_srs_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    item_id: Mapped[str] = mapped_column(
        String(100), ForeignKey("vocabulary_items.id", ondelete="CASCADE"), index=True
    )
    language: Mapped[str] = mapped_column(String(2), index=True, nullable=False)

    interval_days: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    repetitions: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    stability_factor: Mapped[float] = mapped_column(Float, default=2.5, nullable=False)

    next_review_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    last_reviewed_at: Mapped[datetime | None] = mapped_column(DateTime)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    version_id: Mapped[int] = mapped_column(Integer, nullable=False)

    item = relationship("VocabularyItem")

    __table_args__ = (
        UniqueConstraint("user_id", "item_id", name="uq_user_srs_item"),
        Index("ix_user_srs_items_due", "user_id", "next_review_at"),
    )
    __mapper_args__ = {"version_id_col": version_id}


class SRSReviewLog(Base):
    """Append-only history of scheduler reviews."""

    __tablename__ = "srs_review_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    item_id: Mapped[str] = mapped_column(
        String(100), ForeignKey("vocabulary_items.id", ondelete="CASCADE"), index=True
    )
    quality: Mapped[int] = mapped_column(Integer, nullable=False)

    previous_interval: Mapped[int] = mapped_column(Integer, nullable=False)
    new_interval: Mapped[int] = mapped_column(Integer, nullable=False)
    previous_stability_factor: Mapped[float] = mapped_column(Float, nullable=False)
    new_stability_factor: Mapped[float] = mapped_column(Float, nullable=False)
    previous_repetitions: Mapped[int] = mapped_column(Integer, nullable=False)
    new_repetitions: Mapped[int] = mapped_column(Integer, nullable=False)

    reviewed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


__all__ = ["SRSReviewLog", "UserSRSItem"]
