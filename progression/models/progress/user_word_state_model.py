"""Per-user knowledge state of each vocabulary item."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Enum, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from progression.db.base_class import Base


class WordStateValue(str, enum.Enum):
    UNKNOWN = "unknown"
    LEARNING = "learning"
    KNOWN = "known"


class UserWordState(Base):
    """Knowledge state machine row: unknown -> learning -> known.

    ``unknown`` rows with a ``first_seen_at`` have been introduced but never
    reviewed. Rows are created lazily and never deleted while the user exists.
    """

    __tablename__ = "user_word_states"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    item_id: Mapped[str] = mapped_column(
        String(100), ForeignKey("vocabulary_items.id", ondelete="CASCADE"), index=True
    )
    language: Mapped[str] = mapped_column(String(2), index=True, nullable=False)

    state: Mapped[WordStateValue] = mapped_column(
        Enum(WordStateValue, name="wordstate", values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
        default=WordStateValue.UNKNOWN,
    )
    successful_reviews: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_reviews: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    first_seen_at: Mapped[datetime | None] = mapped_column(DateTime)
    marked_learning_at: Mapped[datetime | None] = mapped_column(DateTime)
    marked_known_at: Mapped[datetime | None] = mapped_column(DateTime)
    last_reviewed_at: Mapped[datetime | None] = mapped_column(DateTime)

    version_id: Mapped[int] = mapped_column(Integer, nullable=False)

    item = relationship("VocabularyItem")

    __table_args__ = (
        UniqueConstraint("user_id", "item_id", name="uq_user_word_state"),
        CheckConstraint("successful_reviews <= total_reviews", name="ck_word_state_counters"),
    )
    __mapper_args__ = {"version_id_col": version_id}


__all__ = ["UserWordState", "WordStateValue"]
