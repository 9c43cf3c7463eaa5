"""Per-user status of each curriculum concept."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from progression.db.base_class import Base


class ConceptStatus(str, enum.Enum):
    LOCKED = "locked"
    UNLOCKED = "unlocked"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class UserConceptProgress(Base):
    __tablename__ = "user_concept_progress"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    concept_id: Mapped[str] = mapped_column(
        String(100), ForeignKey("curriculum_concepts.concept_id", ondelete="CASCADE"), index=True
    )
    language: Mapped[str] = mapped_column(String(2), index=True, nullable=False)

    status: Mapped[ConceptStatus] = mapped_column(
        Enum(ConceptStatus, name="conceptstatus", values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
        default=ConceptStatus.LOCKED,
    )
    progress_percentage: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    accuracy_percentage: Mapped[float | None] = mapped_column(Float)
    started_at: Mapped[datetime | None] = mapped_column(DateTime)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime)

    version_id: Mapped[int] = mapped_column(Integer, nullable=False)

    concept = relationship("CurriculumConcept")

    __table_args__ = (
        UniqueConstraint("user_id", "concept_id", name="uq_user_concept_progress"),
    )
    __mapper_args__ = {"version_id_col": version_id}


__all__ = ["ConceptStatus", "UserConceptProgress"]
