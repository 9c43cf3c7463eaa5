"""Foundational (orthography) gate per user and language."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from progression.db.base_class import Base


class GateStatus(str, enum.Enum):
    LOCKED = "locked"
    UNLOCKED = "unlocked"
    COMPLETED = "completed"


class OrthographyGateProgress(Base):
    """Blocks content above A0 until the script baseline is passed."""

    __tablename__ = "orthography_gate_progress"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    language: Mapped[str] = mapped_column(String(2), nullable=False)
    status: Mapped[GateStatus] = mapped_column(
        Enum(GateStatus, name="gatestatus", values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
        default=GateStatus.LOCKED,
    )
    completed_at: Mapped[datetime | None] = mapped_column(DateTime)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    version_id: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "language", name="uq_orthography_gate_user_language"),
    )
    __mapper_args__ = {"version_id_col": version_id}


__all__ = ["GateStatus", "OrthographyGateProgress"]
