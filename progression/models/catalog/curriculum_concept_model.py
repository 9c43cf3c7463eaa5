"""Curriculum concepts and their AND/OR prerequisite sets."""

from __future__ import annotations

import enum
from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, Boolean, DateTime, Enum, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from progression.core.levels import ProficiencyLevel
from progression.db.base_class import Base
from progression.models.catalog.vocabulary_model import level_column_type


class ConceptType(str, enum.Enum):
    ORTHOGRAPHY = "orthography"
    VOCABULARY = "vocabulary"
    GRAMMAR = "grammar"
    PRONUNCIATION = "pronunciation"


class CurriculumConcept(Base):
    """One node of the per-language dependency graph.

    ``prerequisites_and`` must all be completed and at least one of
    ``prerequisites_or`` must be completed (either list may be empty).
    """

    __tablename__ = "curriculum_concepts"

    concept_id: Mapped[str] = mapped_column(String(100), primary_key=True)
    language: Mapped[str] = mapped_column(String(2), index=True, nullable=False)
    level: Mapped[ProficiencyLevel] = mapped_column(
        level_column_type("conceptlevel"), index=True, nullable=False
    )
    concept_type: Mapped[ConceptType] = mapped_column(
        Enum(ConceptType, name="concepttype", values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    estimated_duration_minutes: Mapped[Optional[int]] = mapped_column(Integer)
    priority_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_optional: Mapped[bool] = mapped_column(Boolean, default=False)
    prerequisites_and: Mapped[List[str]] = mapped_column(JSON, default=list)
    prerequisites_or: Mapped[List[str]] = mapped_column(JSON, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())


__all__ = ["ConceptType", "CurriculumConcept"]
