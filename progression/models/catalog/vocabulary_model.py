"""Vocabulary catalog: items and their usage examples (read-only for the engine)."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from progression.core.levels import ProficiencyLevel
from progression.db.base_class import Base


def level_column_type(name: str) -> Enum:
    return Enum(
        ProficiencyLevel,
        name=name,
        values_callable=lambda obj: [e.value for e in obj],
    )


class VocabularyItem(Base):
    """A meaning/lemma taught in one language at one proficiency level."""

    __tablename__ = "vocabulary_items"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    language: Mapped[str] = mapped_column(String(2), index=True, nullable=False)
    level: Mapped[ProficiencyLevel] = mapped_column(
        level_column_type("vocabularylevel"), index=True, nullable=False
    )
    text: Mapped[str] = mapped_column(String(255), nullable=False)
    tags: Mapped[List[str]] = mapped_column(JSON, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    examples: Mapped[List["UsageExample"]] = relationship(
        back_populates="item", cascade="all, delete-orphan"
    )


class UsageExample(Base):
    __tablename__ = "usage_examples"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    item_id: Mapped[str] = mapped_column(
        String(100), ForeignKey("vocabulary_items.id", ondelete="CASCADE"), index=True
    )
    language: Mapped[str] = mapped_column(String(2), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    register: Mapped[Optional[str]] = mapped_column(String(30))

    item: Mapped[VocabularyItem] = relationship(back_populates="examples")


__all__ = ["UsageExample", "VocabularyItem", "level_column_type"]
