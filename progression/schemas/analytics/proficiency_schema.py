from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from progression.core.levels import ProficiencyLevel


class LevelProgressOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    level: ProficiencyLevel
    vocabulary_total: int
    vocabulary_mastered: int
    vocabulary_percentage: float
    grammar_total: int
    grammar_completed: int
    grammar_percentage: float
    overall_percentage: float
    is_completed: bool


class AssessmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    language: str
    current_level: ProficiencyLevel
    next_level: Optional[ProficiencyLevel] = None
    status: str
    progress_to_next_level: float
    estimated_days_to_next_level: Optional[int] = None
    levels: List[LevelProgressOut]
    assessed_at: Optional[datetime] = None


class ProficiencySnapshotOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    level: ProficiencyLevel
    vocabulary_percentage: float
    grammar_percentage: float
    overall_percentage: float
    assessed_at: datetime


class MissingVocabularyOut(BaseModel):
    item_id: str
    text: str


class MissingGrammarOut(BaseModel):
    concept_id: str
    title: str


class LevelRequirementsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    target_level: ProficiencyLevel
    vocabulary_needed: int
    vocabulary_remaining: int
    grammar_needed: int
    grammar_remaining: int
    missing_vocabulary: List[MissingVocabularyOut]
    missing_grammar: List[MissingGrammarOut]
    estimated_practice_hours: int


class ProficiencyOverviewOut(BaseModel):
    language: str
    current_level: ProficiencyLevel
    next_level: Optional[ProficiencyLevel] = None
    status: str
    overall_percentage: float
    progress_to_next_level: float
    last_assessed_at: Optional[datetime] = None
