from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from progression.core.levels import ProficiencyLevel
from progression.models.progress.user_word_state_model import WordStateValue


class WordStateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    item_id: str
    language: str
    state: WordStateValue
    successful_reviews: int
    total_reviews: int
    first_seen_at: Optional[datetime] = None
    marked_learning_at: Optional[datetime] = None
    marked_known_at: Optional[datetime] = None
    last_reviewed_at: Optional[datetime] = None


class RecordReviewIn(BaseModel):
    item_id: str = Field(..., min_length=1, max_length=100)
    was_successful: bool


class RecordReviewOut(BaseModel):
    state: WordStateOut
    previous_state: WordStateValue
    state_changed: bool


class ResetWordIn(BaseModel):
    item_id: str = Field(..., min_length=1, max_length=100)


class WordStateStatsOut(BaseModel):
    language: str
    unknown: int
    learning: int
    known: int
    total: int


class IntroductionCandidateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    item_id: str
    text: str
    level: ProficiencyLevel
    tags: List[str] = []
    example_count: int


class MarkIntroducedIn(BaseModel):
    item_ids: List[str] = Field(default_factory=list, max_length=200)


class IntroductionResultOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    marked_count: int
    outcomes: Dict[str, str]


class IntroductionStatsOut(BaseModel):
    language: str
    total_available: int
    by_level: Dict[str, int]
