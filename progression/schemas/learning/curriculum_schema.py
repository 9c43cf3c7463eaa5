from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from progression.core.levels import ProficiencyLevel
from progression.models.catalog.curriculum_concept_model import ConceptType
from progression.models.progress.user_concept_progress_model import ConceptStatus


class ConceptOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    concept_id: str
    language: str
    level: ProficiencyLevel
    concept_type: ConceptType
    title: str
    description: Optional[str] = None
    estimated_duration_minutes: Optional[int] = None
    priority_order: int
    is_optional: bool
    prerequisites_and: List[str] = []
    prerequisites_or: List[str] = []


class ConceptCompleteIn(BaseModel):
    accuracy: Optional[float] = Field(default=None, ge=0, le=100)


class ConceptCompleteOut(BaseModel):
    concept_id: str
    newly_unlocked: List[str]


class ConceptProgressIn(BaseModel):
    progress_percentage: float = Field(..., ge=0, lt=100)


class ConceptProgressOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    concept_id: str
    status: ConceptStatus
    progress_percentage: float
    accuracy_percentage: Optional[float] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class GraphNodeOut(BaseModel):
    concept_id: str
    title: str
    level: ProficiencyLevel
    concept_type: ConceptType
    priority_order: int
    is_optional: bool
    status: ConceptStatus


class GraphEdgeOut(BaseModel):
    source: str
    target: str
    type: Literal["and", "or"]


class CurriculumGraphOut(BaseModel):
    nodes: List[GraphNodeOut]
    edges: List[GraphEdgeOut]


class CurriculumStatsOut(BaseModel):
    locked: int
    unlocked: int
    in_progress: int
    completed: int
    total: int
    completion_percentage: float
    average_accuracy: Optional[float] = None
