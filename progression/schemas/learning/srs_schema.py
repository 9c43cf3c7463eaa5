from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class SRSReviewIn(BaseModel):
    item_id: str = Field(..., min_length=1, max_length=100)
    quality: Optional[int] = None
    rating: Optional[str] = None
    create_if_missing: bool = False

    @model_validator(mode="after")
    def _ensure_single_grade(self) -> "SRSReviewIn":
        if (self.quality is None) == (self.rating is None):
            raise ValueError("quality_or_rating_required")
        return self


class SRSUpdateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    item_id: str
    interval: int
    repetitions: int
    stability_factor: float
    next_review_at: datetime


class SRSScheduleIn(BaseModel):
    item_id: str = Field(..., min_length=1, max_length=100)


class SRSItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    item_id: str
    language: str
    interval_days: int
    repetitions: int
    stability_factor: float
    next_review_at: datetime
    last_reviewed_at: Optional[datetime] = None


class DueItemOut(SRSItemOut):
    text: Optional[str] = None


class DueItemsOut(BaseModel):
    items: List[DueItemOut]
    total_due: int


class SRSStatsOut(BaseModel):
    total_items: int
    due_now: int
    due_this_week: int
    learned: int
    average_stability_factor: float


class SRSReviewLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    quality: int
    previous_interval: int
    new_interval: int
    previous_stability_factor: float
    new_stability_factor: float
    previous_repetitions: int
    new_repetitions: int
    reviewed_at: datetime
