from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from progression.core.levels import ProficiencyLevel
from progression.models.progress.orthography_gate_model import GateStatus


class GateProgressOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    language: str
    status: GateStatus
    completed_at: Optional[datetime] = None


class GateLanguageIn(BaseModel):
    language: str = Field(..., min_length=2, max_length=2)


class GateBypassIn(GateLanguageIn):
    user_id: int = Field(..., ge=1)


class LevelAccessOut(BaseModel):
    language: str
    level: ProficiencyLevel
    can_access: bool
