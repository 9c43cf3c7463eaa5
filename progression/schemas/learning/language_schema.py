from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class LanguageIn(BaseModel):
    language: str = Field(..., min_length=2, max_length=2)


class LanguageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    language: str
    started_at: Optional[datetime] = None
