"""Proficiency assessment endpoints (CEFR level, history, gaps)."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from progression.api.v2.dependencies import get_current_user, get_db
from progression.core.exceptions import EngineError
from progression.core.levels import ProficiencyLevel
from progression.models.user.user_model import User
from progression.schemas.analytics import proficiency_schema
from progression.services.proficiency_service import ProficiencyAssessmentService

router = APIRouter()


@router.get("/assessment", response_model=proficiency_schema.AssessmentOut)
def get_assessment(
    language: str = Query(..., min_length=2, max_length=2),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = ProficiencyAssessmentService(db, current_user)
    try:
        return service.assess(language)
    except EngineError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.get("/progression", response_model=List[proficiency_schema.ProficiencySnapshotOut])
def get_progression(
    language: str = Query(..., min_length=2, max_length=2),
    days: int = Query(90, ge=1, le=ProficiencyAssessmentService.MAX_HISTORY_DAYS),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = ProficiencyAssessmentService(db, current_user)
    try:
        return service.progression(language, days=days)
    except EngineError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.get("/requirements", response_model=Optional[proficiency_schema.LevelRequirementsOut])
def get_requirements(
    language: str = Query(..., min_length=2, max_length=2),
    target_level: Optional[ProficiencyLevel] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = ProficiencyAssessmentService(db, current_user)
    try:
        return service.requirements(language, target_level=target_level)
    except EngineError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.get("/overview", response_model=List[proficiency_schema.ProficiencyOverviewOut])
def get_overview(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = ProficiencyAssessmentService(db, current_user)
    try:
        return service.overview()
    except EngineError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc
