"""Curriculum graph endpoints: available concepts, completion, graph view."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from progression.api.v2.dependencies import get_current_user, get_db
from progression.core.exceptions import EngineError
from progression.models.user.user_model import User
from progression.schemas.learning import curriculum_schema
from progression.services.curriculum_graph_service import CurriculumGraphService

router = APIRouter()


@router.get("/available", response_model=List[curriculum_schema.ConceptOut])
def list_available_concepts(
    language: str = Query(..., min_length=2, max_length=2),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = CurriculumGraphService(db, current_user)
    try:
        return service.available_concepts(language)
    except EngineError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.get("/next", response_model=Optional[curriculum_schema.ConceptOut])
def get_next_concept(
    language: str = Query(..., min_length=2, max_length=2),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = CurriculumGraphService(db, current_user)
    try:
        return service.next_concept(language)
    except EngineError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.get("/graph", response_model=curriculum_schema.CurriculumGraphOut)
def get_curriculum_graph(
    language: str = Query(..., min_length=2, max_length=2),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = CurriculumGraphService(db, current_user)
    try:
        return service.graph(language)
    except EngineError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.get("/stats", response_model=curriculum_schema.CurriculumStatsOut)
def get_curriculum_stats(
    language: str = Query(..., min_length=2, max_length=2),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = CurriculumGraphService(db, current_user)
    try:
        return service.stats(language)
    except EngineError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.post("/complete/{concept_id}", response_model=curriculum_schema.ConceptCompleteOut)
def complete_concept(
    concept_id: str,
    payload: curriculum_schema.ConceptCompleteIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = CurriculumGraphService(db, current_user)
    try:
        unlocked = service.complete(concept_id, accuracy=payload.accuracy)
    except EngineError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc
    return {"concept_id": concept_id.strip().lower(), "newly_unlocked": unlocked}


@router.post("/progress/{concept_id}", response_model=curriculum_schema.ConceptProgressOut)
def record_concept_progress(
    concept_id: str,
    payload: curriculum_schema.ConceptProgressIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = CurriculumGraphService(db, current_user)
    try:
        return service.record_progress(concept_id, payload.progress_percentage)
    except EngineError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc
