"""Knowledge state endpoints (per-item unknown / learning / known)."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from progression.api.v2.dependencies import get_current_user, get_db
from progression.core.exceptions import EngineError
from progression.models.progress.user_word_state_model import WordStateValue
from progression.models.user.user_model import User
from progression.schemas.learning import word_state_schema
from progression.services.word_state_service import KnowledgeStateService

router = APIRouter()


@router.get("/stats", response_model=word_state_schema.WordStateStatsOut)
def get_word_state_stats(
    language: str = Query(..., min_length=2, max_length=2),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = KnowledgeStateService(db, current_user)
    try:
        counts = service.state_stats(language)
    except EngineError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc
    return {"language": language.lower(), **counts}


@router.get("/by-state", response_model=List[word_state_schema.WordStateOut])
def list_words_by_state(
    language: str = Query(..., min_length=2, max_length=2),
    state: WordStateValue = Query(...),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = KnowledgeStateService(db, current_user)
    try:
        return service.words_by_state(language, state, limit=limit, offset=offset)
    except EngineError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.post("/record-review", response_model=word_state_schema.RecordReviewOut)
def record_word_review(
    payload: word_state_schema.RecordReviewIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = KnowledgeStateService(db, current_user)
    try:
        outcome = service.record_review(payload.item_id, payload.was_successful)
    except EngineError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc
    return {
        "state": word_state_schema.WordStateOut.model_validate(outcome.state),
        "previous_state": outcome.previous_state,
        "state_changed": outcome.state_changed,
    }


@router.post("/reset", response_model=word_state_schema.WordStateOut)
def reset_word_state(
    payload: word_state_schema.ResetWordIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = KnowledgeStateService(db, current_user)
    try:
        return service.reset(payload.item_id)
    except EngineError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.get("/{item_id}", response_model=word_state_schema.WordStateOut)
def get_word_state(
    item_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = KnowledgeStateService(db, current_user)
    try:
        return service.get_state(item_id)
    except EngineError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc
