"""Introduction of new vocabulary: next batch, stats, marking as seen."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from progression.api.v2.dependencies import get_current_user, get_db
from progression.core.exceptions import EngineError
from progression.core.levels import ProficiencyLevel
from progression.models.user.user_model import User
from progression.schemas.learning import word_state_schema
from progression.services.vocabulary_sequencing_service import VocabularySequencingService
from progression.services.word_state_service import KnowledgeStateService

router = APIRouter()


@router.get("/next", response_model=List[word_state_schema.IntroductionCandidateOut])
def get_next_vocabulary_batch(
    language: str = Query(..., min_length=2, max_length=2),
    max_level: ProficiencyLevel = Query(ProficiencyLevel.C2),
    batch_size: Optional[int] = Query(None, ge=1, le=VocabularySequencingService.MAX_BATCH_SIZE),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = VocabularySequencingService(db, current_user)
    try:
        return service.next_batch(language, max_level=max_level, batch_size=batch_size)
    except EngineError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.get("/stats", response_model=word_state_schema.IntroductionStatsOut)
def get_introduction_stats(
    language: str = Query(..., min_length=2, max_length=2),
    max_level: ProficiencyLevel = Query(ProficiencyLevel.C2),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = VocabularySequencingService(db, current_user)
    try:
        stats = service.introduction_stats(language, max_level=max_level)
    except EngineError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc
    return {"language": language.lower(), **stats}


@router.post("/mark-introduced", response_model=word_state_schema.IntroductionResultOut)
def mark_vocabulary_introduced(
    payload: word_state_schema.MarkIntroducedIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = KnowledgeStateService(db, current_user)
    try:
        return service.introduce(payload.item_ids)
    except EngineError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc
