"""Spaced-repetition endpoints (SM-2 scheduling)."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from progression.api.v2.dependencies import get_current_user, get_db
from progression.core.exceptions import EngineError
from progression.models.user.user_model import User
from progression.schemas.learning import srs_schema
from progression.services.srs.sm2_calculator import SM2Calculator
from progression.services.srs.srs_service import SRSService

router = APIRouter()


@router.get("/due", response_model=srs_schema.DueItemsOut, summary="Éléments à réviser")
def get_due_items(
    language: Optional[str] = Query(None, min_length=2, max_length=2),
    limit: Optional[int] = Query(None, ge=1, le=SRSService.MAX_DUE_LIMIT),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = SRSService(db, current_user)
    try:
        due = service.due_items(language=language, limit=limit)
    except EngineError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc

    items = []
    for schedule in due.items:
        entry = srs_schema.DueItemOut.model_validate(schedule)
        entry.text = getattr(schedule.item, "text", None)
        items.append(entry)
    return {"items": items, "total_due": due.total_due}


@router.post("/review", response_model=srs_schema.SRSUpdateOut)
def submit_srs_review(
    payload: srs_schema.SRSReviewIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = SRSService(db, current_user)
    try:
        quality = (
            payload.quality
            if payload.quality is not None
            else SM2Calculator.quality_from_rating(payload.rating)
        )
        return service.submit_review(
            payload.item_id,
            quality,
            create_if_missing=payload.create_if_missing,
        )
    except EngineError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.post("/schedule", response_model=srs_schema.SRSItemOut)
def add_item_to_schedule(
    payload: srs_schema.SRSScheduleIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = SRSService(db, current_user)
    try:
        return service.add_to_schedule(payload.item_id)
    except EngineError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.get("/stats", response_model=srs_schema.SRSStatsOut)
def get_srs_stats(
    language: Optional[str] = Query(None, min_length=2, max_length=2),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = SRSService(db, current_user)
    try:
        return service.stats(language=language)
    except EngineError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.get("/items/{item_id}", response_model=srs_schema.SRSItemOut)
def get_srs_item(
    item_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = SRSService(db, current_user)
    try:
        return service.get_schedule_item(item_id)
    except EngineError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.get("/items/{item_id}/history", response_model=List[srs_schema.SRSReviewLogOut])
def get_srs_item_history(
    item_id: str,
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = SRSService(db, current_user)
    try:
        return service.review_history(item_id, limit=limit)
    except EngineError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc
