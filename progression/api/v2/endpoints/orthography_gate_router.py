"""Foundational orthography gate endpoints."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from progression.api.v2.dependencies import get_current_user, get_db
from progression.core.exceptions import EngineError
from progression.core.levels import ProficiencyLevel
from progression.models.user.user_model import User
from progression.schemas.learning import orthography_gate_schema
from progression.services.orthography_gate_service import OrthographyGateService

router = APIRouter()


@router.get("/status", response_model=orthography_gate_schema.GateProgressOut)
def get_gate_status(
    language: str = Query(..., min_length=2, max_length=2),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = OrthographyGateService(db, current_user)
    try:
        return service.get_progress(language)
    except EngineError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.get("/all", response_model=List[orthography_gate_schema.GateProgressOut])
def list_gates(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = OrthographyGateService(db, current_user)
    try:
        return service.all_progress()
    except EngineError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.post("/unlock", response_model=orthography_gate_schema.GateProgressOut)
def unlock_gate(
    payload: orthography_gate_schema.GateLanguageIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = OrthographyGateService(db, current_user)
    try:
        return service.unlock(payload.language)
    except EngineError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.post("/complete", response_model=orthography_gate_schema.GateProgressOut)
def complete_gate(
    payload: orthography_gate_schema.GateLanguageIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = OrthographyGateService(db, current_user)
    try:
        return service.complete(payload.language)
    except EngineError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.post("/bypass", response_model=orthography_gate_schema.GateProgressOut)
def bypass_gate(
    payload: orthography_gate_schema.GateBypassIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = OrthographyGateService(db, current_user)
    try:
        return service.bypass(payload.user_id, payload.language)
    except EngineError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.get("/access", response_model=orthography_gate_schema.LevelAccessOut)
def check_level_access(
    language: str = Query(..., min_length=2, max_length=2),
    level: ProficiencyLevel = Query(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = OrthographyGateService(db, current_user)
    try:
        allowed = service.can_access_level(language, level)
    except EngineError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc
    return {"language": language.lower(), "level": level, "can_access": allowed}
