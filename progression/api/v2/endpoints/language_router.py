"""Languages studied by the current user."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from progression.api.v2.dependencies import get_current_user, get_db
from progression.core.exceptions import EngineError
from progression.models.user.user_language_model import UserLanguage
from progression.models.user.user_model import User
from progression.schemas.learning import language_schema
from progression.services.language_profile_service import LanguageProfileService

router = APIRouter()


@router.get("", response_model=List[language_schema.LanguageOut])
def list_languages(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return (
        db.query(UserLanguage)
        .filter(UserLanguage.user_id == current_user.id)
        .order_by(UserLanguage.language.asc())
        .all()
    )


@router.post("", response_model=language_schema.LanguageOut, status_code=status.HTTP_201_CREATED)
def add_language(
    payload: language_schema.LanguageIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = LanguageProfileService(db, current_user)
    try:
        return service.add_language(payload.language)
    except EngineError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc


@router.delete("/{language}", status_code=status.HTTP_204_NO_CONTENT)
def remove_language(
    language: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = LanguageProfileService(db, current_user)
    try:
        service.remove_language(language)
    except EngineError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc
