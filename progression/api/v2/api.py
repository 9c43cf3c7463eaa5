# Fichier: progression/api/v2/api.py
from fastapi import APIRouter
from .endpoints import (
    curriculum_router,
    language_router,
    orthography_gate_router,
    proficiency_router,
    srs_router,
    vocabulary_introduction_router,
    word_state_router,
)

api_router = APIRouter()

api_router.include_router(language_router.router, prefix="/learning/languages", tags=["Languages"])
api_router.include_router(word_state_router.router, prefix="/learning/word-state", tags=["Learning"])
api_router.include_router(
    vocabulary_introduction_router.router,
    prefix="/learning/vocabulary-introduction",
    tags=["Learning"],
)
api_router.include_router(srs_router.router, prefix="/srs", tags=["Learning"])
api_router.include_router(curriculum_router.router, prefix="/learning/curriculum", tags=["Curriculum"])
api_router.include_router(
    orthography_gate_router.router,
    prefix="/learning/orthography-gate",
    tags=["Orthography gate"],
)
api_router.include_router(proficiency_router.router, prefix="/analytics/proficiency", tags=["Analytics"])
