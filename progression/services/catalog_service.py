"""Read-only access to the content catalog (vocabulary items and concepts)."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from progression.core.exceptions import NotFoundError
from progression.models.catalog.curriculum_concept_model import CurriculumConcept
from progression.models.catalog.vocabulary_model import VocabularyItem


class ContentCatalog:
    """Lookups over immutable catalog content.

    Concepts are cached per language for the lifetime of the instance, which
    is one request or one service call chain.
    """

    def __init__(self, db: Session):
        self.db = db
        self._concepts_by_language: Dict[str, List[CurriculumConcept]] = {}

    # ------------------------------------------------------------------
    # Vocabulary
    # ------------------------------------------------------------------
    def find_item(self, item_id: str) -> Optional[VocabularyItem]:
        return self.db.get(VocabularyItem, item_id)

    def get_item(self, item_id: str) -> VocabularyItem:
        item = self.find_item(item_id)
        if item is None:
            raise NotFoundError("item_not_found")
        return item

    def get_items(self, item_ids: Iterable[str]) -> Dict[str, VocabularyItem]:
        ids = list(dict.fromkeys(item_ids))
        if not ids:
            return {}
        items = self.db.query(VocabularyItem).filter(VocabularyItem.id.in_(ids)).all()
        return {item.id: item for item in items}

    # ------------------------------------------------------------------
    # Curriculum concepts
    # ------------------------------------------------------------------
    def concepts_for_language(self, language: str) -> List[CurriculumConcept]:
        cached = self._concepts_by_language.get(language)
        if cached is not None:
            return cached

        concepts = (
            self.db.query(CurriculumConcept)
            .filter(CurriculumConcept.language == language)
            .order_by(CurriculumConcept.priority_order.asc(), CurriculumConcept.concept_id.asc())
            .all()
        )
        self._concepts_by_language[language] = concepts
        return concepts

    def get_concept(self, concept_id: str) -> CurriculumConcept:
        concept = self.db.get(CurriculumConcept, concept_id)
        if concept is None:
            raise NotFoundError("concept_not_found")
        return concept

    def dependents_of(self, concept_id: str, language: str) -> List[CurriculumConcept]:
        """Concepts listing *concept_id* in either prerequisite set."""
        return [
            concept
            for concept in self.concepts_for_language(language)
            if concept_id in (concept.prerequisites_and or [])
            or concept_id in (concept.prerequisites_or or [])
        ]

    def clear_cache(self, language: str | None = None) -> None:
        if language is None:
            self._concepts_by_language.clear()
        else:
            self._concepts_by_language.pop(language, None)


__all__ = ["ContentCatalog"]
