"""Utility helpers for test factories."""

from __future__ import annotations

from datetime import datetime, timedelta
from itertools import count
from typing import Iterable

from progression.core.levels import ProficiencyLevel
from progression.models.catalog.curriculum_concept_model import ConceptType, CurriculumConcept
from progression.models.catalog.vocabulary_model import UsageExample, VocabularyItem
from progression.models.progress.user_concept_progress_model import ConceptStatus, UserConceptProgress
from progression.models.progress.user_word_state_model import UserWordState, WordStateValue
from progression.models.user.user_language_model import UserLanguage
from progression.models.user.user_model import User, UserRole

_sequence = count(1)


def create_user(db, **kwargs) -> User:
    index = next(_sequence)
    defaults = {
        "username": f"user{index}",
        "email": f"user{index}@example.com",
        "is_active": True,
        "role": UserRole.LEARNER,
        "base_language": "fr",
        "created_at": datetime.utcnow(),
    }
    defaults.update(kwargs)
    user = User(**defaults)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def add_studied_language(db, user: User, language: str = "es") -> UserLanguage:
    entry = UserLanguage(user_id=user.id, language=language)
    db.add(entry)
    db.commit()
    return entry


def create_vocabulary_item(
    db,
    item_id: str,
    *,
    language: str = "es",
    level: ProficiencyLevel = ProficiencyLevel.A0,
    text: str | None = None,
    examples: int = 1,
    created_at: datetime | None = None,
    tags: list[str] | None = None,
) -> VocabularyItem:
    item = VocabularyItem(
        id=item_id,
        language=language,
        level=level,
        text=text or item_id.split("-", 1)[-1],
        tags=tags or [],
        created_at=created_at or datetime(2024, 1, 1),
    )
    for index in range(examples):
        item.examples.append(
            UsageExample(language=language, text=f"Ejemplo {index} de {item.text}")
        )
    db.add(item)
    db.commit()
    return item


def create_vocabulary_items(db, prefix: str, amount: int, **kwargs) -> list[VocabularyItem]:
    return [create_vocabulary_item(db, f"{prefix}-{index:02d}", **kwargs) for index in range(amount)]


def create_concept(
    db,
    concept_id: str,
    *,
    language: str = "es",
    level: ProficiencyLevel = ProficiencyLevel.A0,
    concept_type: ConceptType = ConceptType.GRAMMAR,
    prerequisites_and: Iterable[str] = (),
    prerequisites_or: Iterable[str] = (),
    priority_order: int = 0,
    title: str | None = None,
) -> CurriculumConcept:
    concept = CurriculumConcept(
        concept_id=concept_id,
        language=language,
        level=level,
        concept_type=concept_type,
        title=title or concept_id,
        priority_order=priority_order,
        prerequisites_and=list(prerequisites_and),
        prerequisites_or=list(prerequisites_or),
    )
    db.add(concept)
    db.commit()
    return concept


def set_word_state(
    db,
    user: User,
    item: VocabularyItem,
    state: WordStateValue,
    *,
    known_at: datetime | None = None,
) -> UserWordState:
    successful = 5 if state == WordStateValue.KNOWN else 0
    row = UserWordState(
        user_id=user.id,
        item_id=item.id,
        language=item.language,
        state=state,
        successful_reviews=successful,
        total_reviews=successful,
        marked_known_at=(known_at or datetime.utcnow() - timedelta(days=1))
        if state == WordStateValue.KNOWN
        else None,
    )
    db.add(row)
    db.commit()
    return row


def set_concept_status(
    db,
    user: User,
    concept: CurriculumConcept,
    status: ConceptStatus,
    *,
    accuracy: float | None = None,
) -> UserConceptProgress:
    row = UserConceptProgress(
        user_id=user.id,
        concept_id=concept.concept_id,
        language=concept.language,
        status=status,
        progress_percentage=100.0 if status == ConceptStatus.COMPLETED else 0.0,
        accuracy_percentage=accuracy,
    )
    db.add(row)
    db.commit()
    return row
