"""Selection of the next vocabulary items to introduce to a learner."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from sqlalchemy import and_, case, exists, func, or_
from sqlalchemy.orm import Session

from progression.core.config import settings
from progression.core.exceptions import InvalidInputError
from progression.core.levels import ProficiencyLevel
from progression.models.catalog.vocabulary_model import UsageExample, VocabularyItem
from progression.models.progress.user_word_state_model import UserWordState, WordStateValue
from progression.models.user.user_model import User
from progression.utils.lang_utils import normalize_language


@dataclass
class IntroductionCandidate:
    item_id: str
    text: str
    level: ProficiencyLevel
    tags: List[str] = field(default_factory=list)
    example_count: int = 0


class VocabularySequencingService:
    """Read-only queries over items the learner has not been introduced to."""

    MAX_BATCH_SIZE = 50

    def __init__(self, db: Session, user: User):
        self.db = db
        self.user = user
        self.user_id = user.id

    def next_batch(
        self,
        language: str,
        max_level: ProficiencyLevel | str = ProficiencyLevel.C2,
        batch_size: int | None = None,
    ) -> List[IntroductionCandidate]:
        """Lowest-level, oldest items first, capped at ``batch_size``."""
        language = normalize_language(language)
        ceiling = ProficiencyLevel.parse(max_level)
        size = settings.INTRODUCTION_BATCH_SIZE if batch_size is None else batch_size
        if not 1 <= size <= self.MAX_BATCH_SIZE:
            raise InvalidInputError("invalid_batch_size")

        level_rank = case(
            *[(VocabularyItem.level == level, level.rank) for level in ProficiencyLevel],
            else_=len(ProficiencyLevel),
        )
        items = (
            self._candidates_query(language, ceiling)
            .order_by(level_rank.asc(), VocabularyItem.created_at.asc(), VocabularyItem.id.asc())
            .limit(size)
            .all()
        )
        counts = self._example_counts([item.id for item in items])

        return [
            IntroductionCandidate(
                item_id=item.id,
                text=item.text,
                level=ProficiencyLevel.parse(item.level),
                tags=list(item.tags or []),
                example_count=counts.get(item.id, 0),
            )
            for item in items
        ]

    def introduction_stats(
        self,
        language: str,
        max_level: ProficiencyLevel | str = ProficiencyLevel.C2,
    ) -> dict:
        language = normalize_language(language)
        ceiling = ProficiencyLevel.parse(max_level)
        rows = (
            self._candidates_query(language, ceiling)
            .with_entities(VocabularyItem.level, func.count(VocabularyItem.id))
            .group_by(VocabularyItem.level)
            .all()
        )
        by_level: Dict[str, int] = {level.value: 0 for level in ceiling.at_or_below()}
        for level, count in rows:
            by_level[ProficiencyLevel.parse(level).value] = int(count)
        return {
            "total_available": sum(by_level.values()),
            "by_level": by_level,
        }

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _candidates_query(self, language: str, ceiling: ProficiencyLevel):
        already_introduced = exists().where(
            and_(
                UserWordState.user_id == self.user_id,
                UserWordState.item_id == VocabularyItem.id,
                or_(
                    UserWordState.state != WordStateValue.UNKNOWN,
                    UserWordState.first_seen_at.isnot(None),
                ),
            )
        )
        has_example = exists().where(UsageExample.item_id == VocabularyItem.id)

        return (
            self.db.query(VocabularyItem)
            .filter(VocabularyItem.language == language)
            .filter(VocabularyItem.level.in_(ceiling.at_or_below()))
            .filter(~already_introduced)
            .filter(has_example)
        )

    def _example_counts(self, item_ids: List[str]) -> Dict[str, int]:
        if not item_ids:
            return {}
        rows = (
            self.db.query(UsageExample.item_id, func.count(UsageExample.id))
            .filter(UsageExample.item_id.in_(item_ids))
            .group_by(UsageExample.item_id)
            .all()
        )
        return {item_id: int(count) for item_id, count in rows}


__all__ = ["IntroductionCandidate", "VocabularySequencingService"]
