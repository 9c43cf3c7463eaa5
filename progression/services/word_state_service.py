"""Knowledge state machine: unknown -> learning -> known, per user and item."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from progression.core.exceptions import InvalidInputError, NotFoundError
from progression.db.transactions import run_atomic
from progression.models.catalog.vocabulary_model import VocabularyItem
from progression.models.progress.user_word_state_model import UserWordState, WordStateValue
from progression.models.user.user_model import User
from progression.services.catalog_service import ContentCatalog
from progression.utils.lang_utils import normalize_identifier, normalize_language
from progression.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


@dataclass
class ReviewOutcome:
    state: UserWordState
    previous_state: WordStateValue
    state_changed: bool


@dataclass
class IntroductionResult:
    marked_count: int = 0
    outcomes: Dict[str, str] = field(default_factory=dict)


class KnowledgeStateService:
    """Owns every write to ``user_word_states``."""

    KNOWN_THRESHOLD = 5

    OUTCOME_INTRODUCED = "introduced"
    OUTCOME_ALREADY_INTRODUCED = "already_introduced"
    OUTCOME_NOT_FOUND = "not_found"
    OUTCOME_INVALID = "invalid"

    def __init__(self, db: Session, user: User, catalog: ContentCatalog | None = None):
        self.db = db
        self.user = user
        self.user_id = user.id
        self.catalog = catalog or ContentCatalog(db)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def get_state(self, item_id: str) -> UserWordState:
        """Return the user's row for *item_id*, creating an ``unknown`` one if needed."""
        item_id = normalize_identifier(item_id, code="invalid_item_id")

        def _operation() -> UserWordState:
            item = self.catalog.get_item(item_id)
            return self._get_or_create_state(item)

        return run_atomic(self.db, _operation, label="word_state.get")

    def record_review(self, item_id: str, was_successful: bool) -> ReviewOutcome:
        """Apply one review outcome and the resulting state transitions."""
        item_id = normalize_identifier(item_id, code="invalid_item_id")

        def _operation() -> ReviewOutcome:
            item = self.catalog.get_item(item_id)
            state = self._get_or_create_state(item)
            now = self._utcnow()
            previous = state.state

            state.total_reviews = (state.total_reviews or 0) + 1
            if was_successful:
                state.successful_reviews = (state.successful_reviews or 0) + 1
            state.last_reviewed_at = now

            if state.state == WordStateValue.UNKNOWN:
                state.state = WordStateValue.LEARNING
                state.marked_learning_at = now
                if state.first_seen_at is None:
                    state.first_seen_at = now

            if (
                state.state == WordStateValue.LEARNING
                and state.successful_reviews >= self.KNOWN_THRESHOLD
            ):
                state.state = WordStateValue.KNOWN
                state.marked_known_at = now
                logger.info(
                    "Mot %s connu pour l'utilisateur %s après %s réussites.",
                    item.id,
                    self.user_id,
                    state.successful_reviews,
                )

            self.db.flush([state])
            return ReviewOutcome(
                state=state,
                previous_state=previous,
                state_changed=state.state != previous,
            )

        return run_atomic(self.db, _operation, label="word_state.record_review")

    def reset(self, item_id: str) -> UserWordState:
        """Send a known item back to learning; ``total_reviews`` is preserved."""
        item_id = normalize_identifier(item_id, code="invalid_item_id")

        def _operation() -> UserWordState:
            state = self._find_state(item_id)
            if state is None:
                raise NotFoundError("word_state_not_found")

            now = self._utcnow()
            state.state = WordStateValue.LEARNING
            state.successful_reviews = 0
            state.marked_known_at = None
            if state.marked_learning_at is None:
                state.marked_learning_at = now
            if state.first_seen_at is None:
                state.first_seen_at = now

            self.db.flush([state])
            return state

        return run_atomic(self.db, _operation, label="word_state.reset")

    def introduce(self, item_ids: Iterable[str]) -> IntroductionResult:
        """Mark items as seen for the first time, reporting one outcome per id."""
        raw_ids = list(dict.fromkeys(item_ids or []))
        if not raw_ids:
            return IntroductionResult()

        def _operation() -> IntroductionResult:
            result = IntroductionResult()
            valid_ids: List[str] = []
            for raw_id in raw_ids:
                try:
                    identifier = normalize_identifier(raw_id)
                except InvalidInputError:
                    result.outcomes[str(raw_id)] = self.OUTCOME_INVALID
                    continue
                if identifier not in valid_ids:
                    valid_ids.append(identifier)

            items = self.catalog.get_items(valid_ids)
            existing = {
                row.item_id: row
                for row in self._states_query().filter(UserWordState.item_id.in_(valid_ids)).all()
            } if valid_ids else {}
            now = self._utcnow()

            for item_id in valid_ids:
                item = items.get(item_id)
                if item is None:
                    result.outcomes[item_id] = self.OUTCOME_NOT_FOUND
                    continue

                row = existing.get(item_id)
                if row is None:
                    row = self._new_state(item)
                    self.db.add(row)
                elif row.state != WordStateValue.UNKNOWN or row.first_seen_at is not None:
                    result.outcomes[item_id] = self.OUTCOME_ALREADY_INTRODUCED
                    continue

                row.first_seen_at = now
                result.outcomes[item_id] = self.OUTCOME_INTRODUCED
                result.marked_count += 1

            self.db.flush()
            return result

        return run_atomic(self.db, _operation, label="word_state.introduce")

    # ------------------------------------------------------------------
    # Reporting helpers
    # ------------------------------------------------------------------
    def state_stats(self, language: str) -> dict:
        language = normalize_language(language)
        rows = (
            self.db.query(UserWordState.state, func.count(UserWordState.id))
            .filter(UserWordState.user_id == self.user_id, UserWordState.language == language)
            .group_by(UserWordState.state)
            .all()
        )
        counts = {value.value: 0 for value in WordStateValue}
        for state, count in rows:
            counts[WordStateValue(state).value] = int(count)
        counts["total"] = sum(counts.values())
        return counts

    def words_by_state(
        self,
        language: str,
        state: WordStateValue,
        *,
        limit: int = 50,
        offset: int = 0,
    ) -> List[UserWordState]:
        language = normalize_language(language)
        return (
            self._states_query()
            .filter(UserWordState.language == language, UserWordState.state == state)
            .order_by(UserWordState.last_reviewed_at.desc().nullslast(), UserWordState.id.asc())
            .offset(max(offset, 0))
            .limit(max(limit, 1))
            .all()
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _states_query(self):
        return self.db.query(UserWordState).filter(UserWordState.user_id == self.user_id)

    def _find_state(self, item_id: str) -> UserWordState | None:
        return self._states_query().filter(UserWordState.item_id == item_id).first()

    def _new_state(self, item: VocabularyItem) -> UserWordState:
        return UserWordState(
            user_id=self.user_id,
            item_id=item.id,
            language=item.language,
            state=WordStateValue.UNKNOWN,
            successful_reviews=0,
            total_reviews=0,
        )

    def _get_or_create_state(self, item: VocabularyItem) -> UserWordState:
        state = self._find_state(item.id)
        if state:
            return state
        state = self._new_state(item)
        self.db.add(state)
        self.db.flush([state])
        return state

    @staticmethod
    def _utcnow() -> datetime:
        return utcnow()


__all__ = ["IntroductionResult", "KnowledgeStateService", "ReviewOutcome"]
