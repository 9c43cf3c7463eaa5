"""Spaced-repetition scheduling of learning vocabulary."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import and_, func
from sqlalchemy.orm import Session, selectinload

from progression.core.config import settings
from progression.core.exceptions import InvalidInputError, NotFoundError
from progression.db.transactions import run_atomic
from progression.models.progress.user_srs_item_model import SRSReviewLog, UserSRSItem
from progression.models.progress.user_word_state_model import UserWordState, WordStateValue
from progression.models.user.user_model import User
from progression.services.catalog_service import ContentCatalog
from progression.services.srs.sm2_calculator import SM2Calculator, SM2State
from progression.utils.lang_utils import normalize_identifier, normalize_language
from progression.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


@dataclass
class SRSUpdate:
    item_id: str
    interval: int
    repetitions: int
    stability_factor: float
    next_review_at: datetime


@dataclass
class DueItems:
    items: List[UserSRSItem] = field(default_factory=list)
    total_due: int = 0


class SRSService:
    """SM-2 scheduler over items the learner is currently learning.

    Scheduler "learned" (``repetitions >= 1``) is reported here only; the
    knowledge state machine alone decides whether an item is ``known``.
    """

    MAX_DUE_LIMIT = 100

    def __init__(self, db: Session, user: User, catalog: ContentCatalog | None = None):
        self.db = db
        self.user = user
        self.user_id = user.id
        self.catalog = catalog or ContentCatalog(db)

    # ------------------------------------------------------------------
    # Core update operations
    # ------------------------------------------------------------------
    def submit_review(
        self,
        item_id: str,
        quality: int,
        *,
        create_if_missing: bool = False,
    ) -> SRSUpdate:
        """Apply one SM-2 review and log it in the review history."""
        item_id = normalize_identifier(item_id, code="invalid_item_id")
        quality = SM2Calculator.validate_quality(quality)

        def _operation() -> SRSUpdate:
            schedule = self._find_schedule(item_id)
            now = self._utcnow()
            if schedule is None:
                if not create_if_missing:
                    raise NotFoundError("srs_item_not_found")
                item = self.catalog.get_item(item_id)
                self._require_learning(item_id)
                schedule = self._create_schedule(item, now)

            previous = SM2State(
                interval=schedule.interval_days or 0,
                repetitions=schedule.repetitions or 0,
                stability_factor=schedule.stability_factor or SM2Calculator.DEFAULT_STABILITY_FACTOR,
            )
            result = SM2Calculator.calculate(previous, quality, now)

            schedule.interval_days = result.interval
            schedule.repetitions = result.repetitions
            schedule.stability_factor = result.stability_factor
            schedule.next_review_at = result.next_review_at
            schedule.last_reviewed_at = now

            self.db.add(
                SRSReviewLog(
                    user_id=self.user_id,
                    item_id=item_id,
                    quality=quality,
                    previous_interval=previous.interval,
                    new_interval=result.interval,
                    previous_stability_factor=previous.stability_factor,
                    new_stability_factor=result.stability_factor,
                    previous_repetitions=previous.repetitions,
                    new_repetitions=result.repetitions,
                    reviewed_at=now,
                )
            )
            self.db.flush()

            return SRSUpdate(
                item_id=item_id,
                interval=result.interval,
                repetitions=result.repetitions,
                stability_factor=result.stability_factor,
                next_review_at=result.next_review_at,
            )

        return run_atomic(self.db, _operation, label="srs.submit_review")

    def add_to_schedule(self, item_id: str) -> UserSRSItem:
        """Create the scheduling row of an item already in ``learning``."""
        item_id = normalize_identifier(item_id, code="invalid_item_id")

        def _operation() -> UserSRSItem:
            schedule = self._find_schedule(item_id)
            if schedule is not None:
                return schedule

            item = self.catalog.get_item(item_id)
            self._require_learning(item_id)
            return self._create_schedule(item, self._utcnow())

        return run_atomic(self.db, _operation, label="srs.add_to_schedule")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def due_items(self, language: str | None = None, limit: int | None = None) -> DueItems:
        """Items due now, oldest first; learning items get a row on first listing."""
        language = normalize_language(language) if language is not None else None
        limit = settings.DUE_ITEMS_DEFAULT_LIMIT if limit is None else limit
        if not 1 <= limit <= self.MAX_DUE_LIMIT:
            raise InvalidInputError("invalid_limit")

        created = run_atomic(
            self.db,
            lambda: self._initialize_missing_schedules(language),
            label="srs.initialize_due",
        )
        if created:
            logger.info(
                "%s élément(s) ajouté(s) au planning SRS de l'utilisateur %s.",
                created,
                self.user_id,
            )

        now = self._utcnow()
        query = self._due_query(now, language)
        total_due = query.count()
        items = (
            query.options(selectinload(UserSRSItem.item))
            .order_by(UserSRSItem.next_review_at.asc(), UserSRSItem.id.asc())
            .limit(limit)
            .all()
        )
        return DueItems(items=items, total_due=total_due)

    def get_schedule_item(self, item_id: str) -> UserSRSItem:
        item_id = normalize_identifier(item_id, code="invalid_item_id")
        schedule = self._find_schedule(item_id)
        if schedule is None:
            raise NotFoundError("srs_item_not_found")
        return schedule

    def review_history(self, item_id: str, limit: int = 20) -> List[SRSReviewLog]:
        item_id = normalize_identifier(item_id, code="invalid_item_id")
        return (
            self.db.query(SRSReviewLog)
            .filter(SRSReviewLog.user_id == self.user_id, SRSReviewLog.item_id == item_id)
            .order_by(SRSReviewLog.reviewed_at.desc(), SRSReviewLog.id.desc())
            .limit(max(limit, 1))
            .all()
        )

    def stats(self, language: str | None = None) -> dict:
        language = normalize_language(language) if language is not None else None
        now = self._utcnow()

        base = self.db.query(UserSRSItem).filter(UserSRSItem.user_id == self.user_id)
        if language:
            base = base.filter(UserSRSItem.language == language)

        total_items = base.count()
        due_now = self._due_query(now, language).count()
        due_this_week = self._due_query(now + timedelta(days=7), language).count()
        learned = base.filter(UserSRSItem.repetitions >= 1).count()
        average = base.with_entities(func.avg(UserSRSItem.stability_factor)).scalar()

        return {
            "total_items": total_items,
            "due_now": due_now,
            "due_this_week": due_this_week,
            "learned": learned,
            "average_stability_factor": round(float(average), 2)
            if average is not None
            else SM2Calculator.DEFAULT_STABILITY_FACTOR,
        }

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _find_schedule(self, item_id: str) -> Optional[UserSRSItem]:
        return (
            self.db.query(UserSRSItem)
            .filter_by(user_id=self.user_id, item_id=item_id)
            .first()
        )

    def _require_learning(self, item_id: str) -> None:
        state = (
            self.db.query(UserWordState)
            .filter_by(user_id=self.user_id, item_id=item_id)
            .first()
        )
        if state is None or state.state != WordStateValue.LEARNING:
            raise InvalidInputError("item_not_learning")

    def _create_schedule(self, item, now: datetime) -> UserSRSItem:
        initial = SM2Calculator.initial_state()
        schedule = UserSRSItem(
            user_id=self.user_id,
            item_id=item.id,
            language=item.language,
            interval_days=initial.interval,
            repetitions=initial.repetitions,
            stability_factor=initial.stability_factor,
            next_review_at=now,
        )
        self.db.add(schedule)
        self.db.flush([schedule])
        return schedule

    def _initialize_missing_schedules(self, language: Optional[str]) -> int:
        query = (
            self.db.query(UserWordState)
            .outerjoin(
                UserSRSItem,
                and_(
                    UserSRSItem.user_id == UserWordState.user_id,
                    UserSRSItem.item_id == UserWordState.item_id,
                ),
            )
            .filter(
                UserWordState.user_id == self.user_id,
                UserWordState.state == WordStateValue.LEARNING,
                UserSRSItem.id.is_(None),
            )
        )
        if language:
            query = query.filter(UserWordState.language == language)

        now = self._utcnow()
        states = query.all()
        for state in states:
            self.db.add(
                UserSRSItem(
                    user_id=self.user_id,
                    item_id=state.item_id,
                    language=state.language,
                    interval_days=0,
                    repetitions=0,
                    stability_factor=SM2Calculator.DEFAULT_STABILITY_FACTOR,
                    next_review_at=now,
                )
            )
        self.db.flush()
        return len(states)

    def _due_query(self, now: datetime, language: Optional[str]):
        query = (
            self.db.query(UserSRSItem)
            .join(
                UserWordState,
                and_(
                    UserWordState.user_id == UserSRSItem.user_id,
                    UserWordState.item_id == UserSRSItem.item_id,
                ),
            )
            .filter(
                UserSRSItem.user_id == self.user_id,
                UserSRSItem.next_review_at <= now,
                UserWordState.state == WordStateValue.LEARNING,
            )
        )
        if language:
            query = query.filter(UserSRSItem.language == language)
        return query

    @staticmethod
    def _utcnow() -> datetime:
        return utcnow()


__all__ = ["DueItems", "SRSService", "SRSUpdate"]
