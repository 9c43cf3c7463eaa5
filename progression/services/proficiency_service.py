"""Proficiency assessment: weighted per-level mastery and its history."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from progression.core.exceptions import InvalidInputError
from progression.core.levels import ProficiencyLevel
from progression.db.transactions import run_atomic
from progression.models.catalog.curriculum_concept_model import ConceptType, CurriculumConcept
from progression.models.catalog.vocabulary_model import VocabularyItem
from progression.models.progress.proficiency_snapshot_model import ProficiencySnapshot
from progression.models.progress.user_concept_progress_model import ConceptStatus, UserConceptProgress
from progression.models.progress.user_word_state_model import UserWordState, WordStateValue
from progression.models.user.user_model import User
from progression.services.language_profile_service import LanguageProfileService
from progression.utils.lang_utils import normalize_language
from progression.utils.time_utils import utcnow


@dataclass
class LevelProgress:
    level: ProficiencyLevel
    vocabulary_total: int = 0
    vocabulary_mastered: int = 0
    grammar_total: int = 0
    grammar_completed: int = 0
    vocabulary_ratio: float = 0.0
    grammar_ratio: float = 0.0

    @property
    def vocabulary_percentage(self) -> float:
        return round(self.vocabulary_ratio, 1)

    @property
    def grammar_percentage(self) -> float:
        return round(self.grammar_ratio, 1)

    @property
    def overall_ratio(self) -> float:
        return (
            self.vocabulary_ratio * ProficiencyAssessmentService.VOCABULARY_WEIGHT
            + self.grammar_ratio * ProficiencyAssessmentService.GRAMMAR_WEIGHT
        )

    @property
    def overall_percentage(self) -> float:
        return round(self.overall_ratio, 1)

    @property
    def is_completed(self) -> bool:
        return (
            self.vocabulary_ratio >= ProficiencyAssessmentService.VOCABULARY_THRESHOLD
            and self.grammar_ratio >= ProficiencyAssessmentService.GRAMMAR_THRESHOLD
        )


@dataclass
class Assessment:
    language: str
    current_level: ProficiencyLevel
    next_level: Optional[ProficiencyLevel]
    status: str
    progress_to_next_level: float
    estimated_days_to_next_level: Optional[int]
    levels: List[LevelProgress] = field(default_factory=list)
    assessed_at: Optional[datetime] = None


@dataclass
class LevelRequirements:
    target_level: ProficiencyLevel
    vocabulary_needed: int
    vocabulary_remaining: int
    grammar_needed: int
    grammar_remaining: int
    missing_vocabulary: List[dict] = field(default_factory=list)
    missing_grammar: List[dict] = field(default_factory=list)
    estimated_practice_hours: int = 0


class ProficiencyAssessmentService:
    """Aggregates known vocabulary and completed grammar into the CEFR scale.

    Only the knowledge state machine's ``known`` counts as mastered
    vocabulary; scheduler repetitions are ignored here.
    """

    VOCABULARY_THRESHOLD = 80
    GRAMMAR_THRESHOLD = 70
    READY_FOR_NEXT_THRESHOLD = 95
    VOCABULARY_WEIGHT = 0.6
    GRAMMAR_WEIGHT = 0.4

    STATUS_PROGRESSING = "progressing"
    STATUS_READY = "ready"
    STATUS_COMPLETED = "completed"

    GAP_LIST_LIMIT = 20
    VELOCITY_WINDOW_DAYS = 30
    MAX_HISTORY_DAYS = 365
    VOCABULARY_ITEMS_PER_HOUR = 10
    GRAMMAR_CONCEPTS_PER_HOUR = 5

    def __init__(self, db: Session, user: User):
        self.db = db
        self.user = user
        self.user_id = user.id

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def assess(self, language: str) -> Assessment:
        """Compute the current assessment and append it to the history."""
        language = normalize_language(language)
        assessment = self._build_assessment(language)

        def _record() -> ProficiencySnapshot:
            current = self._level_row(assessment, assessment.current_level)
            snapshot = ProficiencySnapshot(
                user_id=self.user_id,
                language=language,
                level=assessment.current_level,
                vocabulary_percentage=current.vocabulary_percentage,
                grammar_percentage=current.grammar_percentage,
                overall_percentage=current.overall_percentage,
                assessed_at=assessment.assessed_at,
            )
            self.db.add(snapshot)
            self.db.flush([snapshot])
            return snapshot

        run_atomic(self.db, _record, label="proficiency.snapshot")
        return assessment

    def progression(self, language: str, days: int = 90) -> List[ProficiencySnapshot]:
        language = normalize_language(language)
        if not 1 <= days <= self.MAX_HISTORY_DAYS:
            raise InvalidInputError("invalid_days")

        since = self._utcnow() - timedelta(days=days)
        return (
            self.db.query(ProficiencySnapshot)
            .filter(
                ProficiencySnapshot.user_id == self.user_id,
                ProficiencySnapshot.language == language,
                ProficiencySnapshot.assessed_at >= since,
            )
            .order_by(ProficiencySnapshot.assessed_at.asc(), ProficiencySnapshot.id.asc())
            .all()
        )

    def requirements(
        self,
        language: str,
        target_level: ProficiencyLevel | str | None = None,
    ) -> Optional[LevelRequirements]:
        """Gap analysis for *target_level* (the next level by default)."""
        language = normalize_language(language)
        levels = self.level_progress(language)
        current = self._current_level(levels)

        if target_level is None:
            target = current.next_level
            if target is None:
                return None
        else:
            target = ProficiencyLevel.parse(target_level)

        row = levels[target]
        if row.is_completed and target <= current:
            return None

        vocabulary_needed = max(
            0, self._threshold_count(row.vocabulary_total, self.VOCABULARY_THRESHOLD) - row.vocabulary_mastered
        )
        grammar_needed = max(
            0, self._threshold_count(row.grammar_total, self.GRAMMAR_THRESHOLD) - row.grammar_completed
        )

        return LevelRequirements(
            target_level=target,
            vocabulary_needed=vocabulary_needed,
            vocabulary_remaining=row.vocabulary_total - row.vocabulary_mastered,
            grammar_needed=grammar_needed,
            grammar_remaining=row.grammar_total - row.grammar_completed,
            missing_vocabulary=self._missing_vocabulary(language, target),
            missing_grammar=self._missing_grammar(language, target),
            estimated_practice_hours=math.ceil(
                vocabulary_needed / self.VOCABULARY_ITEMS_PER_HOUR
                + grammar_needed / self.GRAMMAR_CONCEPTS_PER_HOUR
            ),
        )

    def overview(self) -> List[dict]:
        """One summary row per studied language."""
        languages = LanguageProfileService(self.db, self.user).studied_languages()
        summaries: List[dict] = []
        for language in languages:
            latest = self._latest_snapshot(language)
            if latest is None:
                assessment = self.assess(language)
                last_assessed_at = assessment.assessed_at
            else:
                assessment = self._build_assessment(language)
                last_assessed_at = latest.assessed_at

            current = self._level_row(assessment, assessment.current_level)
            summaries.append(
                {
                    "language": language,
                    "current_level": assessment.current_level,
                    "next_level": assessment.next_level,
                    "status": assessment.status,
                    "overall_percentage": current.overall_percentage,
                    "progress_to_next_level": assessment.progress_to_next_level,
                    "last_assessed_at": last_assessed_at,
                }
            )
        return summaries

    def level_progress(self, language: str) -> Dict[ProficiencyLevel, LevelProgress]:
        """Per-level counts and ratios, without touching the history."""
        language = normalize_language(language)
        vocabulary_totals = self._count_by_level(
            self.db.query(VocabularyItem.level, func.count(VocabularyItem.id))
            .filter(VocabularyItem.language == language),
            VocabularyItem.level,
        )
        vocabulary_mastered = self._count_by_level(
            self.db.query(VocabularyItem.level, func.count(UserWordState.id))
            .select_from(UserWordState)
            .join(VocabularyItem, VocabularyItem.id == UserWordState.item_id)
            .filter(
                UserWordState.user_id == self.user_id,
                UserWordState.state == WordStateValue.KNOWN,
                VocabularyItem.language == language,
            ),
            VocabularyItem.level,
        )
        grammar_totals = self._count_by_level(
            self.db.query(CurriculumConcept.level, func.count(CurriculumConcept.concept_id))
            .filter(
                CurriculumConcept.language == language,
                CurriculumConcept.concept_type == ConceptType.GRAMMAR,
            ),
            CurriculumConcept.level,
        )
        grammar_completed = self._count_by_level(
            self.db.query(CurriculumConcept.level, func.count(UserConceptProgress.id))
            .select_from(UserConceptProgress)
            .join(CurriculumConcept, CurriculumConcept.concept_id == UserConceptProgress.concept_id)
            .filter(
                UserConceptProgress.user_id == self.user_id,
                UserConceptProgress.status == ConceptStatus.COMPLETED,
                CurriculumConcept.language == language,
                CurriculumConcept.concept_type == ConceptType.GRAMMAR,
            ),
            CurriculumConcept.level,
        )

        levels: Dict[ProficiencyLevel, LevelProgress] = {}
        for level in ProficiencyLevel.ordered():
            vocabulary_total = vocabulary_totals.get(level, 0)
            mastered = vocabulary_mastered.get(level, 0)
            grammar_total = grammar_totals.get(level, 0)
            completed = grammar_completed.get(level, 0)
            levels[level] = LevelProgress(
                level=level,
                vocabulary_total=vocabulary_total,
                vocabulary_mastered=mastered,
                grammar_total=grammar_total,
                grammar_completed=completed,
                vocabulary_ratio=mastered * 100 / vocabulary_total if vocabulary_total else 0.0,
                grammar_ratio=completed * 100 / grammar_total if grammar_total else 0.0,
            )
        return levels

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _build_assessment(self, language: str) -> Assessment:
        levels = self.level_progress(language)
        current = self._current_level(levels)
        next_level = current.next_level
        current_row = levels[current]

        if next_level is None:
            status = self.STATUS_COMPLETED
            progress_to_next = 100.0
        else:
            status = (
                self.STATUS_READY
                if current_row.overall_ratio >= self.READY_FOR_NEXT_THRESHOLD
                else self.STATUS_PROGRESSING
            )
            progress_to_next = levels[next_level].overall_percentage

        now = self._utcnow()
        return Assessment(
            language=language,
            current_level=current,
            next_level=next_level,
            status=status,
            progress_to_next_level=progress_to_next,
            estimated_days_to_next_level=self._estimate_days(
                language, levels[next_level] if next_level else None, now
            ),
            levels=list(levels.values()),
            assessed_at=now,
        )

    @staticmethod
    def _current_level(levels: Dict[ProficiencyLevel, LevelProgress]) -> ProficiencyLevel:
        # Highest level of the contiguous completed prefix; an incomplete
        # lower level caps everything above it.
        current = ProficiencyLevel.lowest()
        for level in ProficiencyLevel.ordered():
            if not levels[level].is_completed:
                break
            current = level
        return current

    @staticmethod
    def _level_row(assessment: Assessment, level: ProficiencyLevel) -> LevelProgress:
        return next(row for row in assessment.levels if row.level == level)

    @staticmethod
    def _threshold_count(total: int, threshold: int) -> int:
        return -(-total * threshold // 100)

    @staticmethod
    def _count_by_level(query, level_column) -> Dict[ProficiencyLevel, int]:
        rows = query.group_by(level_column).all()
        return {ProficiencyLevel.parse(level): int(count) for level, count in rows}

    def _estimate_days(
        self,
        language: str,
        next_row: Optional[LevelProgress],
        now: datetime,
    ) -> Optional[int]:
        if next_row is None:
            return None

        needed = max(
            0,
            self._threshold_count(next_row.vocabulary_total, self.VOCABULARY_THRESHOLD)
            - next_row.vocabulary_mastered,
        )
        if needed == 0:
            return 0

        since = now - timedelta(days=self.VELOCITY_WINDOW_DAYS)
        known_at = [
            value
            for (value,) in self.db.query(UserWordState.marked_known_at)
            .filter(
                UserWordState.user_id == self.user_id,
                UserWordState.language == language,
                UserWordState.state == WordStateValue.KNOWN,
                UserWordState.marked_known_at >= since,
            )
            .all()
            if value is not None
        ]
        active_days = {value.date() for value in known_at}
        if not active_days:
            return None

        words_per_day = len(known_at) / len(active_days)
        return math.ceil(needed / words_per_day)

    def _missing_vocabulary(self, language: str, level: ProficiencyLevel) -> List[dict]:
        known_ids = (
            select(UserWordState.item_id)
            .where(
                UserWordState.user_id == self.user_id,
                UserWordState.state == WordStateValue.KNOWN,
            )
        )
        items = (
            self.db.query(VocabularyItem)
            .filter(
                VocabularyItem.language == language,
                VocabularyItem.level == level,
                VocabularyItem.id.notin_(known_ids),
            )
            .order_by(VocabularyItem.text.asc(), VocabularyItem.id.asc())
            .limit(self.GAP_LIST_LIMIT)
            .all()
        )
        return [{"item_id": item.id, "text": item.text} for item in items]

    def _missing_grammar(self, language: str, level: ProficiencyLevel) -> List[dict]:
        completed_ids = (
            select(UserConceptProgress.concept_id)
            .where(
                UserConceptProgress.user_id == self.user_id,
                UserConceptProgress.status == ConceptStatus.COMPLETED,
            )
        )
        concepts = (
            self.db.query(CurriculumConcept)
            .filter(
                CurriculumConcept.language == language,
                CurriculumConcept.level == level,
                CurriculumConcept.concept_type == ConceptType.GRAMMAR,
                CurriculumConcept.concept_id.notin_(completed_ids),
            )
            .order_by(CurriculumConcept.priority_order.asc(), CurriculumConcept.concept_id.asc())
            .limit(self.GAP_LIST_LIMIT)
            .all()
        )
        return [{"concept_id": concept.concept_id, "title": concept.title} for concept in concepts]

    def _latest_snapshot(self, language: str) -> Optional[ProficiencySnapshot]:
        return (
            self.db.query(ProficiencySnapshot)
            .filter(
                ProficiencySnapshot.user_id == self.user_id,
                ProficiencySnapshot.language == language,
            )
            .order_by(ProficiencySnapshot.assessed_at.desc(), ProficiencySnapshot.id.desc())
            .first()
        )

    @staticmethod
    def _utcnow() -> datetime:
        return utcnow()


__all__ = [
    "Assessment",
    "LevelProgress",
    "LevelRequirements",
    "ProficiencyAssessmentService",
]
