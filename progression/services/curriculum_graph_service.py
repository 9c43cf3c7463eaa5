"""Curriculum dependency graph: AND/OR prerequisites and unlock propagation."""

from __future__ import annotations

import logging
from collections import deque
from datetime import datetime
from typing import Deque, Dict, Iterable, List, Optional, Set, Tuple

from sqlalchemy.orm import Session

from progression.core.exceptions import InvalidInputError, NotFoundError
from progression.db.transactions import run_atomic
from progression.models.catalog.curriculum_concept_model import CurriculumConcept
from progression.models.progress.user_concept_progress_model import ConceptStatus, UserConceptProgress
from progression.models.user.user_model import User
from progression.services.catalog_service import ContentCatalog
from progression.utils.lang_utils import normalize_identifier, normalize_language
from progression.utils.time_utils import utcnow

logger = logging.getLogger(__name__)

# Worklist entries: a completed concept whose dependents need a look, or a
# concept whose eligibility must be (re)evaluated.
COMPLETED = "completed"
EVALUATE = "evaluate"


def is_eligible(concept: CurriculumConcept, completed: Set[str]) -> bool:
    """All of the AND-set and one of the OR-set completed; empty sets pass."""

    and_set = concept.prerequisites_and or []
    or_set = concept.prerequisites_or or []
    if any(prerequisite not in completed for prerequisite in and_set):
        return False
    if or_set and not any(prerequisite in completed for prerequisite in or_set):
        return False
    return True


class CurriculumGraphService:
    """Per-user concept status over the language's curriculum graph."""

    def __init__(self, db: Session, user: User, catalog: ContentCatalog | None = None):
        self.db = db
        self.user = user
        self.user_id = user.id
        self.catalog = catalog or ContentCatalog(db)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def initialize_progress(self, language: str) -> List[str]:
        """Create missing ``locked`` rows, then unlock what is eligible."""
        language = normalize_language(language)
        return run_atomic(
            self.db,
            lambda: self.initialize_rows(language),
            label="curriculum.initialize",
        )

    def complete(self, concept_id: str, accuracy: Optional[float] = None) -> List[str]:
        """Mark *concept_id* completed and return the concepts it unlocked."""
        concept_id = normalize_identifier(concept_id, code="invalid_concept_id")
        if accuracy is not None and not 0 <= accuracy <= 100:
            raise InvalidInputError("invalid_accuracy")

        def _operation() -> List[str]:
            concept = self.catalog.get_concept(concept_id)
            progress = self._lock_progress_rows(concept.language).get(concept_id)
            if progress is None:
                raise NotFoundError("concept_progress_not_found")

            now = self._utcnow()
            if progress.status != ConceptStatus.COMPLETED:
                progress.status = ConceptStatus.COMPLETED
                progress.completed_at = now
                if progress.started_at is None:
                    progress.started_at = now
            progress.progress_percentage = 100.0
            if accuracy is not None:
                progress.accuracy_percentage = float(accuracy)
            self.db.flush([progress])

            return self._propagate(concept.language, [(COMPLETED, concept_id)])

        unlocked = run_atomic(self.db, _operation, label="curriculum.complete")
        if unlocked:
            logger.info(
                "Concept %s terminé par l'utilisateur %s, débloqués: %s",
                concept_id,
                self.user_id,
                ", ".join(unlocked),
            )
        return unlocked

    def record_progress(self, concept_id: str, percentage: float) -> UserConceptProgress:
        """Move an unlocked concept to ``in_progress`` and store its percentage."""
        concept_id = normalize_identifier(concept_id, code="invalid_concept_id")
        if not 0 <= percentage < 100:
            raise InvalidInputError("invalid_progress_percentage")

        def _operation() -> UserConceptProgress:
            self.catalog.get_concept(concept_id)
            progress = self._find_progress(concept_id)
            if progress is None:
                raise NotFoundError("concept_progress_not_found")
            if progress.status == ConceptStatus.LOCKED:
                raise InvalidInputError("concept_locked")
            if progress.status == ConceptStatus.COMPLETED:
                return progress

            if progress.status == ConceptStatus.UNLOCKED:
                progress.status = ConceptStatus.IN_PROGRESS
                progress.started_at = self._utcnow()
            progress.progress_percentage = float(percentage)
            self.db.flush([progress])
            return progress

        return run_atomic(self.db, _operation, label="curriculum.record_progress")

    def refresh_unlocks(self, language: str) -> List[str]:
        """Re-evaluate every locked concept; a stable graph unlocks nothing."""
        language = normalize_language(language)

        def _operation() -> List[str]:
            seeds = [
                (EVALUATE, concept.concept_id)
                for concept in self.catalog.concepts_for_language(language)
            ]
            return self._propagate(language, seeds)

        return run_atomic(self.db, _operation, label="curriculum.refresh")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def next_concept(self, language: str) -> Optional[CurriculumConcept]:
        available = self.available_concepts(language)
        return available[0] if available else None

    def available_concepts(self, language: str) -> List[CurriculumConcept]:
        language = normalize_language(language)
        statuses = self._status_map(language)
        return [
            concept
            for concept in self.catalog.concepts_for_language(language)
            if statuses.get(concept.concept_id) == ConceptStatus.UNLOCKED
        ]

    def graph(self, language: str) -> dict:
        """Nodes annotated with the user's status, and typed prerequisite edges."""
        language = normalize_language(language)
        concepts = self.catalog.concepts_for_language(language)
        statuses = self._status_map(language)

        nodes = []
        edges = []
        for concept in concepts:
            nodes.append(
                {
                    "concept_id": concept.concept_id,
                    "title": concept.title,
                    "level": concept.level,
                    "concept_type": concept.concept_type,
                    "priority_order": concept.priority_order,
                    "is_optional": bool(concept.is_optional),
                    "status": statuses.get(concept.concept_id, ConceptStatus.LOCKED),
                }
            )
            for prerequisite in concept.prerequisites_and or []:
                edges.append({"source": prerequisite, "target": concept.concept_id, "type": "and"})
            for prerequisite in concept.prerequisites_or or []:
                edges.append({"source": prerequisite, "target": concept.concept_id, "type": "or"})

        return {"nodes": nodes, "edges": edges}

    def stats(self, language: str) -> dict:
        language = normalize_language(language)
        concepts = self.catalog.concepts_for_language(language)
        rows = {row.concept_id: row for row in self._progress_query(language).all()}

        counts = {status.value: 0 for status in ConceptStatus}
        accuracies: List[float] = []
        for concept in concepts:
            row = rows.get(concept.concept_id)
            status = row.status if row else ConceptStatus.LOCKED
            counts[ConceptStatus(status).value] += 1
            if row and status == ConceptStatus.COMPLETED and row.accuracy_percentage is not None:
                accuracies.append(row.accuracy_percentage)

        total = len(concepts)
        completed = counts[ConceptStatus.COMPLETED.value]
        return {
            **counts,
            "total": total,
            "completion_percentage": round(completed * 100 / total, 1) if total else 0.0,
            "average_accuracy": round(sum(accuracies) / len(accuracies), 1) if accuracies else None,
        }

    def topological_order(self, language: str) -> List[str]:
        """Kahn ordering of the language's concepts; raises on a cycle."""
        language = normalize_language(language)
        concepts = self.catalog.concepts_for_language(language)
        known_ids = {concept.concept_id for concept in concepts}

        in_degree: Dict[str, int] = {concept.concept_id: 0 for concept in concepts}
        dependents: Dict[str, List[str]] = {concept.concept_id: [] for concept in concepts}
        for concept in concepts:
            for prerequisite in self._prerequisites(concept):
                if prerequisite in known_ids:
                    in_degree[concept.concept_id] += 1
                    dependents[prerequisite].append(concept.concept_id)

        queue: Deque[str] = deque(
            concept.concept_id for concept in concepts if in_degree[concept.concept_id] == 0
        )
        ordered: List[str] = []
        while queue:
            current = queue.popleft()
            ordered.append(current)
            for dependent in dependents[current]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    queue.append(dependent)

        if len(ordered) != len(concepts):
            raise InvalidInputError("circular_dependency")
        return ordered

    # ------------------------------------------------------------------
    # Helpers shared with the language profile (no commit)
    # ------------------------------------------------------------------
    def initialize_rows(self, language: str) -> List[str]:
        concepts = self.catalog.concepts_for_language(language)
        existing = {row.concept_id for row in self._progress_query(language).all()}
        for concept in concepts:
            if concept.concept_id in existing:
                continue
            self.db.add(
                UserConceptProgress(
                    user_id=self.user_id,
                    concept_id=concept.concept_id,
                    language=language,
                    status=ConceptStatus.LOCKED,
                    progress_percentage=0.0,
                )
            )
        self.db.flush()
        return self._propagate(
            language, [(EVALUATE, concept.concept_id) for concept in concepts]
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _propagate(self, language: str, seeds: Iterable[Tuple[str, str]]) -> List[str]:
        """Drain the worklist until no locked concept becomes eligible."""

        concepts = {concept.concept_id: concept for concept in self.catalog.concepts_for_language(language)}
        rows = self._lock_progress_rows(language)
        completed = {
            concept_id
            for concept_id, row in rows.items()
            if row.status == ConceptStatus.COMPLETED
        }

        worklist: Deque[Tuple[str, str]] = deque(seeds)
        queued: Set[Tuple[str, str]] = set(worklist)
        unlocked: List[str] = []

        while worklist:
            kind, concept_id = worklist.popleft()
            queued.discard((kind, concept_id))

            if kind == COMPLETED:
                for dependent in self.catalog.dependents_of(concept_id, language):
                    entry = (EVALUATE, dependent.concept_id)
                    if entry not in queued:
                        worklist.append(entry)
                        queued.add(entry)
                continue

            concept = concepts.get(concept_id)
            row = rows.get(concept_id)
            if concept is None or row is None or row.status != ConceptStatus.LOCKED:
                continue
            if not is_eligible(concept, completed):
                continue

            row.status = ConceptStatus.UNLOCKED
            unlocked.append(concept_id)

        if unlocked:
            self.db.flush()
        return unlocked

    def _progress_query(self, language: str):
        return self.db.query(UserConceptProgress).filter(
            UserConceptProgress.user_id == self.user_id,
            UserConceptProgress.language == language,
        )

    def _lock_progress_rows(self, language: str) -> Dict[str, UserConceptProgress]:
        # verrou sur toutes les lignes de la langue, relues depuis la base :
        # une complétion concurrente attend la première et voit son résultat
        rows = (
            self._progress_query(language)
            .order_by(UserConceptProgress.id.asc())
            .with_for_update()
            .populate_existing()
            .all()
        )
        return {row.concept_id: row for row in rows}

    def _find_progress(self, concept_id: str) -> Optional[UserConceptProgress]:
        return (
            self.db.query(UserConceptProgress)
            .filter_by(user_id=self.user_id, concept_id=concept_id)
            .first()
        )

    def _status_map(self, language: str) -> Dict[str, ConceptStatus]:
        return {row.concept_id: row.status for row in self._progress_query(language).all()}

    @staticmethod
    def _prerequisites(concept: CurriculumConcept) -> List[str]:
        return list(concept.prerequisites_and or []) + list(concept.prerequisites_or or [])

    @staticmethod
    def _utcnow() -> datetime:
        return utcnow()


__all__ = ["CurriculumGraphService", "is_eligible"]
