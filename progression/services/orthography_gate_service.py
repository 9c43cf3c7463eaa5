"""Foundational orthography gate: blocks content above A0 per language."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from progression.core.exceptions import ForbiddenError, NotFoundError
from progression.core.levels import ProficiencyLevel
from progression.db.transactions import run_atomic
from progression.models.progress.orthography_gate_model import GateStatus, OrthographyGateProgress
from progression.models.user.user_language_model import UserLanguage
from progression.models.user.user_model import User
from progression.utils.lang_utils import normalize_language
from progression.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


class OrthographyGateService:
    """``locked -> unlocked -> completed``; a gate never moves backwards."""

    def __init__(self, db: Session, user: User):
        self.db = db
        self.user = user
        self.user_id = user.id

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def get_progress(self, language: str) -> OrthographyGateProgress:
        language = normalize_language(language)

        def _operation() -> OrthographyGateProgress:
            self._require_language(self.user_id, language)
            return self.ensure_row(language)

        return run_atomic(self.db, _operation, label="gate.get_progress")

    def all_progress(self) -> List[OrthographyGateProgress]:
        """Gate rows for every studied language, alphabetical."""

        def _operation() -> List[OrthographyGateProgress]:
            return [self.ensure_row(language) for language in self._studied_languages(self.user_id)]

        return run_atomic(self.db, _operation, label="gate.all_progress")

    def unlock(self, language: str) -> OrthographyGateProgress:
        """``locked -> unlocked``; any other status is returned unchanged."""
        language = normalize_language(language)

        def _operation() -> OrthographyGateProgress:
            self._require_language(self.user_id, language)
            gate = self.ensure_row(language)
            if gate.status == GateStatus.LOCKED:
                gate.status = GateStatus.UNLOCKED
                gate.updated_at = self._utcnow()
                self.db.flush([gate])
            return gate

        return run_atomic(self.db, _operation, label="gate.unlock")

    def complete(self, language: str) -> OrthographyGateProgress:
        language = normalize_language(language)

        def _operation() -> OrthographyGateProgress:
            self._require_language(self.user_id, language)
            return self._mark_completed(self.user_id, language)

        return run_atomic(self.db, _operation, label="gate.complete")

    def bypass(self, target_user_id: int, language: str) -> OrthographyGateProgress:
        """Operator-only shortcut straight to ``completed``."""
        if not self.user.is_operator:
            raise ForbiddenError("operator_required")
        language = normalize_language(language)

        def _operation() -> OrthographyGateProgress:
            if self.db.get(User, target_user_id) is None:
                raise NotFoundError("user_not_found")
            self._require_language(target_user_id, language)
            return self._mark_completed(target_user_id, language)

        gate = run_atomic(self.db, _operation, label="gate.bypass")
        logger.info(
            "Porte d'orthographe %s contournée pour l'utilisateur %s par l'opérateur %s.",
            language,
            target_user_id,
            self.user_id,
        )
        return gate

    def can_access_level(self, language: str, level: ProficiencyLevel | str) -> bool:
        """A0 is always open; higher levels need a completed gate."""
        language = normalize_language(language)
        level = ProficiencyLevel.parse(level)
        if level == ProficiencyLevel.lowest():
            return True
        gate = self._find_row(self.user_id, language)
        return gate is not None and gate.status == GateStatus.COMPLETED

    # ------------------------------------------------------------------
    # Helpers shared with the language profile (no commit)
    # ------------------------------------------------------------------
    def ensure_row(self, language: str, user_id: Optional[int] = None) -> OrthographyGateProgress:
        owner_id = self.user_id if user_id is None else user_id
        gate = self._find_row(owner_id, language)
        if gate:
            return gate
        gate = OrthographyGateProgress(
            user_id=owner_id,
            language=language,
            status=GateStatus.LOCKED,
        )
        self.db.add(gate)
        self.db.flush([gate])
        return gate

    def discard_rows(self, language: str) -> int:
        return (
            self.db.query(OrthographyGateProgress)
            .filter_by(user_id=self.user_id, language=language)
            .delete(synchronize_session="fetch")
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _mark_completed(self, user_id: int, language: str) -> OrthographyGateProgress:
        gate = self.ensure_row(language, user_id=user_id)
        if gate.status != GateStatus.COMPLETED:
            now = self._utcnow()
            gate.status = GateStatus.COMPLETED
            gate.completed_at = now
            gate.updated_at = now
            self.db.flush([gate])
        return gate

    def _find_row(self, user_id: int, language: str) -> Optional[OrthographyGateProgress]:
        return (
            self.db.query(OrthographyGateProgress)
            .filter_by(user_id=user_id, language=language)
            .first()
        )

    def _studied_languages(self, user_id: int) -> List[str]:
        rows = (
            self.db.query(UserLanguage.language)
            .filter(UserLanguage.user_id == user_id)
            .order_by(UserLanguage.language.asc())
            .all()
        )
        return [language for (language,) in rows]

    def _require_language(self, user_id: int, language: str) -> None:
        if language not in self._studied_languages(user_id):
            raise NotFoundError("language_not_studied")

    @staticmethod
    def _utcnow() -> datetime:
        return utcnow()


__all__ = ["OrthographyGateService"]
