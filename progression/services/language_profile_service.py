"""Languages a learner studies, and the per-language state tied to them."""

from __future__ import annotations

import logging
from typing import List

from sqlalchemy.orm import Session

from progression.core.exceptions import InvalidInputError, NotFoundError
from progression.db.transactions import run_atomic
from progression.models.user.user_language_model import UserLanguage
from progression.models.user.user_model import User
from progression.services.catalog_service import ContentCatalog
from progression.services.curriculum_graph_service import CurriculumGraphService
from progression.services.orthography_gate_service import OrthographyGateService
from progression.utils.lang_utils import normalize_language

logger = logging.getLogger(__name__)


class LanguageProfileService:
    def __init__(self, db: Session, user: User, catalog: ContentCatalog | None = None):
        self.db = db
        self.user = user
        self.user_id = user.id
        self.catalog = catalog or ContentCatalog(db)

    def studied_languages(self) -> List[str]:
        rows = (
            self.db.query(UserLanguage.language)
            .filter(UserLanguage.user_id == self.user_id)
            .order_by(UserLanguage.language.asc())
            .all()
        )
        return [language for (language,) in rows]

    def is_studying(self, language: str) -> bool:
        return normalize_language(language) in self.studied_languages()

    def require_language(self, language: str) -> str:
        language = normalize_language(language)
        if language not in self.studied_languages():
            raise NotFoundError("language_not_studied")
        return language

    def add_language(self, language: str) -> UserLanguage:
        """Start studying *language*: locked gate and initial concept statuses."""
        language = normalize_language(language)

        def _operation() -> UserLanguage:
            existing = (
                self.db.query(UserLanguage)
                .filter_by(user_id=self.user_id, language=language)
                .first()
            )
            if existing is not None:
                raise InvalidInputError("language_already_studied")

            entry = UserLanguage(user_id=self.user_id, language=language)
            self.db.add(entry)
            self.db.flush([entry])

            OrthographyGateService(self.db, self.user).ensure_row(language)
            CurriculumGraphService(self.db, self.user, catalog=self.catalog).initialize_rows(language)
            return entry

        entry = run_atomic(self.db, _operation, label="languages.add")
        logger.info("Langue %s ajoutée pour l'utilisateur %s.", language, self.user_id)
        return entry

    def remove_language(self, language: str) -> None:
        """Stop studying *language*; its gate is discarded, other progress kept."""
        language = normalize_language(language)

        def _operation() -> None:
            entry = (
                self.db.query(UserLanguage)
                .filter_by(user_id=self.user_id, language=language)
                .first()
            )
            if entry is None:
                raise NotFoundError("language_not_studied")
            OrthographyGateService(self.db, self.user).discard_rows(language)
            self.db.delete(entry)
            self.db.flush()

        run_atomic(self.db, _operation, label="languages.remove")
        logger.info("Langue %s retirée pour l'utilisateur %s.", language, self.user_id)


__all__ = ["LanguageProfileService"]
