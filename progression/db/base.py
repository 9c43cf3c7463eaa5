"""Déclare l'ensemble des modèles SQLAlchemy pour la création des tables."""

from progression.db.base_class import Base

# Utilisateurs et profil linguistique
from progression.models.user.user_model import User, UserRole
from progression.models.user.user_language_model import UserLanguage

# Catalogue de contenu
from progression.models.catalog.vocabulary_model import UsageExample, VocabularyItem
from progression.models.catalog.curriculum_concept_model import ConceptType, CurriculumConcept

# Progression
from progression.models.progress.user_word_state_model import UserWordState, WordStateValue
from progression.models.progress.user_srs_item_model import SRSReviewLog, UserSRSItem
from progression.models.progress.user_concept_progress_model import ConceptStatus, UserConceptProgress
from progression.models.progress.orthography_gate_model import GateStatus, OrthographyGateProgress
from progression.models.progress.proficiency_snapshot_model import ProficiencySnapshot

__all__ = [
    "Base",
    "ConceptStatus",
    "ConceptType",
    "CurriculumConcept",
    "GateStatus",
    "OrthographyGateProgress",
    "ProficiencySnapshot",
    "SRSReviewLog",
    "UsageExample",
    "User",
    "UserConceptProgress",
    "UserLanguage",
    "UserRole",
    "UserSRSItem",
    "UserWordState",
    "VocabularyItem",
    "WordStateValue",
]
