from datetime import datetime

import pytest

from progression.core.exceptions import InvalidInputError
from progression.core.levels import ProficiencyLevel
from progression.models.progress.user_word_state_model import WordStateValue
from progression.services.vocabulary_sequencing_service import VocabularySequencingService
from progression.services.word_state_service import KnowledgeStateService

from tests.utils import create_user, create_vocabulary_item, create_vocabulary_items, set_word_state


def test_batch_orders_by_level_then_age(db_session):
    user = create_user(db_session)
    create_vocabulary_item(db_session, "es-b1-old", level=ProficiencyLevel.B1, created_at=datetime(2023, 1, 1))
    create_vocabulary_item(db_session, "es-a1-new", level=ProficiencyLevel.A1, created_at=datetime(2024, 2, 1))
    create_vocabulary_item(db_session, "es-a1-old", level=ProficiencyLevel.A1, created_at=datetime(2024, 1, 1))
    create_vocabulary_item(db_session, "es-a0", level=ProficiencyLevel.A0, created_at=datetime(2024, 3, 1))

    batch = VocabularySequencingService(db_session, user).next_batch("es", batch_size=10)

    assert [candidate.item_id for candidate in batch] == ["es-a0", "es-a1-old", "es-a1-new", "es-b1-old"]
    assert batch[0].level == ProficiencyLevel.A0
    assert batch[0].example_count == 1


def test_batch_skips_introduced_items_and_items_without_examples(db_session):
    user = create_user(db_session)
    create_vocabulary_item(db_session, "es-fresh")
    create_vocabulary_item(db_session, "es-bare", examples=0)
    learning = create_vocabulary_item(db_session, "es-learning")
    set_word_state(db_session, user, learning, WordStateValue.LEARNING)
    create_vocabulary_item(db_session, "es-seen")
    KnowledgeStateService(db_session, user).introduce(["es-seen"])
    create_vocabulary_item(db_session, "fr-autre", language="fr")

    batch = VocabularySequencingService(db_session, user).next_batch("es")

    assert [candidate.item_id for candidate in batch] == ["es-fresh"]


def test_batch_respects_level_ceiling_and_size(db_session):
    user = create_user(db_session)
    create_vocabulary_items(db_session, "es-a0", 4, level=ProficiencyLevel.A0)
    create_vocabulary_items(db_session, "es-b2", 2, level=ProficiencyLevel.B2)
    service = VocabularySequencingService(db_session, user)

    batch = service.next_batch("es", max_level="A2", batch_size=3)

    assert len(batch) == 3
    assert all(candidate.level == ProficiencyLevel.A0 for candidate in batch)


@pytest.mark.parametrize("batch_size", [0, 51])
def test_batch_size_out_of_bounds_is_rejected(db_session, batch_size):
    user = create_user(db_session)

    with pytest.raises(InvalidInputError) as exc_info:
        VocabularySequencingService(db_session, user).next_batch("es", batch_size=batch_size)
    assert exc_info.value.code == "invalid_batch_size"


def test_introduction_stats_counts_remaining_items_per_level(db_session):
    user = create_user(db_session)
    create_vocabulary_items(db_session, "es-a0", 3, level=ProficiencyLevel.A0)
    create_vocabulary_items(db_session, "es-a1", 2, level=ProficiencyLevel.A1)
    create_vocabulary_items(db_session, "es-b1", 2, level=ProficiencyLevel.B1)
    KnowledgeStateService(db_session, user).introduce(["es-a0-00"])

    stats = VocabularySequencingService(db_session, user).introduction_stats("es", max_level="A2")

    assert stats == {
        "total_available": 4,
        "by_level": {"A0": 2, "A1": 2, "A2": 0},
    }
