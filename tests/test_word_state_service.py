from datetime import datetime

import pytest

from progression.core.exceptions import InvalidInputError, NotFoundError
from progression.models.progress.user_word_state_model import UserWordState, WordStateValue
from progression.services.word_state_service import KnowledgeStateService

from tests.utils import create_user, create_vocabulary_item, set_word_state

NOW = datetime(2024, 5, 10, 8, 30)


def _service(db_session, user):
    service = KnowledgeStateService(db_session, user)
    service._utcnow = lambda: NOW
    return service


def test_first_review_moves_unknown_item_to_learning(db_session):
    user = create_user(db_session)
    create_vocabulary_item(db_session, "es-casa")
    service = _service(db_session, user)

    outcome = service.record_review("es-casa", was_successful=False)

    assert outcome.previous_state == WordStateValue.UNKNOWN
    assert outcome.state_changed is True
    state = outcome.state
    assert state.state == WordStateValue.LEARNING
    assert state.successful_reviews == 0
    assert state.total_reviews == 1
    assert state.first_seen_at == NOW
    assert state.marked_learning_at == NOW
    assert state.last_reviewed_at == NOW


def test_fifth_success_marks_item_known(db_session):
    user = create_user(db_session)
    create_vocabulary_item(db_session, "es-perro")
    service = _service(db_session, user)

    for _ in range(4):
        outcome = service.record_review("es-perro", was_successful=True)
        assert outcome.state.state == WordStateValue.LEARNING
    service.record_review("es-perro", was_successful=False)

    outcome = service.record_review("es-perro", was_successful=True)

    assert outcome.previous_state == WordStateValue.LEARNING
    assert outcome.state.state == WordStateValue.KNOWN
    assert outcome.state.successful_reviews == 5
    assert outcome.state.total_reviews == 6
    assert outcome.state.marked_known_at == NOW


def test_reviews_on_known_item_only_update_counters(db_session):
    user = create_user(db_session)
    item = create_vocabulary_item(db_session, "es-gato")
    set_word_state(db_session, user, item, WordStateValue.KNOWN)
    service = _service(db_session, user)

    outcome = service.record_review("es-gato", was_successful=False)

    assert outcome.state_changed is False
    assert outcome.state.state == WordStateValue.KNOWN
    assert outcome.state.total_reviews == 6
    assert outcome.state.successful_reviews == 5


def test_reset_sends_known_item_back_to_learning(db_session):
    user = create_user(db_session)
    item = create_vocabulary_item(db_session, "es-libro")
    set_word_state(db_session, user, item, WordStateValue.KNOWN)
    service = _service(db_session, user)

    state = service.reset("ES-LIBRO")

    assert state.state == WordStateValue.LEARNING
    assert state.successful_reviews == 0
    assert state.total_reviews == 5
    assert state.marked_known_at is None
    assert state.marked_learning_at == NOW


def test_reset_without_row_is_not_found(db_session):
    user = create_user(db_session)
    create_vocabulary_item(db_session, "es-mesa")

    with pytest.raises(NotFoundError) as exc_info:
        _service(db_session, user).reset("es-mesa")
    assert exc_info.value.code == "word_state_not_found"


def test_review_of_unknown_catalog_item_is_not_found(db_session):
    user = create_user(db_session)

    with pytest.raises(NotFoundError) as exc_info:
        _service(db_session, user).record_review("es-nada", was_successful=True)
    assert exc_info.value.code == "item_not_found"
    assert db_session.query(UserWordState).count() == 0


def test_malformed_item_id_is_rejected(db_session):
    user = create_user(db_session)

    with pytest.raises(InvalidInputError) as exc_info:
        _service(db_session, user).get_state("  ")
    assert exc_info.value.code == "invalid_item_id"


def test_get_state_creates_unknown_row_once(db_session):
    user = create_user(db_session)
    create_vocabulary_item(db_session, "es-agua")
    service = _service(db_session, user)

    first = service.get_state("es-agua")
    second = service.get_state("es-agua")

    assert first.id == second.id
    assert first.state == WordStateValue.UNKNOWN
    assert first.first_seen_at is None
    assert db_session.query(UserWordState).count() == 1


def test_introduce_reports_one_outcome_per_identifier(db_session):
    user = create_user(db_session)
    create_vocabulary_item(db_session, "es-sol")
    create_vocabulary_item(db_session, "es-luna")
    reviewed = create_vocabulary_item(db_session, "es-mar")
    set_word_state(db_session, user, reviewed, WordStateValue.LEARNING)
    service = _service(db_session, user)

    result = service.introduce(["es-sol", "ES-SOL", "es-luna", "es-mar", "es-nube", "no spaces!"])

    assert result.marked_count == 2
    assert result.outcomes == {
        "es-sol": KnowledgeStateService.OUTCOME_INTRODUCED,
        "es-luna": KnowledgeStateService.OUTCOME_INTRODUCED,
        "es-mar": KnowledgeStateService.OUTCOME_ALREADY_INTRODUCED,
        "es-nube": KnowledgeStateService.OUTCOME_NOT_FOUND,
        "no spaces!": KnowledgeStateService.OUTCOME_INVALID,
    }
    sol = db_session.query(UserWordState).filter_by(item_id="es-sol").one()
    assert sol.state == WordStateValue.UNKNOWN
    assert sol.first_seen_at == NOW

    again = service.introduce(["es-sol"])
    assert again.marked_count == 0
    assert again.outcomes == {"es-sol": KnowledgeStateService.OUTCOME_ALREADY_INTRODUCED}


def test_introduce_with_empty_list_writes_nothing(db_session):
    user = create_user(db_session)

    result = _service(db_session, user).introduce([])

    assert result.marked_count == 0
    assert result.outcomes == {}
    assert db_session.query(UserWordState).count() == 0


def test_state_stats_and_listing_by_state(db_session):
    user = create_user(db_session)
    other = create_user(db_session)
    known = create_vocabulary_item(db_session, "es-uno")
    learning = create_vocabulary_item(db_session, "es-dos")
    create_vocabulary_item(db_session, "es-tres")
    french = create_vocabulary_item(db_session, "fr-un", language="fr")
    set_word_state(db_session, user, known, WordStateValue.KNOWN)
    set_word_state(db_session, user, learning, WordStateValue.LEARNING)
    set_word_state(db_session, user, french, WordStateValue.LEARNING)
    set_word_state(db_session, other, known, WordStateValue.LEARNING)
    service = _service(db_session, user)

    assert service.state_stats("ES") == {"unknown": 0, "learning": 1, "known": 1, "total": 2}

    rows = service.words_by_state("es", WordStateValue.LEARNING)
    assert [row.item_id for row in rows] == ["es-dos"]
