from datetime import datetime, timedelta

import pytest

from progression.core.exceptions import InvalidInputError, NotFoundError
from progression.models.progress.user_srs_item_model import SRSReviewLog, UserSRSItem
from progression.models.progress.user_word_state_model import WordStateValue
from progression.services.srs.srs_service import SRSService

from tests.utils import create_user, create_vocabulary_item, set_word_state

NOW = datetime(2024, 4, 2, 7, 0)


def _service(db_session, user):
    service = SRSService(db_session, user)
    service._utcnow = lambda: NOW
    return service


def _schedule(db_session, user, item, *, next_review_at, repetitions=0, stability_factor=2.5):
    row = UserSRSItem(
        user_id=user.id,
        item_id=item.id,
        language=item.language,
        interval_days=1,
        repetitions=repetitions,
        stability_factor=stability_factor,
        next_review_at=next_review_at,
    )
    db_session.add(row)
    db_session.commit()
    return row


def test_review_without_schedule_is_not_found(db_session):
    user = create_user(db_session)
    create_vocabulary_item(db_session, "es-casa")

    with pytest.raises(NotFoundError) as exc_info:
        _service(db_session, user).submit_review("es-casa", 4)
    assert exc_info.value.code == "srs_item_not_found"


def test_review_creates_schedule_on_demand_and_logs_it(db_session):
    user = create_user(db_session)
    item = create_vocabulary_item(db_session, "es-casa")
    set_word_state(db_session, user, item, WordStateValue.LEARNING)
    service = _service(db_session, user)

    update = service.submit_review("es-casa", 5, create_if_missing=True)

    assert update.interval == 1
    assert update.repetitions == 1
    assert update.stability_factor == pytest.approx(2.6)
    assert update.next_review_at == NOW + timedelta(days=1)

    schedule = service.get_schedule_item("es-casa")
    assert schedule.last_reviewed_at == NOW
    assert schedule.interval_days == 1

    history = service.review_history("es-casa")
    assert len(history) == 1
    log = history[0]
    assert log.quality == 5
    assert log.previous_interval == 0
    assert log.new_interval == 1
    assert log.previous_repetitions == 0
    assert log.new_repetitions == 1


def test_review_on_demand_requires_learning_state(db_session):
    user = create_user(db_session)
    item = create_vocabulary_item(db_session, "es-mesa")
    set_word_state(db_session, user, item, WordStateValue.KNOWN)
    create_vocabulary_item(db_session, "es-silla")
    service = _service(db_session, user)

    for item_id in ("es-mesa", "es-silla"):
        with pytest.raises(InvalidInputError) as exc_info:
            service.submit_review(item_id, 4, create_if_missing=True)
        assert exc_info.value.code == "item_not_learning"

    assert db_session.query(UserSRSItem).count() == 0
    assert db_session.query(SRSReviewLog).count() == 0


def test_failed_review_resets_progress_but_keeps_factor(db_session):
    user = create_user(db_session)
    item = create_vocabulary_item(db_session, "es-perro")
    schedule = _schedule(
        db_session, user, item, next_review_at=NOW, repetitions=3, stability_factor=2.2
    )
    schedule.interval_days = 15
    db_session.commit()

    update = _service(db_session, user).submit_review("es-perro", 2)

    assert update.repetitions == 0
    assert update.interval == 1
    assert update.stability_factor == pytest.approx(2.2)


def test_invalid_quality_writes_nothing(db_session):
    user = create_user(db_session)
    item = create_vocabulary_item(db_session, "es-gato")
    _schedule(db_session, user, item, next_review_at=NOW)

    with pytest.raises(InvalidInputError) as exc_info:
        _service(db_session, user).submit_review("es-gato", 7)
    assert exc_info.value.code == "invalid_quality"
    assert db_session.query(SRSReviewLog).count() == 0


def test_add_to_schedule_requires_learning_state(db_session):
    user = create_user(db_session)
    create_vocabulary_item(db_session, "es-sol")
    learning = create_vocabulary_item(db_session, "es-luna")
    set_word_state(db_session, user, learning, WordStateValue.LEARNING)
    service = _service(db_session, user)

    with pytest.raises(InvalidInputError) as exc_info:
        service.add_to_schedule("es-sol")
    assert exc_info.value.code == "item_not_learning"

    schedule = service.add_to_schedule("es-luna")
    assert schedule.repetitions == 0
    assert schedule.next_review_at == NOW
    assert service.add_to_schedule("es-luna").id == schedule.id


def test_due_items_lists_learning_items_oldest_first(db_session):
    user = create_user(db_session)
    fresh = create_vocabulary_item(db_session, "es-a")
    overdue = create_vocabulary_item(db_session, "es-b")
    later = create_vocabulary_item(db_session, "es-c")
    known = create_vocabulary_item(db_session, "es-d")
    french = create_vocabulary_item(db_session, "fr-e", language="fr")
    for item in (fresh, overdue, later, french):
        set_word_state(db_session, user, item, WordStateValue.LEARNING)
    set_word_state(db_session, user, known, WordStateValue.KNOWN)
    _schedule(db_session, user, overdue, next_review_at=NOW - timedelta(days=2), stability_factor=2.3)
    _schedule(db_session, user, later, next_review_at=NOW + timedelta(days=3))
    _schedule(db_session, user, known, next_review_at=NOW - timedelta(days=1))
    service = _service(db_session, user)

    due = service.due_items("es")

    assert [row.item_id for row in due.items] == ["es-b", "es-a"]
    assert due.total_due == 2
    assert due.items[1].item.text == "a"
    # Only the Spanish learning item without a schedule got one.
    assert db_session.query(UserSRSItem).filter_by(user_id=user.id).count() == 4

    limited = service.due_items("es", limit=1)
    assert [row.item_id for row in limited.items] == ["es-b"]
    assert limited.total_due == 2

    stats = service.stats("es")
    assert stats["total_items"] == 4
    assert stats["due_now"] == 2
    assert stats["due_this_week"] == 3
    assert stats["learned"] == 0
    assert stats["average_stability_factor"] == pytest.approx(2.45)


@pytest.mark.parametrize("limit", [0, 101])
def test_due_items_limit_bounds(db_session, limit):
    user = create_user(db_session)

    with pytest.raises(InvalidInputError) as exc_info:
        _service(db_session, user).due_items(limit=limit)
    assert exc_info.value.code == "invalid_limit"


def test_stats_without_schedule_use_default_factor(db_session):
    user = create_user(db_session)

    stats = _service(db_session, user).stats()

    assert stats == {
        "total_items": 0,
        "due_now": 0,
        "due_this_week": 0,
        "learned": 0,
        "average_stability_factor": 2.5,
    }
