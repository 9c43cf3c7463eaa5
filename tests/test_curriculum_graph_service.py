from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from progression.core.exceptions import InvalidInputError, NotFoundError
from progression.db.base import Base
from progression.models.progress.user_concept_progress_model import ConceptStatus, UserConceptProgress
from progression.models.user.user_model import User
from progression.services.curriculum_graph_service import CurriculumGraphService

from tests.utils import create_concept, create_user

NOW = datetime(2024, 6, 1, 10, 0)


def _build_graph(db_session):
    create_concept(db_session, "es-alphabet", priority_order=1)
    create_concept(db_session, "es-sounds", prerequisites_and=["es-alphabet"], priority_order=2)
    create_concept(
        db_session, "es-greetings", prerequisites_or=["es-alphabet", "es-sounds"], priority_order=3
    )
    create_concept(
        db_session,
        "es-verbs",
        prerequisites_and=["es-sounds"],
        prerequisites_or=["es-greetings", "es-numbers"],
        priority_order=4,
    )
    create_concept(db_session, "es-numbers", priority_order=5)


def _service(db_session, user):
    service = CurriculumGraphService(db_session, user)
    service._utcnow = lambda: NOW
    return service


def _status(db_session, user, concept_id):
    row = (
        db_session.query(UserConceptProgress)
        .filter_by(user_id=user.id, concept_id=concept_id)
        .one()
    )
    return row.status


def test_initialization_unlocks_concepts_without_prerequisites(db_session):
    user = create_user(db_session)
    _build_graph(db_session)
    service = _service(db_session, user)

    unlocked = service.initialize_progress("es")

    assert unlocked == ["es-alphabet", "es-numbers"]
    assert _status(db_session, user, "es-sounds") == ConceptStatus.LOCKED
    assert [concept.concept_id for concept in service.available_concepts("es")] == [
        "es-alphabet",
        "es-numbers",
    ]
    assert service.next_concept("es").concept_id == "es-alphabet"
    assert service.initialize_progress("es") == []


def test_completion_unlocks_dependents_through_and_or_sets(db_session):
    user = create_user(db_session)
    _build_graph(db_session)
    service = _service(db_session, user)
    service.initialize_progress("es")

    assert service.complete("es-alphabet", accuracy=90) == ["es-sounds", "es-greetings"]
    # verbs still waits for one of its OR prerequisites
    assert service.complete("es-sounds", accuracy=70) == []
    assert _status(db_session, user, "es-verbs") == ConceptStatus.LOCKED
    assert service.complete("ES-NUMBERS") == ["es-verbs"]


def test_completing_twice_keeps_first_completion_date(db_session):
    user = create_user(db_session)
    _build_graph(db_session)
    service = _service(db_session, user)
    service.initialize_progress("es")
    service.complete("es-alphabet")

    service._utcnow = lambda: datetime(2024, 7, 1)
    assert service.complete("es-alphabet", accuracy=55) == []

    row = db_session.query(UserConceptProgress).filter_by(concept_id="es-alphabet").one()
    assert row.completed_at == NOW
    assert row.accuracy_percentage == 55.0


def test_complete_validation_errors(db_session):
    user = create_user(db_session)
    _build_graph(db_session)
    service = _service(db_session, user)

    with pytest.raises(NotFoundError) as exc_info:
        service.complete("es-unknown")
    assert exc_info.value.code == "concept_not_found"

    with pytest.raises(NotFoundError) as exc_info:
        service.complete("es-alphabet")
    assert exc_info.value.code == "concept_progress_not_found"

    with pytest.raises(InvalidInputError) as exc_info:
        service.complete("es-alphabet", accuracy=120)
    assert exc_info.value.code == "invalid_accuracy"


def test_record_progress_moves_unlocked_concept_in_progress(db_session):
    user = create_user(db_session)
    _build_graph(db_session)
    service = _service(db_session, user)
    service.initialize_progress("es")

    with pytest.raises(InvalidInputError) as exc_info:
        service.record_progress("es-verbs", 20)
    assert exc_info.value.code == "concept_locked"

    with pytest.raises(InvalidInputError) as exc_info:
        service.record_progress("es-alphabet", 100)
    assert exc_info.value.code == "invalid_progress_percentage"

    progress = service.record_progress("es-alphabet", 40)
    assert progress.status == ConceptStatus.IN_PROGRESS
    assert progress.progress_percentage == 40.0
    assert progress.started_at == NOW
    assert [concept.concept_id for concept in service.available_concepts("es")] == ["es-numbers"]


def test_graph_and_stats_reflect_user_status(db_session):
    user = create_user(db_session)
    _build_graph(db_session)
    service = _service(db_session, user)
    service.initialize_progress("es")
    service.complete("es-alphabet", accuracy=90)
    service.complete("es-sounds", accuracy=70)

    graph = service.graph("es")
    statuses = {node["concept_id"]: node["status"] for node in graph["nodes"]}
    assert statuses == {
        "es-alphabet": ConceptStatus.COMPLETED,
        "es-sounds": ConceptStatus.COMPLETED,
        "es-greetings": ConceptStatus.UNLOCKED,
        "es-verbs": ConceptStatus.LOCKED,
        "es-numbers": ConceptStatus.UNLOCKED,
    }
    verbs_edges = sorted(
        (edge["source"], edge["type"]) for edge in graph["edges"] if edge["target"] == "es-verbs"
    )
    assert verbs_edges == [("es-greetings", "or"), ("es-numbers", "or"), ("es-sounds", "and")]

    stats = service.stats("es")
    assert stats["completed"] == 2
    assert stats["unlocked"] == 2
    assert stats["locked"] == 1
    assert stats["in_progress"] == 0
    assert stats["total"] == 5
    assert stats["completion_percentage"] == 40.0
    assert stats["average_accuracy"] == 80.0


def test_graph_reads_default_to_locked_without_progress_rows(db_session):
    user = create_user(db_session)
    _build_graph(db_session)

    graph = _service(db_session, user).graph("es")

    assert {node["status"] for node in graph["nodes"]} == {ConceptStatus.LOCKED}


def test_topological_order_respects_prerequisites(db_session):
    user = create_user(db_session)
    _build_graph(db_session)

    order = _service(db_session, user).topological_order("es")

    assert set(order) == {"es-alphabet", "es-sounds", "es-greetings", "es-verbs", "es-numbers"}
    assert order.index("es-alphabet") < order.index("es-sounds") < order.index("es-verbs")
    assert order.index("es-numbers") < order.index("es-verbs")


def test_topological_order_detects_cycles(db_session):
    user = create_user(db_session)
    create_concept(db_session, "fr-a", language="fr", prerequisites_and=["fr-b"])
    create_concept(db_session, "fr-b", language="fr", prerequisites_or=["fr-a"])

    with pytest.raises(InvalidInputError) as exc_info:
        _service(db_session, user).topological_order("fr")
    assert exc_info.value.code == "circular_dependency"


def test_refresh_unlocks_is_stable(db_session):
    user = create_user(db_session)
    _build_graph(db_session)
    service = _service(db_session, user)
    service.initialize_progress("es")

    assert service.refresh_unlocks("es") == []


def test_concurrent_completions_unlock_shared_dependent(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'graph.db'}", future=True)
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(bind=engine, future=True)

    setup = SessionLocal()
    user = create_user(setup)
    create_concept(setup, "es-a", priority_order=1)
    create_concept(setup, "es-b", priority_order=2)
    create_concept(setup, "es-d", prerequisites_and=["es-a", "es-b"], priority_order=3)
    assert _service(setup, user).initialize_progress("es") == ["es-a", "es-b"]
    user_id = user.id
    setup.close()

    first = SessionLocal()
    second = SessionLocal()
    try:
        first_service = _service(first, first.get(User, user_id))
        second_service = _service(second, second.get(User, user_id))

        # first holds es-b as unlocked before second completes it
        assert first_service.stats("es")["unlocked"] == 2

        assert second_service.complete("es-b") == []
        assert first_service.complete("es-a") == ["es-d"]
    finally:
        first.close()
        second.close()

    check = SessionLocal()
    try:
        row = check.query(UserConceptProgress).filter_by(user_id=user_id, concept_id="es-d").one()
        assert row.status == ConceptStatus.UNLOCKED
    finally:
        check.close()
        engine.dispose()
