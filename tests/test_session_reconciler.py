from datetime import date

import pytest

from studiodesk.domain.reconciliation.schemas import SessionOutcome
from studiodesk.domain.reconciliation.sessions import SessionReconciler
from studiodesk.errors import ValidationError
from studiodesk.models import ProjectSession, generate_id

from .conftest import count_sessions


def test_first_reconcile_creates_pending_session(db, project, appointment):
    outcome = SessionOutcome(feedback="Healed well", rating=5, amount=450.0, date=date(2026, 10, 20))

    session_id = SessionReconciler(db).reconcile_session(appointment.id, project.id, outcome)

    session = db.query(ProjectSession).filter(ProjectSession.id == session_id).one()
    assert session.sequence_number == 1
    assert session.payment_status == "pending"
    assert session.appointment_id == appointment.id
    assert session.feedback == "Healed well"
    assert session.rating == 5
    assert session.amount == 450.0


def test_reconcile_is_idempotent(db, project, appointment):
    reconciler = SessionReconciler(db)
    first = reconciler.reconcile_session(appointment.id, project.id, SessionOutcome(feedback="a"))
    second = reconciler.reconcile_session(
        appointment.id, project.id, SessionOutcome(feedback="b", technical_notes="3RL needle")
    )

    assert first == second
    assert count_sessions(db, project_id=project.id, appointment_id=appointment.id) == 1

    db.expire_all()
    session = db.query(ProjectSession).filter(ProjectSession.id == first).one()
    assert session.feedback == "b"
    assert session.technical_notes == "3RL needle"
    assert session.sequence_number == 1


def test_sequence_follows_existing_sessions(db, project, appointment):
    for number in (1, 2):
        db.add(
            ProjectSession(
                project_id=project.id, sequence_number=number, payment_status="paid"
            )
        )
    db.commit()

    session_id = SessionReconciler(db).reconcile_session(
        appointment.id, project.id, SessionOutcome()
    )

    session = db.query(ProjectSession).filter(ProjectSession.id == session_id).one()
    assert session.sequence_number == 3


def test_local_appointment_gets_unlinked_session(db, project):
    reconciler = SessionReconciler(db)
    reconciler.reconcile_session("1718900000000", project.id, SessionOutcome())
    reconciler.reconcile_session("1718900000000", project.id, SessionOutcome())

    assert count_sessions(db, project_id=project.id, appointment_id=None) == 2


def test_missing_project_is_rejected(db):
    with pytest.raises(ValidationError) as exc_info:
        SessionReconciler(db).reconcile_session(generate_id(), "", SessionOutcome())
    assert exc_info.value.stage == "session"


def test_outcome_blank_notes_become_none():
    outcome = SessionOutcome(feedback="   ", technical_notes=" lining done ")
    assert outcome.feedback is None
    assert outcome.technical_notes == "lining done"


def test_outcome_rating_bounds():
    with pytest.raises(ValueError):
        SessionOutcome(rating=6)
