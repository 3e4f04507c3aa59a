from datetime import date

import pytest

from studiodesk.domain.projects.schemas import ManualSessionCreate, SessionUpdate
from studiodesk.domain.projects.service import ProjectService
from studiodesk.errors import NotFoundError
from studiodesk.models import Project, ProjectSession

from .conftest import OTHER_USER, OWNER, stored_status


def test_register_past_session_recomputes(db, project):
    project.planned_session_count = 2
    db.commit()

    session, status = ProjectService(db).register_past_session(
        project.id, ManualSessionCreate(date=date(2026, 9, 1), amount=300.0), OWNER
    )

    assert session.sequence_number == 1
    assert session.appointment_id is None
    assert status == "in_progress"
    assert stored_status(db, Project, project.id) == "in_progress"


def test_register_on_foreign_project(db, project):
    with pytest.raises(NotFoundError):
        ProjectService(db).register_past_session(
            project.id, ManualSessionCreate(date=date(2026, 9, 1)), OTHER_USER
        )


def test_cancelling_session_recomputes(db, project):
    service = ProjectService(db)
    session, status = service.register_past_session(
        project.id, ManualSessionCreate(date=date(2026, 9, 1)), OWNER
    )
    assert status == "completed"

    updated, status = service.update_session(
        project.id, session.id, SessionUpdate(payment_status="cancelled"), OWNER
    )

    assert updated.payment_status == "cancelled"
    assert status == "planning"


def test_delete_session_recomputes(db, project):
    service = ProjectService(db)
    session, _ = service.register_past_session(
        project.id, ManualSessionCreate(date=date(2026, 9, 1)), OWNER
    )

    assert service.delete_session(project.id, session.id, OWNER) == "planning"
    assert db.query(ProjectSession).count() == 0


def test_session_from_other_project_is_not_found(db, project, client_record):
    other = Project(owner_user_id=OWNER, client_id=client_record.id, title="Other")
    db.add(other)
    db.commit()
    service = ProjectService(db)
    session, _ = service.register_past_session(
        other.id, ManualSessionCreate(date=date(2026, 9, 1)), OWNER
    )

    with pytest.raises(NotFoundError):
        service.delete_session(project.id, session.id, OWNER)


def test_summary_derives_paid_to_date(db, project):
    project.planned_session_count = 4
    db.add_all(
        [
            ProjectSession(project_id=project.id, sequence_number=1, amount=250.0, payment_status="paid"),
            ProjectSession(project_id=project.id, sequence_number=2, amount=200.0, payment_status="pending"),
            ProjectSession(project_id=project.id, sequence_number=3, amount=100.0, payment_status="cancelled"),
        ]
    )
    db.commit()

    summary = ProjectService(db).get_summary(project.id, OWNER)

    assert summary.paid_to_date == 250.0
    assert summary.remaining == 650.0
    assert summary.completed_count == 2
    assert summary.planned_count == 4
    assert summary.progress_percent == 50


def test_manual_recompute(db, project):
    db.add(ProjectSession(project_id=project.id, sequence_number=1, payment_status="pending"))
    db.commit()

    status, completed, planned = ProjectService(db).recompute_status(project.id, OWNER)

    assert (status, completed, planned) == ("completed", 1, 1)
