import pytest

from studiodesk.domain.projects.repository import ProjectRepository
from studiodesk.domain.reconciliation.project_status import (
    ProjectStatusAggregator,
    derive_project_status,
)
from studiodesk.errors import NotFoundError, PersistenceError
from studiodesk.models import Project, ProjectSession, generate_id

from .conftest import stored_status


@pytest.mark.parametrize(
    "completed,expected",
    [(0, "planning"), (1, "in_progress"), (3, "in_progress"), (4, "completed"), (5, "completed")],
)
def test_derivation_against_four_planned(completed, expected):
    assert derive_project_status(completed, 4) == expected


def test_no_planned_count_derives_nothing():
    assert derive_project_status(3, 0) is None
    assert derive_project_status(3, None) is None


@pytest.mark.parametrize(
    "completed,expected",
    [(0, "planning"), (1, "in_progress"), (4, "completed"), (5, "completed")],
)
def test_recompute_persists_derived_status(db, project, completed, expected):
    project.planned_session_count = 4
    db.commit()

    status = ProjectStatusAggregator(db).recompute_project_status(project.id, completed, 4)

    assert status == expected
    assert stored_status(db, Project, project.id) == expected


def test_zero_planned_leaves_status(db, project):
    project.status = "in_progress"
    project.planned_session_count = 0
    db.commit()

    status = ProjectStatusAggregator(db).recompute_project_status(project.id, 2, 0)

    assert status == "in_progress"
    assert stored_status(db, Project, project.id) == "in_progress"


def test_paused_project_is_preserved(db, project):
    project.status = "paused"
    db.commit()

    status = ProjectStatusAggregator(db, preserve_manual_status=True).recompute_project_status(
        project.id, 1, 1
    )

    assert status == "paused"
    assert stored_status(db, Project, project.id) == "paused"


def test_paused_project_is_overwritten_when_configured(db, project):
    project.status = "paused"
    db.commit()

    status = ProjectStatusAggregator(db, preserve_manual_status=False).recompute_project_status(
        project.id, 1, 1
    )

    assert status == "completed"
    assert stored_status(db, Project, project.id) == "completed"


def test_unchanged_status_is_not_rewritten(db, project, monkeypatch):
    calls = []
    monkeypatch.setattr(
        ProjectRepository,
        "update_status",
        staticmethod(lambda db, project_id, status: calls.append(status) or 1),
    )

    status = ProjectStatusAggregator(db).recompute_project_status(project.id, 0, 1)

    assert status == "planning"
    assert calls == []


def test_recompute_from_store_ignores_cancelled_sessions(db, project):
    project.planned_session_count = 2
    db.add_all(
        [
            ProjectSession(project_id=project.id, sequence_number=1, payment_status="paid"),
            ProjectSession(project_id=project.id, sequence_number=2, payment_status="cancelled"),
        ]
    )
    db.commit()

    assert ProjectStatusAggregator(db).recompute_from_store(project.id) == "in_progress"


def test_missing_project(db):
    with pytest.raises(NotFoundError) as exc_info:
        ProjectStatusAggregator(db).recompute_project_status(generate_id(), 1, 1)
    assert exc_info.value.stage == "project_status"


def test_store_failure_is_tagged(db, project, monkeypatch):
    def rejected(db, project_id, status):
        raise PersistenceError("project status update failed")

    monkeypatch.setattr(ProjectRepository, "update_status", staticmethod(rejected))

    with pytest.raises(PersistenceError) as exc_info:
        ProjectStatusAggregator(db).recompute_project_status(project.id, 1, 1)
    assert exc_info.value.stage == "project_status"
