import importlib.util
from pathlib import Path

import pytest
from sqlalchemy.exc import IntegrityError

from studiodesk.models import ProjectSession, Transaction

from .conftest import OWNER

MIGRATION_PATH = (
    Path(__file__).resolve().parent.parent / "migrations" / "add_reconciliation_unique_indexes.py"
)


@pytest.fixture
def migration(engine, monkeypatch):
    spec = importlib.util.spec_from_file_location("add_reconciliation_unique_indexes", MIGRATION_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    monkeypatch.setattr(module, "engine", engine)
    return module


def test_upgrade_enforces_one_entry_per_appointment(db, appointment, migration):
    assert migration.upgrade() is True
    assert migration.upgrade() is True

    db.add(Transaction(owner_user_id=OWNER, type="revenue", amount=1.0, appointment_id=appointment.id))
    db.commit()
    db.add(Transaction(owner_user_id=OWNER, type="revenue", amount=2.0, appointment_id=appointment.id))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_upgrade_stops_on_duplicates(db, project, appointment, migration):
    for number in (1, 2):
        db.add(
            ProjectSession(
                project_id=project.id, appointment_id=appointment.id, sequence_number=number
            )
        )
    db.commit()

    assert migration.upgrade() is False
    assert "sessions" in migration.find_duplicates(db.connection())


def test_downgrade_drops_indexes(db, appointment, migration):
    migration.upgrade()
    migration.downgrade()

    for amount in (1.0, 2.0):
        db.add(
            Transaction(owner_user_id=OWNER, type="revenue", amount=amount, appointment_id=appointment.id)
        )
    db.commit()
    assert db.query(Transaction).count() == 2
