from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from studiodesk.auth import get_acting_user_id
from studiodesk.database import Base, get_db
from studiodesk.domain.appointments.service import AppointmentService
from studiodesk.main import app
from studiodesk.models import Appointment, Client, Project, ProjectSession, Transaction

OWNER = "owner-uid-a"
OTHER_USER = "owner-uid-b"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    yield session
    session.close()


@pytest.fixture
def client_record(db):
    client = Client(owner_user_id=OWNER, name="Ana Costa", email="ana@example.com")
    db.add(client)
    db.commit()
    return client


@pytest.fixture
def project(db, client_record):
    project = Project(
        owner_user_id=OWNER,
        client_id=client_record.id,
        title="Botanical sleeve",
        planned_session_count=1,
        status="planning",
        total_value=900.0,
    )
    db.add(project)
    db.commit()
    return project


@pytest.fixture
def appointment(db, project):
    appointment = Appointment(
        owner_user_id=OWNER,
        project_id=project.id,
        client_id=project.client_id,
        client_name="Ana Costa",
        title="Fine line session",
        date=date(2026, 10, 20),
        start_time="10:00",
        end_time="12:00",
        status="scheduled",
        estimated_value=450.0,
    )
    db.add(appointment)
    db.commit()
    return appointment


@pytest.fixture
def board(db, appointment):
    return AppointmentService(db).load_board(OWNER)


def count_sessions(db, **filters) -> int:
    return db.query(ProjectSession).filter_by(**filters).count()


def count_transactions(db, **filters) -> int:
    return db.query(Transaction).filter_by(**filters).count()


def stored_status(db, model, record_id) -> str:
    db.expire_all()
    return db.query(model).filter(model.id == record_id).one().status


@pytest.fixture
def acting_user():
    return {"id": OWNER}


@pytest.fixture
def api(db, acting_user):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_acting_user_id] = lambda: acting_user["id"]
    yield TestClient(app)
    app.dependency_overrides.clear()
