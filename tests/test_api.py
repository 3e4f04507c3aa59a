from studiodesk.domain.ledger.repository import TransactionRepository
from studiodesk.errors import PersistenceError
from studiodesk.models import Appointment, Project, generate_id

from .conftest import OTHER_USER, count_sessions, count_transactions, stored_status


def test_health(api):
    assert api.get("/health").json() == {"status": "ok"}


def test_list_appointments(api, appointment):
    response = api.get("/appointments")
    assert response.status_code == 200
    assert [a["id"] for a in response.json()] == [appointment.id]


def test_confirm_endpoint_commits(api, db, project, appointment):
    response = api.post(
        f"/appointments/{appointment.id}/confirm",
        json={"feedback": "Great", "rating": 5},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["state"] == "committed"
    assert body["appointment"]["status"] == "completed"
    assert body["transaction"]["action"] == "created"
    assert body["project_status"] == "completed"
    assert stored_status(db, Appointment, appointment.id) == "completed"
    assert stored_status(db, Project, project.id) == "completed"


def test_confirm_endpoint_forbidden(api, db, acting_user, appointment):
    acting_user["id"] = OTHER_USER

    response = api.post(f"/appointments/{appointment.id}/confirm", json={})

    assert response.status_code == 403
    body = response.json()
    assert body["state"] == "forbidden"
    assert body["error_stage"] == "appointment"
    assert body["appointment"]["status"] == "scheduled"
    assert stored_status(db, Appointment, appointment.id) == "scheduled"


def test_confirm_endpoint_rolled_back(api, db, appointment, monkeypatch):
    def rejected(db, **data):
        raise PersistenceError("transaction insert failed")

    monkeypatch.setattr(TransactionRepository, "insert_transaction", staticmethod(rejected))

    response = api.post(f"/appointments/{appointment.id}/confirm", json={})

    assert response.status_code == 500
    body = response.json()
    assert body["state"] == "rolled_back"
    assert body["error_stage"] == "ledger"
    assert body["appointment"]["status"] == "scheduled"


def test_confirm_unknown_appointment(api, appointment):
    response = api.post(f"/appointments/{generate_id()}/confirm", json={})
    assert response.status_code == 404


def test_confirm_rejects_bad_rating(api, appointment):
    response = api.post(f"/appointments/{appointment.id}/confirm", json={"rating": 9})
    assert response.status_code == 422


def test_status_and_move_endpoints(api, db, appointment):
    response = api.post(f"/appointments/{appointment.id}/status", json={"status": "confirmed"})
    assert response.status_code == 200
    assert response.json()["applied"] is True

    response = api.post(f"/appointments/{appointment.id}/move", json={"date": "2026-10-30"})
    assert response.status_code == 200
    assert response.json()["appointment"]["date"] == "2026-10-30"


def test_status_endpoint_forbidden(api, acting_user, appointment):
    acting_user["id"] = OTHER_USER

    response = api.post(f"/appointments/{appointment.id}/status", json={"status": "cancelled"})

    assert response.status_code == 403
    assert response.json()["forbidden"] is True


def test_create_and_delete_endpoints(api, db, project):
    response = api.post(
        "/appointments",
        json={
            "project_id": project.id,
            "client_name": "Ana Costa",
            "title": "Touch-up",
            "date": "2026-11-10",
            "estimated_value": 80,
        },
    )
    assert response.status_code == 200
    appointment_id = response.json()["id"]
    assert count_transactions(db, appointment_id=appointment_id) == 1

    response = api.delete(f"/appointments/{appointment_id}")
    assert response.status_code == 200
    assert count_transactions(db) == 0


def test_delete_endpoint_forbidden(api, acting_user, appointment):
    acting_user["id"] = OTHER_USER
    assert api.delete(f"/appointments/{appointment.id}").status_code == 403


def test_project_endpoints(api, db, project):
    response = api.post(f"/projects/{project.id}/sessions", json={"date": "2026-09-01", "amount": 300})
    assert response.status_code == 200
    assert response.json()["project_status"] == "completed"
    session_id = response.json()["session"]["id"]

    response = api.patch(
        f"/projects/{project.id}/sessions/{session_id}", json={"payment_status": "paid"}
    )
    assert response.status_code == 200

    summary = api.get(f"/projects/{project.id}/summary").json()
    assert summary["paid_to_date"] == 300.0

    response = api.post(f"/projects/{project.id}/status/recompute")
    assert response.json() == {
        "project_id": project.id,
        "status": "completed",
        "completed_count": 1,
        "planned_count": 1,
    }

    response = api.delete(f"/projects/{project.id}/sessions/{session_id}")
    assert response.json()["project_status"] == "planning"
    assert count_sessions(db) == 0


def test_project_endpoints_hide_foreign_projects(api, acting_user, project):
    acting_user["id"] = OTHER_USER
    assert api.get(f"/projects/{project.id}/summary").status_code == 404


def test_transaction_endpoints(api, appointment):
    api.post(f"/appointments/{appointment.id}/confirm", json={})

    pending = api.get("/transactions", params={"pending_only": True}).json()
    assert len(pending) == 1

    response = api.post(
        f"/transactions/{pending[0]['id']}/settle", json={"settlement_date": "2026-10-21"}
    )
    assert response.status_code == 200
    assert response.json()["settlement_date"] == "2026-10-21"
    assert api.get("/transactions", params={"pending_only": True}).json() == []
