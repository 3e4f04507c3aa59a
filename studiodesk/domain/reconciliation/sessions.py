"""Find-or-create the project session booked for an appointment"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...errors import PersistenceError, ValidationError
from ...shared.validators import is_durable_id
from ..projects.repository import SessionRepository
from .schemas import SessionOutcome

logger = logging.getLogger(__name__)

STAGE = "session"


class SessionReconciler:
    """Keeps exactly one session row per (project, appointment) pair"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SessionRepository()

    def reconcile_session(
        self, appointment_id: Optional[str], project_id: str, outcome: SessionOutcome
    ) -> str:
        """
        Write the outcome onto the session for (project_id, appointment_id) and return its id.

        An existing row is updated in place and keeps its sequence number. Otherwise a
        pending session is inserted with sequence number count + 1. Appointments that
        were never stored have no back-reference, so they always get a fresh row.
        """
        if not project_id:
            raise ValidationError("A project is required to record a session", stage=STAGE)

        durable_appointment_id = appointment_id if is_durable_id(appointment_id) else None
        outcome_fields = {
            "feedback": outcome.feedback,
            "technical_notes": outcome.technical_notes,
            "amount": outcome.amount or None,
            "date": outcome.date,
            "rating": outcome.rating,
        }

        try:
            existing = None
            if durable_appointment_id:
                existing = self.repo.find_by_appointment(
                    self.db, project_id, durable_appointment_id
                )

            if existing:
                self.repo.update_session(self.db, existing.id, **outcome_fields)
                logger.info(
                    f"🔁 Session {existing.id} (#{existing.sequence_number}) updated for appointment {durable_appointment_id}"
                )
                return existing.id

            sequence_number = self.repo.count_for_project(self.db, project_id) + 1
            session = self.repo.insert_session(
                self.db,
                project_id=project_id,
                appointment_id=durable_appointment_id,
                sequence_number=sequence_number,
                payment_status="pending",
                **outcome_fields,
            )
            logger.info(
                f"✅ Session {session.id} (#{sequence_number}) created for project {project_id}"
            )
            return session.id
        except PersistenceError as e:
            raise e.with_stage(STAGE)
