"""Appointment repository - Database operations for appointments"""

from typing import Optional

from sqlalchemy.exc import NoResultFound
from sqlalchemy.orm import Session

from ...models import Appointment, ProjectSession, Transaction
from ...shared.persistence import store_call


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def get_appointment(db: Session, appointment_id: str) -> Optional[Appointment]:
        with store_call(db, f"appointment lookup {appointment_id}"):
            return db.query(Appointment).filter(Appointment.id == appointment_id).first()

    @staticmethod
    def get_owner_user_id(db: Session, appointment_id: str) -> Optional[str]:
        """Read only the owning user id of an appointment; None when there is no such row"""
        try:
            with store_call(db, f"appointment owner lookup {appointment_id}"):
                row = (
                    db.query(Appointment.owner_user_id)
                    .filter(Appointment.id == appointment_id)
                    .one()
                )
                return row[0]
        except NoResultFound:
            return None

    @staticmethod
    def list_for_owner(db: Session, owner_user_id: str, status: Optional[str] = None) -> list[Appointment]:
        with store_call(db, f"appointment listing for {owner_user_id}"):
            query = db.query(Appointment).filter(Appointment.owner_user_id == owner_user_id)
            if status and status != "all":
                query = query.filter(Appointment.status == status)
            return query.order_by(Appointment.date.asc(), Appointment.start_time.asc()).all()

    @staticmethod
    def create_appointment(db: Session, owner_user_id: str, **appointment_data) -> Appointment:
        with store_call(db, "appointment insert"):
            appointment = Appointment(owner_user_id=owner_user_id, **appointment_data)
            db.add(appointment)
            db.commit()
            db.refresh(appointment)
            return appointment

    @staticmethod
    def update_fields(
        db: Session, appointment_id: str, owner_user_id: Optional[str] = None, **updates
    ) -> int:
        """
        Apply a partial update and return the affected row count.
        When owner_user_id is given the update is restricted to that owner's row.
        """
        with store_call(db, f"appointment update {appointment_id}"):
            query = db.query(Appointment).filter(Appointment.id == appointment_id)
            if owner_user_id is not None:
                query = query.filter(Appointment.owner_user_id == owner_user_id)
            affected = query.update(
                {getattr(Appointment, key): value for key, value in updates.items()},
                synchronize_session="fetch",
            )
            db.commit()
            return affected

    @staticmethod
    def delete_with_dependents(
        db: Session, appointment_id: str, owner_user_id: str
    ) -> tuple[int, set[str], int]:
        """
        Delete an owner's appointment with the sessions and ledger entries it produced.

        All three deletes share one commit. When the appointment row is not the owner's
        nothing is deleted. Returns (appointments deleted, affected project ids,
        transactions deleted).
        """
        with store_call(db, f"appointment delete {appointment_id}"):
            affected = (
                db.query(Appointment)
                .filter(
                    Appointment.id == appointment_id,
                    Appointment.owner_user_id == owner_user_id,
                )
                .delete(synchronize_session="fetch")
            )
            if not affected:
                db.rollback()
                return 0, set(), 0

            project_ids = {
                row[0]
                for row in db.query(ProjectSession.project_id)
                .filter(ProjectSession.appointment_id == appointment_id)
                .all()
            }
            db.query(ProjectSession).filter(
                ProjectSession.appointment_id == appointment_id
            ).delete(synchronize_session="fetch")
            deleted_transactions = (
                db.query(Transaction)
                .filter(Transaction.appointment_id == appointment_id)
                .delete(synchronize_session="fetch")
            )
            db.commit()
            return affected, project_ids, deleted_transactions

    @staticmethod
    def get_project_id(db: Session, appointment_id: str) -> Optional[str]:
        with store_call(db, f"appointment project lookup {appointment_id}"):
            row = (
                db.query(Appointment.project_id)
                .filter(Appointment.id == appointment_id)
                .first()
            )
            return row[0] if row else None
