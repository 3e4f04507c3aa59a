"""Appointment service - Business logic for appointment operations"""

import datetime
import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...errors import (
    NotFoundError,
    PermissionDeniedError,
    PersistenceError,
    ReconciliationError,
    ValidationError,
)
from ...models import Client
from ...shared.persistence import store_call
from ...shared.validators import is_durable_id
from ..projects.repository import ProjectRepository
from ..reconciliation.ledger import (
    LedgerSync,
    booked_description,
    completed_description,
    resolve_client_name,
)
from ..reconciliation.project_status import ProjectStatusAggregator
from .board import AppointmentBoard
from .ownership import OwnershipGuard
from .repository import AppointmentRepository
from .schemas import (
    AppointmentChangeResponse,
    AppointmentCreate,
    AppointmentStatus,
    AppointmentUpdate,
    AppointmentView,
)

logger = logging.getLogger(__name__)

# Fields whose change alters the ledger description
DESCRIPTION_FIELDS = ("title", "client_name")


class AppointmentService:
    """Service layer for appointment business logic"""

    def __init__(self, db: Session, board: Optional[AppointmentBoard] = None):
        self.db = db
        self.board = board if board is not None else AppointmentBoard()
        self.repo = AppointmentRepository()
        self.guard = OwnershipGuard(db)
        self.ledger = LedgerSync(db)
        self.aggregator = ProjectStatusAggregator(db)

    def load_board(self, owner_user_id: str, status: Optional[str] = None) -> AppointmentBoard:
        """Fill the board with the owner's stored appointments and client names"""
        appointments = self.repo.list_for_owner(self.db, owner_user_id, status)
        with store_call(self.db, f"client listing for {owner_user_id}"):
            clients = self.db.query(Client).filter(Client.owner_user_id == owner_user_id).all()
        self.board = AppointmentBoard.from_records(appointments, clients)
        logger.debug(f"Loaded {len(self.board)} appointments for user {owner_user_id}")
        return self.board

    def create_appointment(self, data: AppointmentCreate, acting_user_id: str) -> AppointmentView:
        """Store a new appointment and book its pending revenue entry"""
        logger.info(f"📥 Creating appointment for user {acting_user_id}")

        project = ProjectRepository.get_project_for_owner(self.db, data.project_id, acting_user_id)
        if project is None:
            raise ValidationError("Select one of your projects to schedule an appointment")

        appointment = self.repo.create_appointment(
            self.db, acting_user_id, **data.model_dump()
        )
        view = AppointmentView.model_validate(appointment)
        self.board.put(view)

        if view.estimated_value > 0:
            client_name = resolve_client_name(self.db, view, self.board)
            self.ledger.sync_transaction(
                view.id,
                acting_user_id,
                view.estimated_value,
                view.date,
                booked_description(view.title, client_name),
            )

        return view

    def edit_appointment(
        self, appointment_id: str, data: AppointmentUpdate, acting_user_id: str
    ) -> AppointmentView:
        """Apply an edit optimistically, persist it, and bring the ledger entry in line"""
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if not changes:
            return self.board.get(appointment_id)

        previous = self.board.apply(appointment_id, **changes)
        if not is_durable_id(appointment_id):
            logger.info(f"ℹ️ Appointment {appointment_id} updated locally")
            return self.board.get(appointment_id)

        try:
            if "project_id" in changes:
                project = ProjectRepository.get_project_for_owner(
                    self.db, changes["project_id"], acting_user_id
                )
                if project is None:
                    raise ValidationError("Select one of your projects")

            affected = self.repo.update_fields(
                self.db, appointment_id, owner_user_id=acting_user_id, **changes
            )
            if not affected:
                if not self.guard.verify_ownership(appointment_id, acting_user_id):
                    raise PermissionDeniedError(
                        "This appointment does not belong to your account", stage="appointment"
                    )
                raise PersistenceError("No appointment row updated", stage="appointment")

            view = self.board.get(appointment_id)
            value_changed = "estimated_value" in changes
            if view.estimated_value > 0 and (
                value_changed or any(key in changes for key in DESCRIPTION_FIELDS)
            ):
                client_name = resolve_client_name(self.db, view, self.board)
                describe = (
                    completed_description if view.status == "completed" else booked_description
                )
                # Books the entry when the value just became positive
                self.ledger.sync_transaction(
                    appointment_id,
                    view.owner_user_id or acting_user_id,
                    view.estimated_value,
                    view.date,
                    describe(view.title, client_name),
                )
                if value_changed:
                    self.ledger.sync_amount(appointment_id, view.estimated_value)
        except ReconciliationError:
            self.board.revert(appointment_id, previous)
            raise

        logger.info(f"✅ Appointment {appointment_id} updated")
        return self.board.get(appointment_id)

    def change_status(
        self, appointment_id: str, status: AppointmentStatus, acting_user_id: Optional[str]
    ) -> AppointmentChangeResponse:
        """Optimistic manual status change, reverted when the store does not take it"""
        prior_status = self.board.apply_status(appointment_id, status)

        if not acting_user_id or not is_durable_id(appointment_id):
            return AppointmentChangeResponse(
                applied=True,
                appointment=self.board.get(appointment_id),
                message=f"Status changed to {status} locally",
            )

        if not self.guard.verify_ownership(appointment_id, acting_user_id):
            self.board.revert_status(appointment_id, prior_status)
            return AppointmentChangeResponse(
                applied=False,
                forbidden=True,
                appointment=self.board.get(appointment_id),
                message="This appointment does not belong to your account.",
            )

        try:
            affected = self.repo.update_fields(self.db, appointment_id, status=status)
            if not affected:
                raise PersistenceError("No appointment row updated", stage="appointment")
        except ReconciliationError as e:
            self.board.revert_status(appointment_id, prior_status)
            logger.error(f"❌ Status change for appointment {appointment_id} reverted: {e.message}")
            return AppointmentChangeResponse(
                applied=False,
                appointment=self.board.get(appointment_id),
                message="Could not update the status. Please try again.",
            )

        logger.info(f"✅ Appointment {appointment_id} transitioned: {prior_status} → {status}")
        return AppointmentChangeResponse(
            applied=True,
            appointment=self.board.get(appointment_id),
            message=f"Status changed to {status}",
        )

    def move(
        self, appointment_id: str, new_date: datetime.date, acting_user_id: Optional[str]
    ) -> AppointmentChangeResponse:
        """Optimistic reschedule to another day, restricted to the owner's row"""
        previous = self.board.apply(appointment_id, date=new_date)

        if not acting_user_id or not is_durable_id(appointment_id):
            return AppointmentChangeResponse(
                applied=True,
                appointment=self.board.get(appointment_id),
                message="Appointment moved locally",
            )

        try:
            affected = self.repo.update_fields(
                self.db, appointment_id, owner_user_id=acting_user_id, date=new_date
            )
        except ReconciliationError as e:
            self.board.revert(appointment_id, previous)
            logger.error(f"❌ Move of appointment {appointment_id} reverted: {e.message}")
            return AppointmentChangeResponse(
                applied=False,
                appointment=self.board.get(appointment_id),
                message="Could not move the appointment. Please try again.",
            )

        if not affected:
            self.board.revert(appointment_id, previous)
            return AppointmentChangeResponse(
                applied=False,
                forbidden=True,
                appointment=self.board.get(appointment_id),
                message="This appointment does not belong to your account.",
            )

        logger.info(f"✅ Appointment {appointment_id} moved to {new_date.isoformat()}")
        return AppointmentChangeResponse(
            applied=True,
            appointment=self.board.get(appointment_id),
            message="Appointment moved",
        )

    def delete_appointment(self, appointment_id: str, acting_user_id: str) -> dict:
        """Delete an appointment together with the session and ledger rows it produced"""
        if not is_durable_id(appointment_id):
            self.board.remove(appointment_id)
            return {"message": "Appointment removed locally"}

        if not self.guard.verify_ownership(appointment_id, acting_user_id):
            raise PermissionDeniedError(
                "This appointment does not belong to your account", stage="appointment"
            )

        removed = self.board.remove(appointment_id)
        try:
            affected, project_ids, deleted_transactions = self.repo.delete_with_dependents(
                self.db, appointment_id, acting_user_id
            )
            if not affected:
                raise NotFoundError(f"Appointment {appointment_id} not found", stage="appointment")
        except ReconciliationError:
            if removed is not None:
                self.board.put(removed)
            raise

        logger.info(
            f"🗑️ Appointment {appointment_id} deleted with {len(project_ids)} project session link(s) and {deleted_transactions} transaction(s)"
        )

        for project_id in project_ids:
            self.aggregator.recompute_from_store(project_id)

        return {"message": "Appointment deleted"}

    def board_with(self, appointment_id: str, acting_user_id: str) -> AppointmentBoard:
        """
        Load the acting user's board and make sure appointment_id is on it.

        A stored appointment owned by someone else is added too, so the ownership guard
        rather than a missing row decides what the caller is told.
        """
        board = self.load_board(acting_user_id)
        if appointment_id not in board:
            appointment = self.repo.get_appointment(self.db, appointment_id)
            if appointment is None:
                raise NotFoundError(f"Appointment {appointment_id} not found")
            board.put(AppointmentView.model_validate(appointment))
        return board
