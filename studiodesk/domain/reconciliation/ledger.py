"""Find-or-create the revenue ledger entry booked for an appointment"""

import datetime
import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...config import PLACEHOLDER_CLIENT_NAME, SERVICE_INCOME_CATEGORY
from ...errors import PersistenceError
from ...shared.validators import is_durable_id, positive_amount
from ..appointments.board import AppointmentBoard
from ..appointments.repository import AppointmentRepository
from ..appointments.schemas import AppointmentView
from ..ledger.repository import TransactionRepository
from ..projects.repository import ProjectRepository
from .schemas import LedgerSyncResult

logger = logging.getLogger(__name__)

STAGE = "ledger"


def booked_description(title: str, client_name: str) -> str:
    """Description of the entry booked when an appointment is scheduled"""
    return f"Session: {title} - {client_name}"


def completed_description(title: str, client_name: str) -> str:
    """Description of the entry once the appointment has been confirmed"""
    return f"Session completed: {title} - {client_name}"


def resolve_client_name(
    db: Session, appointment: AppointmentView, board: Optional[AppointmentBoard] = None
) -> str:
    """
    Display name for ledger descriptions.

    Order: the appointment's own client name, the board's client index, then
    appointment -> project -> client in the store, then the placeholder name.
    """
    name = appointment.client_name
    if not name and board is not None:
        name = board.client_name(appointment.client_id)

    if not name and is_durable_id(appointment.id):
        try:
            project_id = AppointmentRepository.get_project_id(db, appointment.id)
            if project_id:
                name = ProjectRepository.get_client_name_for_project(db, project_id)
        except PersistenceError as e:
            raise e.with_stage(STAGE)

    if not name:
        logger.info(f"ℹ️ No client name for appointment {appointment.id}, using placeholder")
        name = PLACEHOLDER_CLIENT_NAME
    return name


class LedgerSync:
    """Keeps at most one transaction per appointment"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = TransactionRepository()

    def sync_transaction(
        self,
        appointment_id: str,
        owner_user_id: str,
        amount: Optional[float],
        due_date: Optional[datetime.date],
        description: str,
        settled: bool = False,
    ) -> LedgerSyncResult:
        """
        Book or refresh the revenue entry for an appointment.

        Zero or missing amounts never produce an entry. An existing entry only has its
        description refreshed; a new one is a pending revenue entry in the service
        income category, settled on the due date only when the caller says so.
        """
        if not amount or amount <= 0:
            logger.debug(f"Appointment {appointment_id} has no value, ledger sync skipped")
            return LedgerSyncResult(action="skipped", reason="no_amount")

        if not is_durable_id(appointment_id):
            logger.debug(f"Appointment {appointment_id} is not stored yet, ledger sync skipped")
            return LedgerSyncResult(action="skipped", reason="not_stored")

        try:
            existing = self.repo.find_by_appointment(self.db, appointment_id)
            if existing:
                self.repo.update_description(self.db, existing.id, description)
                logger.info(f"🔁 Transaction {existing.id} description refreshed")
                return LedgerSyncResult(action="updated", transaction_id=existing.id)

            settlement_date = None
            if settled:
                settlement_date = due_date or datetime.date.today()

            transaction = self.repo.insert_transaction(
                self.db,
                owner_user_id=owner_user_id,
                type="revenue",
                category=SERVICE_INCOME_CATEGORY,
                amount=positive_amount(amount),
                due_date=due_date,
                settlement_date=settlement_date,
                description=description,
                appointment_id=appointment_id,
            )
            logger.info(
                f"✅ Transaction {transaction.id} booked for appointment {appointment_id}: {transaction.amount:.2f}"
            )
            return LedgerSyncResult(action="created", transaction_id=transaction.id)
        except PersistenceError as e:
            raise e.with_stage(STAGE)

    def sync_amount(self, appointment_id: str, amount: Optional[float]) -> LedgerSyncResult:
        """
        Carry a changed appointment value onto its pending entry.

        Settled entries record money already received and keep their amount. A zero
        value leaves the entry alone, as in sync_transaction.
        """
        if not amount or amount <= 0:
            return LedgerSyncResult(action="skipped", reason="no_amount")
        if not is_durable_id(appointment_id):
            return LedgerSyncResult(action="skipped", reason="not_stored")

        try:
            existing = self.repo.find_by_appointment(self.db, appointment_id)
            if existing is None:
                return LedgerSyncResult(action="skipped", reason="not_booked")
            if existing.settlement_date is not None:
                logger.info(f"ℹ️ Transaction {existing.id} already settled, amount kept")
                return LedgerSyncResult(
                    action="skipped", transaction_id=existing.id, reason="settled"
                )

            new_amount = positive_amount(amount)
            if existing.amount != new_amount:
                self.repo.update_amount(self.db, existing.id, new_amount)
                logger.info(f"🔁 Transaction {existing.id} amount changed to {new_amount:.2f}")
            return LedgerSyncResult(action="updated", transaction_id=existing.id)
        except PersistenceError as e:
            raise e.with_stage(STAGE)
