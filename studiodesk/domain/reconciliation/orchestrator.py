"""
Appointment confirmation workflow

Marking an appointment completed fans out, in order, into:
  1. the project session for (project, appointment)
  2. the revenue ledger entry for the appointment
  3. the appointment's own status, behind the ownership check
and, once all of those land, the project's derived status.

The board is updated first so the screen reflects the confirmation immediately. If any
step fails the board flip is reverted; rows already written by earlier steps stay, since
each step updates in place on retry instead of duplicating.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.orm import Session

from ...errors import PermissionDeniedError, PersistenceError, ReconciliationError
from ...shared.validators import is_durable_id
from ..appointments.board import AppointmentBoard
from ..appointments.ownership import OwnershipGuard
from ..appointments.repository import AppointmentRepository
from ..appointments.schemas import AppointmentView
from .ledger import LedgerSync, completed_description, resolve_client_name
from .project_status import ProjectStatusAggregator
from .schemas import ConfirmationResponse, ConfirmationState, LedgerSyncResult, SessionOutcome
from .sessions import SessionReconciler

logger = logging.getLogger(__name__)


@dataclass
class ConfirmationResult:
    state: ConfirmationState
    appointment: AppointmentView
    persisted: bool = True
    session_id: Optional[str] = None
    transaction: Optional[LedgerSyncResult] = None
    project_status: Optional[str] = None
    error: Optional[ReconciliationError] = None
    history: list[ConfirmationState] = field(default_factory=list)

    @property
    def committed(self) -> bool:
        return self.state == ConfirmationState.COMMITTED

    def message(self) -> str:
        if self.state == ConfirmationState.FORBIDDEN:
            return "This appointment does not belong to your account."
        if self.state == ConfirmationState.ROLLED_BACK:
            return "Confirmation failed, the appointment was reverted. Please try again."
        if not self.persisted:
            return "Session confirmed locally. Sign in to record it."
        return "Session confirmed and recorded."

    def to_response(self) -> ConfirmationResponse:
        return ConfirmationResponse(
            state=self.state,
            appointment=self.appointment,
            persisted=self.persisted,
            session_id=self.session_id,
            transaction=self.transaction,
            project_status=self.project_status,
            error_stage=self.error.stage if self.error else None,
            message=self.message(),
        )


class ConfirmationOrchestrator:
    """Runs one confirmation attempt at a time against a single board"""

    def __init__(
        self,
        db: Session,
        board: AppointmentBoard,
        sessions: Optional[SessionReconciler] = None,
        ledger: Optional[LedgerSync] = None,
        aggregator: Optional[ProjectStatusAggregator] = None,
        guard: Optional[OwnershipGuard] = None,
    ):
        self.db = db
        self.board = board
        self.sessions = sessions or SessionReconciler(db)
        self.ledger = ledger or LedgerSync(db)
        self.aggregator = aggregator or ProjectStatusAggregator(db)
        self.guard = guard or OwnershipGuard(db)
        self.appointments = AppointmentRepository()

    def confirm_appointment(
        self,
        appointment_id: str,
        outcome: Optional[SessionOutcome],
        acting_user_id: Optional[str],
    ) -> ConfirmationResult:
        """
        Confirm an appointment on the board as completed.

        Returns a tagged result (committed, rolled_back or forbidden). Raises
        NotFoundError only when the appointment is not on the board at all.
        """
        outcome = outcome or SessionOutcome()
        appointment = self.board.get(appointment_id)
        history = [ConfirmationState.REQUESTED]

        prior_status = self.board.apply_status(appointment_id, "completed")
        history.append(ConfirmationState.OPTIMISTICALLY_APPLIED)
        logger.info(f"📥 Confirming appointment {appointment_id} (was {prior_status})")

        if not acting_user_id:
            logger.info(f"ℹ️ Appointment {appointment_id} confirmed locally, no acting user")
            history.append(ConfirmationState.COMMITTED)
            return ConfirmationResult(
                state=ConfirmationState.COMMITTED,
                appointment=self.board.get(appointment_id),
                persisted=False,
                history=history,
            )

        history.append(ConfirmationState.RECONCILING)
        durable = is_durable_id(appointment_id)
        session_id = None
        transaction = None

        try:
            if appointment.project_id:
                session_outcome = outcome.model_copy(
                    update={
                        "amount": outcome.amount
                        if outcome.amount is not None
                        else appointment.estimated_value,
                        "date": outcome.date or appointment.date,
                    }
                )
                session_id = self.sessions.reconcile_session(
                    appointment_id, appointment.project_id, session_outcome
                )
            else:
                logger.info(f"ℹ️ Appointment {appointment_id} has no project, no session recorded")

            client_name = resolve_client_name(self.db, appointment, self.board)
            # The entry belongs to whoever owns the appointment, not whoever confirmed it
            ledger_owner_id = appointment.owner_user_id or acting_user_id
            transaction = self.ledger.sync_transaction(
                appointment_id,
                ledger_owner_id,
                appointment.estimated_value,
                appointment.date,
                completed_description(appointment.title, client_name),
                settled=outcome.settled,
            )

            if durable:
                if not self.guard.verify_ownership(appointment_id, acting_user_id):
                    self.board.revert_status(appointment_id, prior_status)
                    history.append(ConfirmationState.FORBIDDEN)
                    logger.warning(
                        f"⚠️ Appointment {appointment_id} status left unchanged: not owned by {acting_user_id}"
                    )
                    return ConfirmationResult(
                        state=ConfirmationState.FORBIDDEN,
                        appointment=self.board.get(appointment_id),
                        session_id=session_id,
                        transaction=transaction,
                        error=PermissionDeniedError(
                            f"User {acting_user_id} does not own appointment {appointment_id}",
                            stage="appointment",
                        ),
                        history=history,
                    )

                try:
                    affected = self.appointments.update_fields(
                        self.db, appointment_id, status="completed"
                    )
                except PersistenceError as e:
                    raise e.with_stage("appointment")
                if not affected:
                    raise PersistenceError(
                        f"No appointment row updated for {appointment_id}", stage="appointment"
                    )
        except ReconciliationError as e:
            self.board.revert_status(appointment_id, prior_status)
            history.append(ConfirmationState.ROLLED_BACK)
            logger.error(
                f"❌ Confirmation of appointment {appointment_id} rolled back at stage '{e.stage}': {e.message}"
            )
            return ConfirmationResult(
                state=ConfirmationState.ROLLED_BACK,
                appointment=self.board.get(appointment_id),
                session_id=session_id,
                transaction=transaction,
                error=e,
                history=history,
            )
        except Exception:
            self.board.revert_status(appointment_id, prior_status)
            raise

        history.append(ConfirmationState.COMMITTED)
        result = ConfirmationResult(
            state=ConfirmationState.COMMITTED,
            appointment=self.board.get(appointment_id),
            session_id=session_id,
            transaction=transaction,
            history=history,
        )

        if appointment.project_id:
            try:
                result.project_status = self.aggregator.recompute_from_store(
                    appointment.project_id
                )
            except ReconciliationError as e:
                # The confirmation itself is durable; report the stale project status
                logger.error(
                    f"❌ Project {appointment.project_id} status not recomputed after confirming {appointment_id}: {e.message}"
                )
                result.error = e

        logger.info(f"✅ Appointment {appointment_id} confirmed")
        return result
