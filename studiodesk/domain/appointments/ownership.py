"""Ownership check run before any status-changing write to a stored appointment"""

import logging

from sqlalchemy.orm import Session

from ...errors import PersistenceError
from ...shared.validators import is_durable_id
from .repository import AppointmentRepository

logger = logging.getLogger(__name__)


class OwnershipGuard:
    """Fail-closed verification that the acting user owns an appointment"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AppointmentRepository()

    def verify_ownership(self, appointment_id: str, acting_user_id: str) -> bool:
        """
        Return True only when the stored owner equals acting_user_id exactly.

        A missing row, an unreadable row, a non-durable id or a non-string user id all
        return False: callers treat "could not verify" the same as "not authorized".
        """
        if not acting_user_id or not isinstance(acting_user_id, str):
            return False
        if not is_durable_id(appointment_id):
            return False

        try:
            owner_user_id = self.repo.get_owner_user_id(self.db, appointment_id)
        except PersistenceError as e:
            logger.warning(f"⚠️ Could not verify owner of appointment {appointment_id}: {e}")
            return False

        if owner_user_id is None:
            logger.warning(f"⚠️ Appointment {appointment_id} not found during ownership check")
            return False

        if owner_user_id != acting_user_id:
            logger.warning(
                f"⚠️ User {acting_user_id} is not the owner of appointment {appointment_id}"
            )
            return False

        return True
