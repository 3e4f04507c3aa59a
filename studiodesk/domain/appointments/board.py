"""
Optimistic in-memory view of a user's appointments.

The scheduling screen applies a change here first so it shows up without waiting on
the store, then reverts it if the durable write does not land.
"""

import logging
from typing import Any, Iterable, Iterator, Optional

from ...errors import NotFoundError
from .schemas import AppointmentStatus, AppointmentView

logger = logging.getLogger(__name__)


class AppointmentBoard:
    """Appointments and client names held by one UI session; never shared across users"""

    def __init__(
        self,
        appointments: Iterable[AppointmentView] = (),
        client_names: Optional[dict[str, str]] = None,
    ):
        self._appointments: dict[str, AppointmentView] = {a.id: a for a in appointments}
        self._client_names: dict[str, str] = dict(client_names or {})

    @classmethod
    def from_records(cls, appointments, clients=()) -> "AppointmentBoard":
        """Build a board from ORM rows"""
        return cls(
            appointments=[AppointmentView.model_validate(a) for a in appointments],
            client_names={c.id: c.name for c in clients},
        )

    def __len__(self) -> int:
        return len(self._appointments)

    def __iter__(self) -> Iterator[AppointmentView]:
        return iter(self._appointments.values())

    def __contains__(self, appointment_id: str) -> bool:
        return appointment_id in self._appointments

    def get(self, appointment_id: str) -> AppointmentView:
        appointment = self._appointments.get(appointment_id)
        if appointment is None:
            raise NotFoundError(f"Appointment {appointment_id} is not on the board")
        return appointment

    def put(self, appointment: AppointmentView) -> None:
        self._appointments[appointment.id] = appointment

    def remove(self, appointment_id: str) -> Optional[AppointmentView]:
        return self._appointments.pop(appointment_id, None)

    def client_name(self, client_id: Optional[str]) -> Optional[str]:
        if not client_id:
            return None
        return self._client_names.get(client_id)

    def apply(self, appointment_id: str, **changes: Any) -> dict[str, Any]:
        """Apply field changes and return the previous values, for use with revert()"""
        current = self.get(appointment_id)
        previous = {key: getattr(current, key) for key in changes}
        self._appointments[appointment_id] = current.model_copy(update=changes)
        return previous

    def revert(self, appointment_id: str, previous: dict[str, Any]) -> None:
        if appointment_id not in self._appointments:
            logger.debug(f"Appointment {appointment_id} left the board before revert")
            return
        self._appointments[appointment_id] = self._appointments[appointment_id].model_copy(
            update=previous
        )

    def apply_status(self, appointment_id: str, status: AppointmentStatus) -> AppointmentStatus:
        """Flip the status optimistically and return the prior status"""
        return self.apply(appointment_id, status=status)["status"]

    def revert_status(self, appointment_id: str, prior_status: AppointmentStatus) -> None:
        self.revert(appointment_id, {"status": prior_status})
