"""Appointment router - FastAPI endpoints for appointment operations"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ...auth import get_acting_user_id
from ...database import get_db
from ...errors import ReconciliationError
from ...shared.http_errors import to_http_exception
from ..reconciliation.orchestrator import ConfirmationOrchestrator
from ..reconciliation.schemas import ConfirmationResponse, ConfirmationState, SessionOutcome
from .schemas import (
    AppointmentChangeResponse,
    AppointmentCreate,
    AppointmentUpdate,
    AppointmentView,
    MoveRequest,
    StatusChangeRequest,
)
from .service import AppointmentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])

CONFIRMATION_STATUS_CODES = {
    ConfirmationState.COMMITTED: 200,
    ConfirmationState.FORBIDDEN: 403,
    ConfirmationState.ROLLED_BACK: 500,
}


def get_appointment_service(db: Session = Depends(get_db)) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(db)


def _change_response(result: AppointmentChangeResponse) -> JSONResponse:
    status_code = 200 if result.applied else (403 if result.forbidden else 500)
    return JSONResponse(status_code=status_code, content=result.model_dump(mode="json"))


@router.get("", response_model=list[AppointmentView])
async def list_appointments(
    status: Optional[str] = Query(None),
    user_id: str = Depends(get_acting_user_id),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Get the current user's appointments"""
    try:
        return list(service.load_board(user_id, status))
    except ReconciliationError as e:
        raise to_http_exception(e) from e


@router.post("", response_model=AppointmentView)
async def create_appointment(
    data: AppointmentCreate,
    user_id: str = Depends(get_acting_user_id),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Schedule a new appointment"""
    try:
        return service.create_appointment(data, user_id)
    except ReconciliationError as e:
        raise to_http_exception(e) from e


@router.patch("/{appointment_id}", response_model=AppointmentView)
async def edit_appointment(
    appointment_id: str,
    data: AppointmentUpdate,
    user_id: str = Depends(get_acting_user_id),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Edit an appointment's details"""
    try:
        service.board_with(appointment_id, user_id)
        return service.edit_appointment(appointment_id, data, user_id)
    except ReconciliationError as e:
        raise to_http_exception(e) from e


@router.post("/{appointment_id}/status", response_model=AppointmentChangeResponse)
async def change_status(
    appointment_id: str,
    data: StatusChangeRequest,
    user_id: str = Depends(get_acting_user_id),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Change an appointment's status without running confirmation"""
    try:
        service.board_with(appointment_id, user_id)
    except ReconciliationError as e:
        raise to_http_exception(e) from e
    return _change_response(service.change_status(appointment_id, data.status, user_id))


@router.post("/{appointment_id}/move", response_model=AppointmentChangeResponse)
async def move_appointment(
    appointment_id: str,
    data: MoveRequest,
    user_id: str = Depends(get_acting_user_id),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Reschedule an appointment to another day"""
    try:
        service.board_with(appointment_id, user_id)
    except ReconciliationError as e:
        raise to_http_exception(e) from e
    return _change_response(service.move(appointment_id, data.date, user_id))


@router.post("/{appointment_id}/confirm", response_model=ConfirmationResponse)
async def confirm_appointment(
    appointment_id: str,
    outcome: SessionOutcome,
    user_id: str = Depends(get_acting_user_id),
    service: AppointmentService = Depends(get_appointment_service),
    db: Session = Depends(get_db),
):
    """Mark an appointment completed and record its session and ledger entry"""
    try:
        board = service.board_with(appointment_id, user_id)
        result = ConfirmationOrchestrator(db, board).confirm_appointment(
            appointment_id, outcome, user_id
        )
    except ReconciliationError as e:
        raise to_http_exception(e) from e

    response = result.to_response()
    return JSONResponse(
        status_code=CONFIRMATION_STATUS_CODES[result.state],
        content=response.model_dump(mode="json"),
    )


@router.delete("/{appointment_id}")
async def delete_appointment(
    appointment_id: str,
    user_id: str = Depends(get_acting_user_id),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Delete an appointment with its session and ledger rows"""
    try:
        service.board_with(appointment_id, user_id)
        return service.delete_appointment(appointment_id, user_id)
    except ReconciliationError as e:
        raise to_http_exception(e) from e
