"""Reconciliation schemas - outcome payloads and tagged results"""

import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, field_validator

from ..appointments.schemas import AppointmentView


class SessionOutcome(BaseModel):
    """Settlement-relevant data captured when an appointment is confirmed"""

    feedback: Optional[str] = None
    technical_notes: Optional[str] = None
    rating: Optional[int] = None
    amount: Optional[float] = None
    date: Optional[datetime.date] = None
    # Book the ledger entry as already settled
    settled: bool = False

    @field_validator("feedback", "technical_notes")
    @classmethod
    def blank_to_none(cls, v):
        if v is not None and not v.strip():
            return None
        return v.strip() if v else v

    @field_validator("rating")
    @classmethod
    def validate_rating(cls, v):
        if v is not None and not 1 <= v <= 5:
            raise ValueError("Rating must be between 1 and 5")
        return v


class LedgerSyncResult(BaseModel):
    action: Literal["created", "updated", "skipped"]
    transaction_id: Optional[str] = None
    reason: Optional[str] = None


class ConfirmationState(str, Enum):
    REQUESTED = "requested"
    OPTIMISTICALLY_APPLIED = "optimistically_applied"
    RECONCILING = "reconciling"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"
    FORBIDDEN = "forbidden"


class ConfirmationResponse(BaseModel):
    """JSON rendering of a confirmation result"""

    state: ConfirmationState
    appointment: AppointmentView
    persisted: bool
    session_id: Optional[str] = None
    transaction: Optional[LedgerSyncResult] = None
    project_status: Optional[str] = None
    error_stage: Optional[str] = None
    message: str


class ProjectStatusResponse(BaseModel):
    project_id: str
    status: str
    completed_count: int
    planned_count: int
