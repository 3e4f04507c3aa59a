"""Appointment domain schemas - Pydantic models for validation"""

import datetime
from typing import Literal, Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import normalize_time

AppointmentStatus = Literal["scheduled", "confirmed", "in_progress", "completed", "cancelled"]


class AppointmentView(BaseModel):
    """In-memory copy of an appointment as the scheduling screen holds it"""

    id: str
    owner_user_id: Optional[str] = None
    project_id: Optional[str] = None
    client_id: Optional[str] = None
    client_name: Optional[str] = None
    title: str
    description: Optional[str] = None
    date: datetime.date
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    status: AppointmentStatus = "scheduled"
    estimated_value: float = 0.0

    class Config:
        from_attributes = True


class AppointmentCreate(BaseModel):
    """Schema for creating a new appointment"""

    project_id: str
    client_id: Optional[str] = None
    client_name: Optional[str] = None
    title: str
    description: Optional[str] = None
    date: datetime.date
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    status: AppointmentStatus = "scheduled"
    estimated_value: float = 0.0

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, v):
        return normalize_time(v)

    @field_validator("estimated_value")
    @classmethod
    def validate_value(cls, v):
        if v < 0:
            raise ValueError("Estimated value cannot be negative")
        return v


class AppointmentUpdate(BaseModel):
    """Schema for editing an existing appointment"""

    project_id: Optional[str] = None
    client_name: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    date: Optional[datetime.date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    estimated_value: Optional[float] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, v):
        return normalize_time(v)

    @field_validator("estimated_value")
    @classmethod
    def validate_value(cls, v):
        if v is not None and v < 0:
            raise ValueError("Estimated value cannot be negative")
        return v


class StatusChangeRequest(BaseModel):
    status: AppointmentStatus


class MoveRequest(BaseModel):
    date: datetime.date


class AppointmentChangeResponse(BaseModel):
    """Outcome of an optimistic appointment change"""

    applied: bool
    forbidden: bool = False
    appointment: AppointmentView
    message: str
