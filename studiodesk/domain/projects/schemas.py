"""Project domain schemas - Pydantic models for validation"""

import datetime
from typing import Literal, Optional

from pydantic import BaseModel, field_validator

PaymentStatus = Literal["pending", "paid", "cancelled"]


class ManualSessionCreate(BaseModel):
    """Register a session that happened without a scheduled appointment"""

    date: datetime.date
    amount: Optional[float] = None
    payment_status: PaymentStatus = "pending"
    technical_notes: Optional[str] = None

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v):
        if v is not None and v < 0:
            raise ValueError("Amount cannot be negative")
        return v


class SessionUpdate(BaseModel):
    date: Optional[datetime.date] = None
    amount: Optional[float] = None
    payment_status: Optional[PaymentStatus] = None
    technical_notes: Optional[str] = None
    feedback: Optional[str] = None
    rating: Optional[int] = None

    @field_validator("rating")
    @classmethod
    def validate_rating(cls, v):
        if v is not None and not 1 <= v <= 5:
            raise ValueError("Rating must be between 1 and 5")
        return v


class SessionResponse(BaseModel):
    id: str
    project_id: str
    appointment_id: Optional[str]
    sequence_number: int
    date: Optional[datetime.date]
    amount: Optional[float]
    payment_status: str
    technical_notes: Optional[str]
    feedback: Optional[str]
    rating: Optional[int]

    class Config:
        from_attributes = True


class SessionChangeResponse(BaseModel):
    session: Optional[SessionResponse] = None
    project_status: str


class ProjectSummary(BaseModel):
    """Project figures derived from its sessions"""

    id: str
    title: str
    status: str
    total_value: Optional[float]
    paid_to_date: float
    remaining: Optional[float]
    completed_count: int
    planned_count: int
    progress_percent: int
