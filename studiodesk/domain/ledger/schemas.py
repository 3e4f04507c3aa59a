"""Ledger domain schemas - Pydantic models for validation"""

import datetime
from typing import Optional

from pydantic import BaseModel


class TransactionResponse(BaseModel):
    id: str
    type: str
    category: Optional[str]
    amount: float
    due_date: Optional[datetime.date]
    settlement_date: Optional[datetime.date]
    description: Optional[str]
    appointment_id: Optional[str]

    class Config:
        from_attributes = True


class SettleRequest(BaseModel):
    settlement_date: Optional[datetime.date] = None
