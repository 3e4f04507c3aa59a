"""Ledger router - FastAPI endpoints for transactions"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_acting_user_id
from ...database import get_db
from ...errors import ReconciliationError
from ...shared.http_errors import to_http_exception
from .schemas import SettleRequest, TransactionResponse
from .service import LedgerService

router = APIRouter(prefix="/transactions", tags=["Ledger"])


def get_ledger_service(db: Session = Depends(get_db)) -> LedgerService:
    """Dependency injection for LedgerService"""
    return LedgerService(db)


@router.get("", response_model=list[TransactionResponse])
async def list_transactions(
    pending_only: bool = Query(False),
    user_id: str = Depends(get_acting_user_id),
    service: LedgerService = Depends(get_ledger_service),
):
    try:
        return service.list_transactions(user_id, pending_only)
    except ReconciliationError as e:
        raise to_http_exception(e) from e


@router.post("/{transaction_id}/settle", response_model=TransactionResponse)
async def settle_transaction(
    transaction_id: str,
    data: SettleRequest,
    user_id: str = Depends(get_acting_user_id),
    service: LedgerService = Depends(get_ledger_service),
):
    """Mark a pending ledger entry as settled"""
    try:
        return service.settle_transaction(transaction_id, user_id, data.settlement_date)
    except ReconciliationError as e:
        raise to_http_exception(e) from e
