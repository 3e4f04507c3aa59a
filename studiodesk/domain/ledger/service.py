"""Ledger service - settlement of pending entries"""

import datetime
import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...errors import NotFoundError, ValidationError
from ...models import Transaction
from .repository import TransactionRepository

logger = logging.getLogger(__name__)


class LedgerService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = TransactionRepository()

    def list_transactions(self, owner_user_id: str, pending_only: bool = False) -> list[Transaction]:
        return self.repo.list_for_owner(self.db, owner_user_id, pending_only)

    def settle_transaction(
        self,
        transaction_id: str,
        owner_user_id: str,
        settlement_date: Optional[datetime.date] = None,
    ) -> Transaction:
        """Mark a pending entry as settled (today unless a date is given)"""
        transaction = self.repo.get_transaction(self.db, transaction_id, owner_user_id)
        if transaction is None:
            raise NotFoundError(f"Transaction {transaction_id} not found")
        if transaction.settlement_date is not None:
            raise ValidationError(
                f"Transaction {transaction_id} was already settled on {transaction.settlement_date.isoformat()}"
            )

        settled_on = settlement_date or datetime.date.today()
        self.repo.set_settlement_date(self.db, transaction_id, settled_on)
        logger.info(f"💰 Transaction {transaction_id} settled on {settled_on.isoformat()}")
        return transaction
