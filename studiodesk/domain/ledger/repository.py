"""Ledger repository - Database operations for transactions"""

from datetime import date
from typing import Optional

from sqlalchemy.exc import NoResultFound
from sqlalchemy.orm import Session

from ...models import Transaction
from ...shared.persistence import store_call


class TransactionRepository:
    """Repository for ledger database operations"""

    @staticmethod
    def find_by_appointment(db: Session, appointment_id: str) -> Optional[Transaction]:
        """
        Find the ledger entry booked for an appointment.

        An empty result is a normal answer here and comes back as None; any other
        store failure surfaces as PersistenceError.
        """
        try:
            with store_call(db, f"transaction lookup for appointment {appointment_id}"):
                return (
                    db.query(Transaction)
                    .filter(Transaction.appointment_id == appointment_id)
                    .limit(1)
                    .one()
                )
        except NoResultFound:
            return None

    @staticmethod
    def get_transaction(db: Session, transaction_id: str, owner_user_id: str) -> Optional[Transaction]:
        with store_call(db, f"transaction lookup {transaction_id}"):
            return (
                db.query(Transaction)
                .filter(
                    Transaction.id == transaction_id,
                    Transaction.owner_user_id == owner_user_id,
                )
                .first()
            )

    @staticmethod
    def list_for_owner(
        db: Session, owner_user_id: str, pending_only: bool = False
    ) -> list[Transaction]:
        with store_call(db, f"transaction listing for {owner_user_id}"):
            query = db.query(Transaction).filter(Transaction.owner_user_id == owner_user_id)
            if pending_only:
                query = query.filter(Transaction.settlement_date.is_(None))
            return query.order_by(Transaction.due_date.asc()).all()

    @staticmethod
    def insert_transaction(db: Session, **transaction_data) -> Transaction:
        with store_call(db, "transaction insert"):
            transaction = Transaction(**transaction_data)
            db.add(transaction)
            db.commit()
            db.refresh(transaction)
            return transaction

    @staticmethod
    def update_description(db: Session, transaction_id: str, description: str) -> int:
        with store_call(db, f"transaction update {transaction_id}"):
            affected = (
                db.query(Transaction)
                .filter(Transaction.id == transaction_id)
                .update({Transaction.description: description}, synchronize_session="fetch")
            )
            db.commit()
            return affected

    @staticmethod
    def update_amount(db: Session, transaction_id: str, amount: float) -> int:
        with store_call(db, f"transaction amount update {transaction_id}"):
            affected = (
                db.query(Transaction)
                .filter(Transaction.id == transaction_id)
                .update({Transaction.amount: amount}, synchronize_session="fetch")
            )
            db.commit()
            return affected

    @staticmethod
    def set_settlement_date(db: Session, transaction_id: str, settlement_date: date) -> int:
        with store_call(db, f"transaction settlement {transaction_id}"):
            affected = (
                db.query(Transaction)
                .filter(Transaction.id == transaction_id)
                .update(
                    {Transaction.settlement_date: settlement_date}, synchronize_session="fetch"
                )
            )
            db.commit()
            return affected
