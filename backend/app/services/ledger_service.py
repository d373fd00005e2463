"""
Creation and deletion of expense/income ledger records on behalf of fixed
recurring occurrences.
"""
import logging
from datetime import date
from typing import Optional, Union
from uuid import UUID

from sqlalchemy.orm import Session

from app.models import EntryKind, Expense, Income, LinkedTransactionRef

logger = logging.getLogger(__name__)

LedgerRecord = Union[Expense, Income]


class LedgerService:
    """Writes to the expenses and incomes tables."""

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def model_for(kind: Union[EntryKind, str]):
        return Income if EntryKind(kind) == EntryKind.INCOME else Expense

    def create_record(
        self,
        kind: Union[EntryKind, str],
        account_id: UUID,
        user_id: str,
        category_id: UUID,
        title: str,
        amount: int,
        booked_on: date,
        memo: Optional[str] = None,
    ) -> LedgerRecord:
        """
        Insert an expense or income record and flush it so it has an id.

        booked_on becomes spent_on for expenses and received_on for incomes.
        """
        if EntryKind(kind) == EntryKind.INCOME:
            record = Income(
                account_id=account_id,
                user_id=user_id,
                category_id=category_id,
                title=title,
                amount=amount,
                memo=memo,
                received_on=booked_on,
            )
        else:
            record = Expense(
                account_id=account_id,
                user_id=user_id,
                category_id=category_id,
                title=title,
                amount=amount,
                memo=memo,
                spent_on=booked_on,
            )
        self.db.add(record)
        self.db.flush()
        return record

    def get_record(self, ref: LinkedTransactionRef) -> Optional[LedgerRecord]:
        model = self.model_for(ref.kind)
        return self.db.query(model).filter(model.id == ref.id).first()

    def destroy_record(self, ref: LinkedTransactionRef) -> bool:
        """
        Delete the referenced record. Returns False if it no longer exists.
        """
        record = self.get_record(ref)
        if record is None:
            logger.warning(f"[LEDGER] Linked {ref.kind.value} {ref.id} already gone; nothing to destroy")
            return False
        self.db.delete(record)
        self.db.flush()
        return True
