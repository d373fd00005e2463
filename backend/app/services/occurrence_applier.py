"""
Apply and cancel fixed recurring occurrences.

apply turns a scheduled occurrence into a real expense/income record; cancel
destroys that record again and leaves the occurrence canceled for good.

    scheduled --apply--> applied --cancel--> canceled

Both transitions are conditional updates keyed on the current status, so two
concurrent requests cannot link two ledger records to the same occurrence: the
loser sees zero affected rows and raises InvalidStateError. Each transition
runs in a savepoint, so a failed apply leaves no ledger record behind.

Neither method commits. Callers wrap them in app.database.unit_of_work.
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from app.exceptions import InvalidStateError
from app.models import (
    EntryKind,
    FixedRecurringEntryOccurrence,
    LinkedTransactionRef,
    OccurrenceStatus,
    User,
)
from app.services.clock import Clock, SystemClock
from app.services.fixed_recurring_validation import validate_occurrence
from app.services.ledger_service import LedgerRecord, LedgerService

logger = logging.getLogger(__name__)


class OccurrenceApplier:
    """Moves occurrences between scheduled, applied and canceled."""

    def __init__(self, db: Session, clock: Optional[Clock] = None):
        self.db = db
        self.clock = clock or SystemClock()
        self.ledger = LedgerService(db)

    def apply(self, occurrence: FixedRecurringEntryOccurrence, user: User) -> LedgerRecord:
        """
        Create the ledger record for a scheduled occurrence and link it.

        Runs in a savepoint: if the status update loses a race, the record
        created here is rolled back before InvalidStateError propagates.

        Raises:
            InvalidStateError: occurrence is applied or canceled
        """
        if occurrence.status != OccurrenceStatus.SCHEDULED.value:
            raise InvalidStateError(occurrence.id, occurrence.status, "apply")

        entry = occurrence.entry
        with self.db.begin_nested():
            record = self.ledger.create_record(
                kind=entry.kind,
                account_id=entry.account_id,
                user_id=user.id,
                category_id=entry.category_id,
                title=entry.title,
                amount=entry.amount,
                booked_on=occurrence.occurs_on,
                memo=entry.memo,
            )
            link = LinkedTransactionRef(kind=EntryKind(entry.kind), id=record.id)

            self._transition(
                occurrence,
                expected=OccurrenceStatus.SCHEDULED,
                action="apply",
                values={
                    "status": OccurrenceStatus.APPLIED.value,
                    "applied_at": self.clock.now(),
                    "linked_kind": link.kind.value,
                    "linked_transaction_id": link.id,
                },
            )

        logger.info(
            f"[FIXED_RECURRING] Applied occurrence {occurrence.id} "
            f"({occurrence.period_month:%Y-%m}) as {link.kind.value} {link.id}"
        )
        return record

    def cancel(self, occurrence: FixedRecurringEntryOccurrence) -> None:
        """
        Destroy the linked ledger record and mark the occurrence canceled.

        This is the only cancellation path; the synchronizer calls it for
        applied occurrences that fall out of the effective range.

        Raises:
            InvalidStateError: occurrence is not applied
        """
        if occurrence.status != OccurrenceStatus.APPLIED.value:
            raise InvalidStateError(occurrence.id, occurrence.status, "cancel")

        ref: Optional[LinkedTransactionRef] = occurrence.linked_transaction

        with self.db.begin_nested():
            self._transition(
                occurrence,
                expected=OccurrenceStatus.APPLIED,
                action="cancel",
                values={
                    "status": OccurrenceStatus.CANCELED.value,
                    "applied_at": None,
                    "linked_kind": None,
                    "linked_transaction_id": None,
                },
            )
            if ref is not None:
                self.ledger.destroy_record(ref)

        logger.info(
            f"[FIXED_RECURRING] Canceled occurrence {occurrence.id} ({occurrence.period_month:%Y-%m})"
        )

    def _transition(
        self,
        occurrence: FixedRecurringEntryOccurrence,
        expected: OccurrenceStatus,
        action: str,
        values: dict,
    ) -> None:
        updated = (
            self.db.query(FixedRecurringEntryOccurrence)
            .filter(
                FixedRecurringEntryOccurrence.id == occurrence.id,
                FixedRecurringEntryOccurrence.status == expected.value,
            )
            .update(values, synchronize_session=False)
        )
        if updated != 1:
            # Someone else moved it first; report the status they left behind.
            self.db.refresh(occurrence)
            raise InvalidStateError(occurrence.id, occurrence.status, action)
        self.db.refresh(occurrence)
        validate_occurrence(occurrence)
