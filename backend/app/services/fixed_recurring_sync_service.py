"""
Keeps the occurrences of a fixed recurring entry in step with its effective range.

For one entry the synchronizer:
1. Builds the target months: effective_from through effective_to, or through
   the current month plus the generation horizon when the entry is open-ended
2. Creates a scheduled occurrence for every target month that has none
3. Deletes scheduled occurrences outside the target months
4. Cancels applied occurrences outside the target months (through
   OccurrenceApplier.cancel, which destroys the linked ledger record)
5. Leaves canceled occurrences, and every occurrence inside the range, as they are

Running it twice without changing the entry does nothing the second time.
Occurrences are never re-dated: a changed day_of_month only affects months
created afterwards.

Open-ended entries need a periodic call (FixedRecurringEntryService.resync_open_ended)
so the window keeps moving forward; nothing here schedules that.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from app.config import GenerationHorizon
from app.exceptions import ValidationError
from app.models import FixedRecurringEntry, FixedRecurringEntryOccurrence, OccurrenceStatus
from app.services.clock import Clock, SystemClock
from app.services.fixed_recurring_validation import validate_occurrence
from app.services.occurrence_applier import OccurrenceApplier
from app.services.recurrence_calendar import (
    add_months,
    iter_months,
    month_start,
    resolve_occurrence_date,
)

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    created: int = 0
    deleted: int = 0
    canceled: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.created or self.deleted or self.canceled)


class FixedRecurringSynchronizer:
    """Reconciles materialized occurrences against an entry's effective range."""

    def __init__(
        self,
        db: Session,
        horizon: Optional[GenerationHorizon] = None,
        clock: Optional[Clock] = None,
        applier: Optional[OccurrenceApplier] = None,
    ):
        self.db = db
        self.horizon = horizon or GenerationHorizon()
        self.clock = clock or SystemClock()
        self.applier = applier or OccurrenceApplier(db, clock=self.clock)

    def target_months(self, entry: FixedRecurringEntry) -> List[date]:
        """
        Months that should have an occurrence, oldest first.

        An open-ended entry whose start lies beyond the horizon still gets its
        first month.
        """
        start = entry.effective_from
        if start is None:
            raise ValidationError("effective_from can't be blank")

        if entry.is_open_ended:
            horizon_end = add_months(month_start(self.clock.today()), self.horizon.months_ahead())
            end = max(horizon_end, month_start(start))
        elif entry.effective_to < start:
            raise ValidationError("effective_to must be on or after effective_from")
        else:
            end = entry.effective_to

        return list(iter_months(start, end))

    def reconcile(self, entry: FixedRecurringEntry) -> SyncResult:
        """
        Converge the entry's occurrences on its target months.

        Writes are flushed, not committed; the caller's unit of work decides.

        Args:
            entry: A persisted (flushed) FixedRecurringEntry

        Returns:
            SyncResult with the number of created, deleted and canceled occurrences
        """
        targets = self.target_months(entry)
        target_set = set(targets)
        existing = self._lock_existing(entry)
        result = SyncResult()

        for period, occurrence in sorted(existing.items()):
            if period in target_set:
                continue
            if occurrence.status == OccurrenceStatus.SCHEDULED.value:
                self.db.delete(occurrence)
                result.deleted += 1
            elif occurrence.status == OccurrenceStatus.APPLIED.value:
                self.applier.cancel(occurrence)
                result.canceled += 1
            # canceled rows stay as history for their month

        for period in targets:
            if period in existing:
                continue
            occurrence = FixedRecurringEntryOccurrence(
                fixed_recurring_entry_id=entry.id,
                period_month=period,
                occurs_on=resolve_occurrence_date(
                    period.year, period.month, entry.day_of_month, entry.use_end_of_month
                ),
                status=OccurrenceStatus.SCHEDULED.value,
            )
            validate_occurrence(occurrence)
            self.db.add(occurrence)
            result.created += 1

        self.db.flush()
        self.db.expire(entry, ["occurrences"])

        if result.changed:
            logger.info(
                f"[FIXED_RECURRING] Synced entry {entry.id} through {targets[-1]:%Y-%m}: "
                f"created={result.created} deleted={result.deleted} canceled={result.canceled}"
            )
        else:
            logger.debug(f"[FIXED_RECURRING] Entry {entry.id} already in sync")
        return result

    def _lock_existing(self, entry: FixedRecurringEntry) -> Dict[date, FixedRecurringEntryOccurrence]:
        occurrences = (
            self.db.query(FixedRecurringEntryOccurrence)
            .filter(FixedRecurringEntryOccurrence.fixed_recurring_entry_id == entry.id)
            .order_by(FixedRecurringEntryOccurrence.period_month)
            .with_for_update()
            .all()
        )
        return {occurrence.period_month: occurrence for occurrence in occurrences}
