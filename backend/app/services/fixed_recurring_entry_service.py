"""
Create, update and delete fixed recurring entries.

Every successful save is followed by a synchronizer run in the same unit of
work, so an entry and its occurrences are committed together or not at all.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.exceptions import NotFoundError, ValidationError
from app.models import Account, Category, FixedRecurringEntry, FixedRecurringEntryOccurrence
from app.services.fixed_recurring_sync_service import FixedRecurringSynchronizer, SyncResult
from app.services.fixed_recurring_validation import validate_entry

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "title",
    "kind",
    "amount",
    "memo",
    "day_of_month",
    "use_end_of_month",
    "effective_from",
    "effective_to",
    "category_id",
)


class FixedRecurringEntryService:
    """Template management for one account's fixed recurring entries."""

    def __init__(self, db: Session, synchronizer: Optional[FixedRecurringSynchronizer] = None):
        self.db = db
        self.synchronizer = synchronizer or FixedRecurringSynchronizer(db)

    def list_entries(self, account: Account) -> List[FixedRecurringEntry]:
        return (
            self.db.query(FixedRecurringEntry)
            .filter(FixedRecurringEntry.account_id == account.id)
            .order_by(FixedRecurringEntry.created_at.desc())
            .all()
        )

    def get_entry(self, account: Account, entry_id: UUID) -> FixedRecurringEntry:
        entry = (
            self.db.query(FixedRecurringEntry)
            .filter(
                FixedRecurringEntry.id == entry_id,
                FixedRecurringEntry.account_id == account.id,
            )
            .first()
        )
        if not entry:
            raise NotFoundError("Fixed recurring entry", entry_id)
        return entry

    def create_entry(self, account: Account, data: Dict[str, Any]) -> FixedRecurringEntry:
        """
        Validate and insert an entry, then materialize its occurrences.

        Raises:
            ValidationError: invalid field values or a category outside the account
        """
        values = self._clean(account, data)
        entry = FixedRecurringEntry(account_id=account.id, **values)
        if entry.use_end_of_month is None:
            entry.use_end_of_month = False
        validate_entry(self.db, entry)

        self.db.add(entry)
        self.db.flush()
        result = self.synchronizer.reconcile(entry)
        logger.info(
            f"[FIXED_RECURRING] Created entry {entry.id} '{entry.title}' "
            f"for account {account.id} ({result.created} occurrences)"
        )
        return entry

    def update_entry(self, entry: FixedRecurringEntry, data: Dict[str, Any]) -> FixedRecurringEntry:
        """
        Apply a partial update and re-sync occurrences.

        Raises:
            ValidationError: the updated entry violates an invariant
        """
        values = self._clean(entry.account, data)
        for field, value in values.items():
            setattr(entry, field, value)
        validate_entry(self.db, entry)

        self.db.flush()
        result = self.synchronizer.reconcile(entry)
        logger.info(
            f"[FIXED_RECURRING] Updated entry {entry.id}: created={result.created} "
            f"deleted={result.deleted} canceled={result.canceled}"
        )
        return entry

    def delete_entry(self, entry: FixedRecurringEntry) -> None:
        """Delete the entry and, by cascade, all of its occurrences."""
        entry_id = entry.id
        self.db.delete(entry)
        self.db.flush()
        logger.info(f"[FIXED_RECURRING] Deleted entry {entry_id}")

    def resync_open_ended(self, account_ids: Optional[Iterable[UUID]] = None) -> Dict[str, int]:
        """
        Re-run the synchronizer for every open-ended entry.

        The generation window of an entry without effective_to is anchored to
        the current month, so something outside this service (a cron job, a
        worker beat) has to call this at least once a month.

        Returns:
            Dict with entries_synced and the summed created/deleted/canceled counts
        """
        query = self.db.query(FixedRecurringEntry).filter(FixedRecurringEntry.effective_to.is_(None))
        if account_ids is not None:
            query = query.filter(FixedRecurringEntry.account_id.in_(list(account_ids)))

        totals = SyncResult()
        entries = query.order_by(FixedRecurringEntry.created_at).all()
        for entry in entries:
            result = self.synchronizer.reconcile(entry)
            totals.created += result.created
            totals.deleted += result.deleted
            totals.canceled += result.canceled

        logger.info(
            f"[FIXED_RECURRING] Resynced {len(entries)} open-ended entries "
            f"(created={totals.created}, deleted={totals.deleted}, canceled={totals.canceled})"
        )
        return {
            "entries_synced": len(entries),
            "created": totals.created,
            "deleted": totals.deleted,
            "canceled": totals.canceled,
        }

    def occurrences_for_month(self, account: Account, period_month) -> List[FixedRecurringEntryOccurrence]:
        return (
            self.db.query(FixedRecurringEntryOccurrence)
            .join(FixedRecurringEntry)
            .filter(
                FixedRecurringEntry.account_id == account.id,
                FixedRecurringEntryOccurrence.period_month == period_month,
            )
            .order_by(FixedRecurringEntryOccurrence.occurs_on, FixedRecurringEntryOccurrence.id)
            .all()
        )

    def get_occurrence(self, account: Account, occurrence_id: UUID) -> FixedRecurringEntryOccurrence:
        occurrence = (
            self.db.query(FixedRecurringEntryOccurrence)
            .join(FixedRecurringEntry)
            .filter(
                FixedRecurringEntryOccurrence.id == occurrence_id,
                FixedRecurringEntry.account_id == account.id,
            )
            .first()
        )
        if not occurrence:
            raise NotFoundError("Fixed recurring occurrence", occurrence_id)
        return occurrence

    def _clean(self, account: Account, data: Dict[str, Any]) -> Dict[str, Any]:
        values = {field: value for field, value in data.items() if field in EDITABLE_FIELDS}

        if "effective_to" in values and not values["effective_to"]:
            values["effective_to"] = None
        if values.get("kind") is not None:
            values["kind"] = getattr(values["kind"], "value", values["kind"])

        if values.get("category_id") is not None:
            category = (
                self.db.query(Category)
                .filter(Category.id == values["category_id"], Category.account_id == account.id)
                .first()
            )
            if not category:
                raise ValidationError("category not found")
        return values
