"""
Invariant checks for fixed recurring entries and occurrences.

Both functions collect every problem and raise a single ValidationError so the
caller can show all of them at once.
"""
from typing import List

from sqlalchemy.orm import Session

from app.exceptions import ValidationError
from app.models import (
    Category,
    EntryKind,
    FixedRecurringEntry,
    FixedRecurringEntryOccurrence,
    OccurrenceStatus,
)
from app.services.recurrence_calendar import is_month_start, month_start

MAX_DAY_WITHOUT_END_OF_MONTH = 28


def entry_errors(db: Session, entry: FixedRecurringEntry) -> List[str]:
    errors: List[str] = []

    if not entry.title or not entry.title.strip():
        errors.append("title can't be blank")

    if entry.kind not in {k.value for k in EntryKind}:
        errors.append("kind must be expense or income")

    if entry.amount is None or entry.amount <= 0:
        errors.append("amount must be greater than 0")

    if entry.use_end_of_month is None:
        errors.append("use_end_of_month can't be blank")

    if entry.day_of_month is None or not 1 <= entry.day_of_month <= 31:
        errors.append("day_of_month must be between 1 and 31")
    elif entry.use_end_of_month is False and entry.day_of_month > MAX_DAY_WITHOUT_END_OF_MONTH:
        errors.append(
            "day_of_month must be between 1 and 28 unless use_end_of_month is enabled"
        )

    if entry.effective_from is None:
        errors.append("effective_from can't be blank")
    elif not is_month_start(entry.effective_from):
        errors.append("effective_from must be the first day of a month (YYYY-MM-01)")

    if entry.effective_to is not None and not is_month_start(entry.effective_to):
        errors.append("effective_to must be the first day of a month (YYYY-MM-01)")

    if (
        entry.effective_from is not None
        and entry.effective_to is not None
        and entry.effective_to < entry.effective_from
    ):
        errors.append("effective_to must be on or after effective_from")

    category = None
    if entry.category_id is not None:
        category = db.query(Category).filter(Category.id == entry.category_id).first()
    if category is None:
        errors.append("category not found")
    else:
        if category.account_id != entry.account_id:
            errors.append("category does not belong to the account")
        if entry.kind and category.category_type != entry.kind:
            errors.append("category type does not match the entry kind")

    return errors


def validate_entry(db: Session, entry: FixedRecurringEntry) -> None:
    errors = entry_errors(db, entry)
    if errors:
        raise ValidationError(errors)


def occurrence_errors(occurrence: FixedRecurringEntryOccurrence) -> List[str]:
    errors: List[str] = []

    if occurrence.period_month is None or occurrence.occurs_on is None:
        errors.append("period_month and occurs_on are required")
        return errors

    if not is_month_start(occurrence.period_month):
        errors.append("period_month must be the first day of a month (YYYY-MM-01)")
    if month_start(occurrence.occurs_on) != month_start(occurrence.period_month):
        errors.append("occurs_on must fall in the same month as period_month")

    applied = occurrence.status == OccurrenceStatus.APPLIED.value
    if applied != (occurrence.applied_at is not None):
        errors.append("applied_at must be set exactly when the occurrence is applied")
    if applied != (occurrence.linked_transaction is not None):
        errors.append("a linked transaction must be set exactly when the occurrence is applied")

    return errors


def validate_occurrence(occurrence: FixedRecurringEntryOccurrence) -> None:
    errors = occurrence_errors(occurrence)
    if errors:
        raise ValidationError(errors)
