from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID

from app.database import get_db, unit_of_work
from app.db_helpers import get_current_user, get_member_account
from app.models import Account, FixedRecurringEntryOccurrence, User
from app.routes.fixed_recurring_entries import serialize_entry
from app.schemas import (
    FixedRecurringOccurrenceResponse,
    LinkedTransactionResponse,
)
from app.services.fixed_recurring_entry_service import FixedRecurringEntryService
from app.services.occurrence_applier import OccurrenceApplier

router = APIRouter()


def serialize_occurrence(occurrence: FixedRecurringEntryOccurrence) -> FixedRecurringOccurrenceResponse:
    link = occurrence.linked_transaction
    return FixedRecurringOccurrenceResponse(
        id=occurrence.id,
        fixed_recurring_entry_id=occurrence.fixed_recurring_entry_id,
        period_month=occurrence.period_month,
        occurs_on=occurrence.occurs_on,
        status=occurrence.status,
        applied_at=occurrence.applied_at,
        linked_transaction=LinkedTransactionResponse(kind=link.kind.value, id=link.id) if link else None,
        created_at=occurrence.created_at,
        updated_at=occurrence.updated_at,
        fixed_recurring_entry=serialize_entry(occurrence.entry),
    )


def _parse_month(value: str):
    try:
        return datetime.strptime(value, "%Y-%m").date()
    except ValueError as exc:
        raise HTTPException(
            status_code=422,
            detail="month must be in YYYY-MM format",
        ) from exc


@router.get("/", response_model=List[FixedRecurringOccurrenceResponse])
def list_fixed_recurring_occurrences(
    month: str = Query(..., description="Month to list, YYYY-MM"),
    account: Account = Depends(get_member_account),
    db: Session = Depends(get_db)
):
    """List the account's occurrences for one month, ordered by date."""
    period_month = _parse_month(month)
    occurrences = FixedRecurringEntryService(db).occurrences_for_month(account, period_month)
    return [serialize_occurrence(o) for o in occurrences]


@router.post("/{occurrence_id}/apply", response_model=FixedRecurringOccurrenceResponse)
def apply_fixed_recurring_occurrence(
    occurrence_id: UUID,
    account: Account = Depends(get_member_account),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Record a scheduled occurrence as a real expense or income."""
    service = FixedRecurringEntryService(db)
    with unit_of_work(db):
        occurrence = service.get_occurrence(account, occurrence_id)
        OccurrenceApplier(db).apply(occurrence, user)
    db.refresh(occurrence)
    return serialize_occurrence(occurrence)


@router.post("/{occurrence_id}/cancel", response_model=FixedRecurringOccurrenceResponse)
def cancel_fixed_recurring_occurrence(
    occurrence_id: UUID,
    account: Account = Depends(get_member_account),
    db: Session = Depends(get_db)
):
    """Undo an applied occurrence. The linked expense/income is deleted."""
    service = FixedRecurringEntryService(db)
    with unit_of_work(db):
        occurrence = service.get_occurrence(account, occurrence_id)
        OccurrenceApplier(db).cancel(occurrence)
    db.refresh(occurrence)
    return serialize_occurrence(occurrence)
