from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID

from app.database import get_db, unit_of_work
from app.db_helpers import get_member_account
from app.models import Account, FixedRecurringEntry
from app.schemas import (
    CategoryResponse,
    FixedRecurringEntryCreate,
    FixedRecurringEntryResponse,
    FixedRecurringEntryUpdate,
)
from app.services.fixed_recurring_entry_service import FixedRecurringEntryService

router = APIRouter()


def serialize_entry(entry: FixedRecurringEntry) -> FixedRecurringEntryResponse:
    return FixedRecurringEntryResponse(
        id=entry.id,
        account_id=entry.account_id,
        category_id=entry.category_id,
        title=entry.title,
        kind=entry.kind,
        amount=entry.amount,
        day_of_month=entry.day_of_month,
        use_end_of_month=entry.use_end_of_month,
        effective_from=entry.effective_from,
        effective_to=entry.effective_to,
        memo=entry.memo,
        created_at=entry.created_at,
        updated_at=entry.updated_at,
        category=CategoryResponse.model_validate(entry.category) if entry.category else None,
    )


@router.get("/", response_model=List[FixedRecurringEntryResponse])
def list_fixed_recurring_entries(
    account: Account = Depends(get_member_account),
    db: Session = Depends(get_db)
):
    """List the account's fixed recurring entries, newest first."""
    entries = FixedRecurringEntryService(db).list_entries(account)
    return [serialize_entry(entry) for entry in entries]


@router.get("/{entry_id}", response_model=FixedRecurringEntryResponse)
def get_fixed_recurring_entry(
    entry_id: UUID,
    account: Account = Depends(get_member_account),
    db: Session = Depends(get_db)
):
    """Get a specific fixed recurring entry by ID."""
    entry = FixedRecurringEntryService(db).get_entry(account, entry_id)
    return serialize_entry(entry)


@router.post("/", response_model=FixedRecurringEntryResponse, status_code=201)
def create_fixed_recurring_entry(
    payload: FixedRecurringEntryCreate,
    account: Account = Depends(get_member_account),
    db: Session = Depends(get_db)
):
    """
    Create a fixed recurring entry and generate its monthly occurrences.

    The entry and its occurrences are committed together.
    """
    service = FixedRecurringEntryService(db)
    with unit_of_work(db):
        entry = service.create_entry(account, payload.model_dump())
    db.refresh(entry)
    return serialize_entry(entry)


@router.patch("/{entry_id}", response_model=FixedRecurringEntryResponse)
def update_fixed_recurring_entry(
    entry_id: UUID,
    updates: FixedRecurringEntryUpdate,
    account: Account = Depends(get_member_account),
    db: Session = Depends(get_db)
):
    """
    Update a fixed recurring entry and re-sync its occurrences.

    Narrowing the effective range removes scheduled occurrences and cancels
    applied ones outside the new range.
    """
    service = FixedRecurringEntryService(db)
    with unit_of_work(db):
        entry = service.get_entry(account, entry_id)
        entry = service.update_entry(entry, updates.model_dump(exclude_unset=True))
    db.refresh(entry)
    return serialize_entry(entry)


@router.delete("/{entry_id}", status_code=204)
def delete_fixed_recurring_entry(
    entry_id: UUID,
    account: Account = Depends(get_member_account),
    db: Session = Depends(get_db)
):
    """Delete a fixed recurring entry together with its occurrences."""
    service = FixedRecurringEntryService(db)
    with unit_of_work(db):
        entry = service.get_entry(account, entry_id)
        service.delete_entry(entry)
    return None
