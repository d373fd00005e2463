"""
Template invariants enforced by FixedRecurringEntryService.
"""
from datetime import date

import pytest

from app.exceptions import ValidationError
from app.models import Account, Category, FixedRecurringEntry, FixedRecurringEntryOccurrence
from app.services.fixed_recurring_entry_service import FixedRecurringEntryService
from app.services.fixed_recurring_validation import occurrence_errors, validate_occurrence


@pytest.fixture
def service(db, synchronizer):
    return FixedRecurringEntryService(db, synchronizer=synchronizer)


@pytest.fixture
def payload(expense_category):
    return {
        "title": "Internet",
        "kind": "expense",
        "amount": 4980,
        "day_of_month": 27,
        "use_end_of_month": False,
        "effective_from": date(2025, 1, 1),
        "effective_to": date(2025, 6, 1),
        "category_id": expense_category.id,
        "memo": None,
    }


def test_create_entry_syncs_occurrences(db, service, account, payload):
    entry = service.create_entry(account, payload)

    count = db.query(FixedRecurringEntryOccurrence).filter_by(fixed_recurring_entry_id=entry.id).count()
    assert count == 6


@pytest.mark.parametrize("day", [29, 30, 31])
def test_late_days_require_end_of_month(service, account, payload, day):
    payload["day_of_month"] = day

    with pytest.raises(ValidationError) as exc_info:
        service.create_entry(account, payload)
    assert any("use_end_of_month" in m for m in exc_info.value.messages)


def test_late_day_with_end_of_month_is_accepted(service, account, payload):
    payload.update(day_of_month=31, use_end_of_month=True)

    entry = service.create_entry(account, payload)
    assert entry.day_of_month == 31


def test_inverted_range_is_rejected(db, service, account, payload):
    payload.update(effective_from=date(2025, 6, 1), effective_to=date(2025, 1, 1))

    with pytest.raises(ValidationError):
        service.create_entry(account, payload)
    assert db.query(FixedRecurringEntry).count() == 0


def test_dates_must_be_month_starts(service, account, payload):
    payload.update(effective_from=date(2025, 1, 15), effective_to=date(2025, 6, 2))

    with pytest.raises(ValidationError) as exc_info:
        service.create_entry(account, payload)
    assert len(exc_info.value.messages) == 2


def test_amount_must_be_positive(service, account, payload):
    payload["amount"] = 0

    with pytest.raises(ValidationError):
        service.create_entry(account, payload)


def test_category_from_another_account_is_not_found(db, user, service, account, payload):
    other = Account(owner_id=user.id, name="Other")
    db.add(other)
    db.flush()
    foreign = Category(account_id=other.id, name="Housing", category_type="expense")
    db.add(foreign)
    db.flush()
    payload["category_id"] = foreign.id

    with pytest.raises(ValidationError) as exc_info:
        service.create_entry(account, payload)
    assert exc_info.value.messages == ["category not found"]


def test_category_type_must_match_kind(service, account, payload, income_category):
    payload["category_id"] = income_category.id

    with pytest.raises(ValidationError) as exc_info:
        service.create_entry(account, payload)
    assert "category type does not match the entry kind" in exc_info.value.messages


def test_blank_effective_to_means_open_ended(db, service, account, payload):
    payload["effective_to"] = ""

    entry = service.create_entry(account, payload)

    assert entry.effective_to is None
    # today 2025-01-15 with a two month horizon
    periods = [
        o.period_month
        for o in db.query(FixedRecurringEntryOccurrence)
        .filter_by(fixed_recurring_entry_id=entry.id)
        .order_by(FixedRecurringEntryOccurrence.period_month)
    ]
    assert periods == [date(2025, 1, 1), date(2025, 2, 1), date(2025, 3, 1)]


def test_update_rejects_late_day_without_end_of_month(service, account, payload):
    entry = service.create_entry(account, payload)

    with pytest.raises(ValidationError):
        service.update_entry(entry, {"day_of_month": 30})


def test_delete_entry_removes_occurrences(db, service, account, payload):
    entry = service.create_entry(account, payload)

    service.delete_entry(entry)

    assert db.query(FixedRecurringEntryOccurrence).count() == 0


def test_resync_open_ended_only_touches_open_entries(db, service, account, payload, clock):
    closed = service.create_entry(account, payload)
    payload["effective_to"] = None
    open_entry = service.create_entry(account, dict(payload, title="Phone"))

    clock.advance_to(date(2025, 4, 3))
    summary = service.resync_open_ended()

    assert summary["entries_synced"] == 1
    assert summary["created"] == 3  # April, May, June
    closed_count = db.query(FixedRecurringEntryOccurrence).filter_by(fixed_recurring_entry_id=closed.id).count()
    open_count = db.query(FixedRecurringEntryOccurrence).filter_by(fixed_recurring_entry_id=open_entry.id).count()
    assert closed_count == 6
    assert open_count == 6


def test_occurrence_outside_its_month_is_invalid():
    occurrence = FixedRecurringEntryOccurrence(
        period_month=date(2025, 1, 1),
        occurs_on=date(2025, 2, 1),
        status="scheduled",
    )
    assert occurrence_errors(occurrence) == ["occurs_on must fall in the same month as period_month"]


def test_applied_occurrence_without_link_fails_validation():
    occurrence = FixedRecurringEntryOccurrence(
        period_month=date(2025, 1, 1),
        occurs_on=date(2025, 1, 10),
        status="applied",
    )

    with pytest.raises(ValidationError) as exc_info:
        validate_occurrence(occurrence)
    assert len(exc_info.value.messages) == 2
