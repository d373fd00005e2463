from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime
from typing import Optional, Literal
from uuid import UUID


EntryKindLiteral = Literal["expense", "income"]


# Category Schemas
class CategoryResponse(BaseModel):
    id: UUID
    name: str
    category_type: str
    color: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


# Fixed Recurring Entry Schemas
class FixedRecurringEntryBase(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    kind: EntryKindLiteral = "expense"
    amount: int = Field(gt=0)  # minor currency unit
    day_of_month: int = Field(ge=1, le=31)
    use_end_of_month: bool = False
    effective_from: date  # YYYY-MM-01
    effective_to: Optional[date] = None  # YYYY-MM-01, omitted = open-ended
    category_id: UUID
    memo: Optional[str] = None


class FixedRecurringEntryCreate(FixedRecurringEntryBase):
    pass


class FixedRecurringEntryUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    kind: Optional[EntryKindLiteral] = None
    amount: Optional[int] = Field(default=None, gt=0)
    day_of_month: Optional[int] = Field(default=None, ge=1, le=31)
    use_end_of_month: Optional[bool] = None
    effective_from: Optional[date] = None
    effective_to: Optional[date] = None
    category_id: Optional[UUID] = None
    memo: Optional[str] = None


class FixedRecurringEntryResponse(FixedRecurringEntryBase):
    id: UUID
    account_id: UUID
    created_at: datetime
    updated_at: datetime
    category: Optional[CategoryResponse] = None

    model_config = ConfigDict(from_attributes=True)


# Occurrence Schemas
class LinkedTransactionResponse(BaseModel):
    kind: EntryKindLiteral
    id: UUID


class FixedRecurringOccurrenceResponse(BaseModel):
    id: UUID
    fixed_recurring_entry_id: UUID
    period_month: date
    occurs_on: date
    status: Literal["scheduled", "applied", "canceled"]
    applied_at: Optional[datetime] = None
    linked_transaction: Optional[LinkedTransactionResponse] = None
    created_at: datetime
    updated_at: datetime
    fixed_recurring_entry: Optional[FixedRecurringEntryResponse] = None
