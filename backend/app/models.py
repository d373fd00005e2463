"""
SQLAlchemy models for accounts, the expense/income ledger and fixed recurring entries.
"""
import enum
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from sqlalchemy import (
    Column,
    String,
    Boolean,
    Date,
    DateTime,
    Text,
    Integer,
    ForeignKey,
    Index,
    UniqueConstraint,
    CheckConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from app.database import Base


class EntryKind(str, enum.Enum):
    EXPENSE = "expense"
    INCOME = "income"


class OccurrenceStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    APPLIED = "applied"
    CANCELED = "canceled"


@dataclass(frozen=True)
class LinkedTransactionRef:
    """Reference to the expense or income record an applied occurrence created."""
    kind: EntryKind
    id: uuid.UUID


class User(Base):
    """
    User model. Authentication itself is handled upstream; this row exists for
    foreign keys and attribution of ledger records.
    """
    __tablename__ = "users"

    id = Column(String, primary_key=True)
    name = Column(Text, nullable=True)
    email = Column(Text, unique=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    memberships = relationship("Membership", back_populates="user", cascade="all, delete-orphan")


class Account(Base):
    """
    Shared household/team account. Members see and act on everything inside it.
    """
    __tablename__ = "accounts"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    account_type = Column(String(20), nullable=False, default="personal")  # personal, shared
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    memberships = relationship("Membership", back_populates="account", cascade="all, delete-orphan")
    categories = relationship("Category", back_populates="account", cascade="all, delete-orphan")
    fixed_recurring_entries = relationship(
        "FixedRecurringEntry", back_populates="account", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_accounts_owner", "owner_id"),
    )


class Membership(Base):
    __tablename__ = "memberships"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    account_id = Column(Uuid(as_uuid=True), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    role = Column(String(20), nullable=False, default="member")  # owner, member
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    account = relationship("Account", back_populates="memberships")
    user = relationship("User", back_populates="memberships")

    __table_args__ = (
        Index("idx_memberships_user", "user_id"),
        UniqueConstraint("account_id", "user_id", name="memberships_account_user"),
    )


class Category(Base):
    __tablename__ = "categories"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    account_id = Column(Uuid(as_uuid=True), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(50), nullable=False)
    category_type = Column(String(20), nullable=False, default=EntryKind.EXPENSE.value)  # expense, income
    color = Column(String(7))  # Hex color
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    account = relationship("Account", back_populates="categories")

    __table_args__ = (
        Index("idx_categories_account", "account_id"),
        UniqueConstraint("account_id", "category_type", "name", name="categories_account_type_name"),
    )


class Expense(Base):
    """
    Expense ledger record. Amounts are integers in the minor currency unit.
    """
    __tablename__ = "expenses"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    account_id = Column(Uuid(as_uuid=True), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False)
    category_id = Column(Uuid(as_uuid=True), ForeignKey("categories.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    amount = Column(Integer, nullable=False)
    memo = Column(Text, nullable=True)
    spent_on = Column(Date, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    category = relationship("Category")

    __table_args__ = (
        Index("idx_expenses_account_spent_on", "account_id", "spent_on"),
        CheckConstraint("amount > 0", name="expenses_amount_positive"),
    )


class Income(Base):
    """
    Income ledger record. Amounts are integers in the minor currency unit.
    """
    __tablename__ = "incomes"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    account_id = Column(Uuid(as_uuid=True), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False)
    category_id = Column(Uuid(as_uuid=True), ForeignKey("categories.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    amount = Column(Integer, nullable=False)
    memo = Column(Text, nullable=True)
    received_on = Column(Date, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    category = relationship("Category")

    __table_args__ = (
        Index("idx_incomes_account_received_on", "account_id", "received_on"),
        CheckConstraint("amount > 0", name="incomes_amount_positive"),
    )


class FixedRecurringEntry(Base):
    """
    Template for a fixed monthly expense or income (rent, salary, subscriptions).
    Occurrences for each month in the effective range are kept in sync by
    FixedRecurringSynchronizer.
    """
    __tablename__ = "fixed_recurring_entries"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    account_id = Column(Uuid(as_uuid=True), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id = Column(Uuid(as_uuid=True), ForeignKey("categories.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    kind = Column(String(20), nullable=False, default=EntryKind.EXPENSE.value)  # expense, income
    amount = Column(Integer, nullable=False)  # minor currency unit
    memo = Column(Text, nullable=True)
    day_of_month = Column(Integer, nullable=False)
    use_end_of_month = Column(Boolean, nullable=False, default=False)
    effective_from = Column(Date, nullable=False)  # first day of the start month
    effective_to = Column(Date, nullable=True)  # first day of the last month, NULL = open-ended
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    account = relationship("Account", back_populates="fixed_recurring_entries")
    category = relationship("Category")
    occurrences = relationship(
        "FixedRecurringEntryOccurrence",
        back_populates="entry",
        cascade="all, delete-orphan",
        order_by="FixedRecurringEntryOccurrence.period_month",
    )

    __table_args__ = (
        Index("idx_fixed_recurring_entries_account", "account_id"),
        Index("idx_fixed_recurring_entries_open_ended", "effective_to"),
        CheckConstraint("amount > 0", name="fixed_recurring_entries_amount_positive"),
        CheckConstraint("day_of_month BETWEEN 1 AND 31", name="fixed_recurring_entries_day_range"),
    )

    @property
    def is_open_ended(self) -> bool:
        return self.effective_to is None


class FixedRecurringEntryOccurrence(Base):
    """
    One month of a fixed recurring entry.

    status is scheduled until a member applies it (an expense/income record is
    created and linked) and canceled once that record is destroyed again.
    """
    __tablename__ = "fixed_recurring_entry_occurrences"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    fixed_recurring_entry_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("fixed_recurring_entries.id", ondelete="CASCADE"),
        nullable=False,
    )
    period_month = Column(Date, nullable=False)  # always the first day of the month
    occurs_on = Column(Date, nullable=False)
    status = Column(String(20), nullable=False, default=OccurrenceStatus.SCHEDULED.value)
    applied_at = Column(DateTime, nullable=True)
    linked_kind = Column(String(20), nullable=True)  # expense, income
    linked_transaction_id = Column(Uuid(as_uuid=True), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    entry = relationship("FixedRecurringEntry", back_populates="occurrences")

    __table_args__ = (
        Index("idx_fixed_recurring_occurrences_entry", "fixed_recurring_entry_id"),
        Index("idx_fixed_recurring_occurrences_period", "period_month"),
        UniqueConstraint(
            "fixed_recurring_entry_id", "period_month", name="fixed_recurring_occurrences_entry_period"
        ),
        CheckConstraint(
            "(linked_kind IS NULL) = (linked_transaction_id IS NULL)",
            name="fixed_recurring_occurrences_link_complete",
        ),
        CheckConstraint(
            "(status = 'applied') = (linked_transaction_id IS NOT NULL)",
            name="fixed_recurring_occurrences_link_iff_applied",
        ),
        CheckConstraint(
            "(status = 'applied') = (applied_at IS NOT NULL)",
            name="fixed_recurring_occurrences_applied_at_iff_applied",
        ),
    )

    @property
    def linked_transaction(self) -> Optional[LinkedTransactionRef]:
        if self.linked_transaction_id is None:
            return None
        return LinkedTransactionRef(kind=EntryKind(self.linked_kind), id=self.linked_transaction_id)
