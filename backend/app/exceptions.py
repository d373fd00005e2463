"""
Domain errors for fixed recurring entries and their occurrences.

Every error carries a machine-readable ``code`` so routes can map it to a
response without parsing messages.
"""
from typing import Iterable, List


class FixedRecurringError(Exception):
    """Base exception for the fixed recurring domain."""

    code: str = "FIXED_RECURRING_ERROR"


class ValidationError(FixedRecurringError):
    """A template or occurrence violates one of its invariants. Nothing is persisted."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, messages: Iterable[str] | str):
        if isinstance(messages, str):
            messages = [messages]
        self.messages: List[str] = list(messages)
        super().__init__("; ".join(self.messages))


class InvalidStateError(FixedRecurringError):
    """An occurrence is not in the status an action requires."""

    code: str = "INVALID_STATE"

    def __init__(self, occurrence_id, status: str, action: str):
        self.occurrence_id = occurrence_id
        self.status = status
        self.action = action
        super().__init__(f"Cannot {action} occurrence {occurrence_id} with status '{status}'")


class NotFoundError(FixedRecurringError):
    """Unknown id, or a record outside the caller's account."""

    code: str = "NOT_FOUND"

    def __init__(self, resource: str, resource_id=None):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} not found")
