"""Shared domain error messages and error types."""

from decimal import Decimal
from typing import Optional


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic.

    ``field`` and ``invoice_id`` name the offending input when there is one.
    """

    def __init__(
        self, message: str, field: Optional[str] = None, invoice_id: Optional[int] = None
    ):
        super().__init__(message)
        self.field = field
        self.invoice_id = invoice_id


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations or stale snapshots."""


class StorageError(DomainError):
    """The database could not be read."""


class SubmissionError(DomainError):
    """Persisting a record failed after validation passed."""


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def account_code_not_found(code: str) -> str:
    """Return message for missing account by code."""
    return f"Account with code '{code}' not found"


def invoice_not_found(invoice_id: int) -> str:
    """Return message for missing invoice."""
    return f"Invoice {invoice_id} not found"


def customer_not_found(customer_id: int) -> str:
    """Return message for missing customer."""
    return f"Customer {customer_id} not found"


def supplier_not_found(supplier_id: int) -> str:
    """Return message for missing supplier."""
    return f"Supplier {supplier_id} not found"


def fee_schedule_not_found(name: str) -> str:
    """Return message for missing fee schedule."""
    return f"Fee schedule '{name}' not found"


def amount_not_positive(invoice_id: int, amount: Decimal) -> str:
    """Return message for a non-positive requested amount."""
    return f"Payment amount for invoice {invoice_id} must be greater than 0 (got {amount})"


def amount_exceeds_pending(invoice_id: int, amount: Decimal, pending: Decimal) -> str:
    """Return message for a requested amount above the invoice's pending balance."""
    return (
        f"Payment amount {amount} for invoice {invoice_id} exceeds "
        f"pending amount {pending}"
    )


def unbalanced_transaction(debits: Decimal, credits: Decimal) -> str:
    """Return message for a transaction whose sides differ."""
    return f"Transaction is not balanced. Debits: {debits}, Credits: {credits}"
