"""Domain model entities for shopledger.

These are pure data classes representing business concepts, independent of
database schema. Services and the pure ledger/fee functions only ever see
these types; the database layer converts its rows through the mappers.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


class AccountType(str, Enum):
    """Chart of accounts classification."""

    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"

    @property
    def is_debit_increase(self) -> bool:
        """True when a debit increases the balance of this account type."""
        return self in (AccountType.ASSET, AccountType.EXPENSE)


class PaymentType(str, Enum):
    CUSTOMER_PAYMENT = "CUSTOMER_PAYMENT"
    SUPPLIER_PAYMENT = "SUPPLIER_PAYMENT"
    REFUND = "REFUND"


class InvoiceKind(str, Enum):
    """Orders are customer invoices, purchases are supplier invoices."""

    ORDER = "ORDER"
    PURCHASE = "PURCHASE"


class EntityRole(str, Enum):
    CUSTOMER = "CUSTOMER"
    SUPPLIER = "SUPPLIER"


class LedgerEntryType(str, Enum):
    """Statement entry kinds.

    Declaration order is also the tiebreak order for entries sharing a date.
    """

    OPENING_BALANCE = "OPENING_BALANCE"
    ORDER = "ORDER"
    PAYMENT = "PAYMENT"
    RETURN = "RETURN"
    REFUND = "REFUND"

    @property
    def sort_rank(self) -> int:
        return list(LedgerEntryType).index(self)


class FeeMode(str, Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED = "FIXED"
    RANGE_BASED = "RANGE_BASED"


class FeeDomain(str, Enum):
    """Where a fee rule set is used.

    COD fees fall back to the flat default fee; quantity pricing charges the
    default only for units beyond the first.
    """

    COD = "COD"
    QUANTITY = "QUANTITY"


class SubmissionStatus(str, Enum):
    POSTED = "POSTED"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


@dataclass(frozen=True)
class Account:
    """Chart of accounts entry with its cached balance."""

    id: int
    code: str
    name: str
    type: AccountType
    balance: Decimal
    sub_type: Optional[str] = None


@dataclass(frozen=True)
class TransactionLine:
    """One side of a posted transaction.

    ``date`` and ``transaction_number`` are copied from the owning
    transaction so that a list of lines can be ordered on its own.
    """

    account_id: int
    debit_amount: Decimal
    credit_amount: Decimal
    date: Optional[date] = None
    transaction_number: Optional[str] = None
    description: Optional[str] = None
    transaction_id: Optional[int] = None


@dataclass(frozen=True)
class Transaction:
    id: int
    transaction_number: str
    date: date
    description: Optional[str]
    lines: tuple[TransactionLine, ...]
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Payment:
    """A payment record.

    ``amount`` is only the cash/bank portion; credit drawn from the entity's
    advance balance is carried separately in ``advance_amount_used``.
    """

    date: date
    type: PaymentType
    amount: Decimal
    account_id: Optional[int] = None
    customer_id: Optional[int] = None
    supplier_id: Optional[int] = None
    invoice_id: Optional[int] = None
    use_advance_balance: bool = False
    advance_amount_used: Decimal = Decimal("0")
    id: Optional[int] = None
    payment_number: Optional[str] = None
    transaction_id: Optional[int] = None

    @property
    def applied_amount(self) -> Decimal:
        """Amount settled on the invoice: cash plus advance credit."""
        return self.amount + self.advance_amount_used


@dataclass(frozen=True)
class Invoice:
    """Purchase invoice or customer order, with the payments that settle it."""

    id: int
    number: str
    kind: InvoiceKind
    date: date
    total_amount: Decimal
    customer_id: Optional[int] = None
    supplier_id: Optional[int] = None
    payments: tuple[Payment, ...] = ()
    entity_payments: tuple[Payment, ...] = ()
    legacy_payment_amount: Optional[Decimal] = None


@dataclass(frozen=True)
class Customer:
    id: int
    name: str
    phone: Optional[str]
    opening_balance: Decimal
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Supplier:
    id: int
    name: str
    opening_balance: Decimal
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Return:
    id: int
    return_number: str
    date: date
    total_amount: Decimal
    refund_amount: Decimal
    invoice_id: Optional[int] = None
    customer_id: Optional[int] = None
    supplier_id: Optional[int] = None


@dataclass(frozen=True)
class BalanceSnapshot:
    """Net position with a customer or supplier.

    A negative ``pending`` is an overpayment held as usable credit.
    """

    pending: Decimal

    @property
    def available_advance(self) -> Decimal:
        return max(Decimal("0"), -self.pending)


@dataclass(frozen=True)
class EntityBalance:
    """Balance breakdown behind a snapshot.

    ``total_refunds`` is cash a supplier paid back to us against returns.
    """

    entity_id: int
    role: EntityRole
    name: str
    opening_balance: Decimal
    total_invoiced: Decimal
    total_paid: Decimal
    total_returns: Decimal
    total_refunds: Decimal = Decimal("0")

    @property
    def pending(self) -> Decimal:
        return (
            self.opening_balance
            + self.total_invoiced
            - self.total_paid
            - self.total_returns
            + self.total_refunds
        )

    @property
    def snapshot(self) -> BalanceSnapshot:
        return BalanceSnapshot(pending=self.pending)


@dataclass(frozen=True)
class StatementEntry:
    """Raw input to the statement builder: an unsigned amount of some kind.

    OPENING_BALANCE entries carry a signed amount instead.
    """

    date: date
    type: LedgerEntryType
    amount: Decimal
    reference: str = ""


@dataclass(frozen=True)
class LedgerEntry:
    """Statement line with its running balance."""

    date: date
    type: LedgerEntryType
    debit: Decimal
    credit: Decimal
    balance: Decimal
    reference: str = ""


@dataclass(frozen=True)
class AccountLedgerEntry:
    """Account ledger line with its running balance."""

    date: date
    transaction_number: Optional[str]
    description: Optional[str]
    debit: Decimal
    credit: Decimal
    balance: Decimal


@dataclass(frozen=True)
class FeeRule:
    """Inclusive range ``min..max``; ``max=None`` is unbounded."""

    min: Decimal
    max: Optional[Decimal]
    fee: Decimal

    def matches(self, value: Decimal) -> bool:
        return self.min <= value and (self.max is None or value <= self.max)


@dataclass(frozen=True)
class FeeRuleConfig:
    mode: FeeMode
    domain: FeeDomain = FeeDomain.COD
    rules: tuple[FeeRule, ...] = ()
    default_fee: Decimal = Decimal("0")
    percentage: Optional[Decimal] = None
    fixed_amount: Optional[Decimal] = None


@dataclass(frozen=True)
class FeeSchedule:
    id: int
    name: str
    config: FeeRuleConfig
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class PaymentSelection:
    """Amount of one invoice the caller wants to settle."""

    invoice_id: int
    requested_amount: Decimal


@dataclass(frozen=True)
class SubmissionResult:
    invoice_id: Optional[int]
    status: SubmissionStatus
    payment_id: Optional[int] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class AllocationReport:
    """Per-item outcome of posting an allocation."""

    results: tuple[SubmissionResult, ...] = field(default_factory=tuple)

    @property
    def succeeded(self) -> tuple[SubmissionResult, ...]:
        return tuple(r for r in self.results if r.status == SubmissionStatus.POSTED)

    @property
    def failed(self) -> tuple[SubmissionResult, ...]:
        return tuple(r for r in self.results if r.status == SubmissionStatus.FAILED)

    @property
    def skipped(self) -> tuple[SubmissionResult, ...]:
        return tuple(r for r in self.results if r.status == SubmissionStatus.SKIPPED)

    @property
    def is_complete(self) -> bool:
        return all(r.status == SubmissionStatus.POSTED for r in self.results)
