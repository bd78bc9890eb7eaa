"""Customer and supplier statements with running balances.

Sign conventions differ by role, so they are spelled out rather than
derived:

Customer (balance = accounts receivable, what they owe us)
    ORDER raises it; PAYMENT, RETURN and REFUND lower it.

Supplier (balance = accounts payable, what we owe them)
    ORDER (a purchase invoice) raises it; PAYMENT and RETURN lower it;
    REFUND (money the supplier sends back to us) raises it.

OPENING_BALANCE entries carry their own sign in both cases.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from shopledger.database.base import Database
from shopledger.domain import errors
from shopledger.domain.entities import (
    EntityRole,
    LedgerEntry,
    LedgerEntryType,
    PaymentType,
    StatementEntry,
)
from shopledger.domain.errors import NotFoundError

ZERO = Decimal("0")

_DIRECTION = {
    EntityRole.CUSTOMER: {
        LedgerEntryType.ORDER: 1,
        LedgerEntryType.PAYMENT: -1,
        LedgerEntryType.RETURN: -1,
        LedgerEntryType.REFUND: -1,
    },
    EntityRole.SUPPLIER: {
        LedgerEntryType.ORDER: 1,
        LedgerEntryType.PAYMENT: -1,
        LedgerEntryType.RETURN: -1,
        LedgerEntryType.REFUND: 1,
    },
}

_LABELS = {
    EntityRole.CUSTOMER: ("Owes", "Advance"),
    EntityRole.SUPPLIER: ("We Owe", "They Owe"),
}


def signed_amount(entry: StatementEntry, role: EntityRole) -> Decimal:
    """Effect of one entry on the running balance for the given role."""
    if entry.type == LedgerEntryType.OPENING_BALANCE:
        return entry.amount
    return abs(entry.amount) * _DIRECTION[role][entry.type]


def build_statement(entries: Iterable[StatementEntry], role: EntityRole) -> list[LedgerEntry]:
    """Merge entries into one statement, most recent first.

    Entries are sorted by date, then entry type, then reference, and the
    running balance is computed oldest-first before the list is reversed.
    """
    ordered = sorted(entries, key=lambda e: (e.date, e.type.sort_rank, e.reference))
    balance = ZERO
    lines = []
    for entry in ordered:
        change = signed_amount(entry, role)
        balance += change
        lines.append(
            LedgerEntry(
                date=entry.date,
                type=entry.type,
                debit=change if change > 0 else ZERO,
                credit=-change if change < 0 else ZERO,
                balance=balance,
                reference=entry.reference,
            )
        )
    lines.reverse()
    return lines


def balance_label(balance: Decimal, role: EntityRole) -> str:
    """Human label for a statement balance.

    A non-negative customer balance is money owed to us and a negative one is
    the customer's advance; for suppliers it is money we owe versus money
    they owe us.
    """
    owed, advance = _LABELS[role]
    if balance >= 0:
        return f"{owed}: {balance:,.2f}"
    return f"{advance}: {-balance:,.2f}"


class StatementService:
    """Service for building customer and supplier statements from stored data."""

    def __init__(self, db: Database):
        """Initialize statement service.

        Args:
            db: Database instance
        """
        self.db = db

    def collect_entries(self, role: EntityRole, entity_id: int) -> list[StatementEntry]:
        """Gather opening balance, invoices, payments, returns and refunds of an entity.

        Only cash payments are listed: drawing on an advance moves credit the
        entity already has onto an invoice and leaves the net balance as is.
        Refunds only come from suppliers; customer returns stay on account.

        Raises:
            NotFoundError: If the customer or supplier doesn't exist
        """
        if role == EntityRole.CUSTOMER:
            party = self.db.get_customer(entity_id)
            if party is None:
                raise NotFoundError(errors.customer_not_found(entity_id))
            payments = self.db.list_payments(
                customer_id=entity_id, payment_type=PaymentType.CUSTOMER_PAYMENT
            )
            returns = self.db.list_returns(customer_id=entity_id)
            refunds = []
        else:
            party = self.db.get_supplier(entity_id)
            if party is None:
                raise NotFoundError(errors.supplier_not_found(entity_id))
            payments = self.db.list_payments(
                supplier_id=entity_id, payment_type=PaymentType.SUPPLIER_PAYMENT
            )
            returns = self.db.list_returns(supplier_id=entity_id)
            refunds = self.db.list_payments(
                supplier_id=entity_id, payment_type=PaymentType.REFUND
            )

        invoices = self.db.fetch_invoices_for_entity(role, entity_id)

        entries: list[StatementEntry] = []
        if party.opening_balance != 0:
            first_date = min(
                [inv.date for inv in invoices]
                + [p.date for p in payments]
                + [r.date for r in returns]
                + [p.date for p in refunds],
                default=date.today(),
            )
            opening_date = first_date if party.created_at is None else min(
                first_date, party.created_at.date()
            )
            entries.append(
                StatementEntry(
                    date=opening_date,
                    type=LedgerEntryType.OPENING_BALANCE,
                    amount=party.opening_balance,
                    reference="Opening Balance",
                )
            )
        for inv in invoices:
            entries.append(
                StatementEntry(
                    date=inv.date,
                    type=LedgerEntryType.ORDER,
                    amount=inv.total_amount,
                    reference=inv.number,
                )
            )
            if not inv.payments and inv.legacy_payment_amount:
                entries.append(
                    StatementEntry(
                        date=inv.date,
                        type=LedgerEntryType.PAYMENT,
                        amount=inv.legacy_payment_amount,
                        reference=f"{inv.number} (initial payment)",
                    )
                )
        for payment in payments:
            if payment.amount > 0:
                entries.append(
                    StatementEntry(
                        date=payment.date,
                        type=LedgerEntryType.PAYMENT,
                        amount=payment.amount,
                        reference=payment.payment_number or "",
                    )
                )
        for ret in returns:
            entries.append(
                StatementEntry(
                    date=ret.date,
                    type=LedgerEntryType.RETURN,
                    amount=ret.total_amount,
                    reference=ret.return_number,
                )
            )
        for refund in refunds:
            entries.append(
                StatementEntry(
                    date=refund.date,
                    type=LedgerEntryType.REFUND,
                    amount=refund.amount,
                    reference=refund.payment_number or "",
                )
            )
        return entries

    def get_statement(
        self,
        role: EntityRole,
        entity_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[LedgerEntry]:
        """Statement of a customer or supplier, most recent first.

        The date range filters the returned lines; balances still include
        everything before ``start_date``.
        """
        statement = build_statement(self.collect_entries(role, entity_id), role)
        if start_date is not None:
            statement = [e for e in statement if e.date >= start_date]
        if end_date is not None:
            statement = [e for e in statement if e.date <= end_date]
        return statement
