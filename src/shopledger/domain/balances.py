"""Customer and supplier balance calculation."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from shopledger.database.base import Database
from shopledger.domain import errors
from shopledger.domain.entities import (
    AccountType,
    BalanceSnapshot,
    EntityBalance,
    EntityRole,
    Invoice,
    Payment,
    PaymentType,
)
from shopledger.domain.errors import NotFoundError

ZERO = Decimal("0")


@dataclass(frozen=True)
class BalanceTotals:
    """Tenant-wide totals for the balances dashboard."""

    total_receivables: Decimal
    total_payables: Decimal
    cash_position: Decimal
    customer_count: int
    supplier_count: int

    @property
    def net_balance(self) -> Decimal:
        return self.total_receivables - self.total_payables


def cash_paid(invoices: Iterable[Invoice], payments: Iterable[Payment]) -> Decimal:
    """Cash an entity has paid, counting each payment once.

    ``payments`` are all of the entity's payments, linked or not. Invoices
    with no linked payment records fall back to their legacy
    ``payment_amount``. Advance credit is not counted: using it only moves
    credit the entity already has.
    """
    total = sum((p.amount for p in payments), ZERO)
    for invoice in invoices:
        if not invoice.payments and invoice.legacy_payment_amount:
            total += invoice.legacy_payment_amount
    return total


class BalanceService:
    """Service for computing customer AR and supplier AP balances."""

    def __init__(self, db: Database):
        """Initialize balance service.

        Args:
            db: Database instance
        """
        self.db = db

    def customer_balance(self, customer_id: int) -> EntityBalance:
        """Accounts receivable position of a customer.

        Raises:
            NotFoundError: If the customer doesn't exist
        """
        customer = self.db.get_customer(customer_id)
        if customer is None:
            raise NotFoundError(errors.customer_not_found(customer_id))

        invoices = self.db.fetch_invoices_for_entity(EntityRole.CUSTOMER, customer_id)
        payments = self.db.list_payments(
            customer_id=customer_id, payment_type=PaymentType.CUSTOMER_PAYMENT
        )
        returns = self.db.list_returns(customer_id=customer_id)
        return EntityBalance(
            entity_id=customer.id,
            role=EntityRole.CUSTOMER,
            name=customer.name,
            opening_balance=customer.opening_balance,
            total_invoiced=sum((inv.total_amount for inv in invoices), ZERO),
            total_paid=cash_paid(invoices, payments),
            total_returns=sum((r.total_amount for r in returns), ZERO),
        )

    def supplier_balance(self, supplier_id: int) -> EntityBalance:
        """Accounts payable position with a supplier.

        Raises:
            NotFoundError: If the supplier doesn't exist
        """
        supplier = self.db.get_supplier(supplier_id)
        if supplier is None:
            raise NotFoundError(errors.supplier_not_found(supplier_id))

        invoices = self.db.fetch_invoices_for_entity(EntityRole.SUPPLIER, supplier_id)
        payments = self.db.list_payments(
            supplier_id=supplier_id, payment_type=PaymentType.SUPPLIER_PAYMENT
        )
        returns = self.db.list_returns(supplier_id=supplier_id)
        refunds = self.db.list_payments(supplier_id=supplier_id, payment_type=PaymentType.REFUND)
        return EntityBalance(
            entity_id=supplier.id,
            role=EntityRole.SUPPLIER,
            name=supplier.name,
            opening_balance=supplier.opening_balance,
            total_invoiced=sum((inv.total_amount for inv in invoices), ZERO),
            total_paid=cash_paid(invoices, payments),
            total_returns=sum((r.total_amount for r in returns), ZERO),
            total_refunds=sum((p.amount for p in refunds), ZERO),
        )

    def entity_balance(self, role: EntityRole, entity_id: int) -> EntityBalance:
        if role == EntityRole.CUSTOMER:
            return self.customer_balance(entity_id)
        return self.supplier_balance(entity_id)

    def snapshot(self, role: EntityRole, entity_id: int) -> BalanceSnapshot:
        """Pending amount and available advance of a customer or supplier."""
        return self.entity_balance(role, entity_id).snapshot

    def totals(self) -> BalanceTotals:
        """Receivables, payables and cash across all customers and suppliers.

        Only positive balances count towards receivables and payables;
        advances are not netted against them.
        """
        customers = [self.customer_balance(c.id) for c in self.db.list_customers()]
        suppliers = [self.supplier_balance(s.id) for s in self.db.list_suppliers()]
        cash_accounts = [
            acc
            for acc in self.db.list_accounts()
            if acc.type == AccountType.ASSET and acc.sub_type in ("CASH", "BANK")
        ]
        return BalanceTotals(
            total_receivables=sum((max(ZERO, b.pending) for b in customers), ZERO),
            total_payables=sum((max(ZERO, b.pending) for b in suppliers), ZERO),
            cash_position=sum((acc.balance for acc in cash_accounts), ZERO),
            customer_count=len(customers),
            supplier_count=len(suppliers),
        )
