"""Invoice pending-amount calculation."""

from decimal import Decimal
from typing import Iterable

from shopledger.domain.entities import Invoice, Payment


def total_paid(invoice: Invoice) -> Decimal:
    """Amount already applied to an invoice.

    Payments linked directly to the invoice win. Older invoices only have
    payments recorded against their customer/supplier, and the oldest only
    carry a single ``payment_amount`` field; those are used as fallbacks in
    that order.
    """
    if invoice.payments:
        return _sum_applied(invoice.payments)
    if invoice.entity_payments:
        return _sum_applied(invoice.entity_payments)
    if invoice.legacy_payment_amount is not None:
        return invoice.legacy_payment_amount
    return Decimal("0")


def calculate_pending_amount(invoice: Invoice) -> Decimal:
    """Outstanding balance of an invoice, never negative."""
    return max(Decimal("0"), invoice.total_amount - total_paid(invoice))


def payable_invoices(invoices: Iterable[Invoice]) -> list[Invoice]:
    """Invoices that can still receive a payment."""
    return [inv for inv in invoices if calculate_pending_amount(inv) > 0]


def _sum_applied(payments: Iterable[Payment]) -> Decimal:
    return sum((p.applied_amount for p in payments), Decimal("0"))
