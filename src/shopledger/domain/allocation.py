"""Payment allocation across several outstanding invoices.

``allocate`` is pure: it only validates a selection against the invoice
snapshot it is given and splits the payment into one record per invoice.
``PaymentAllocationService`` fetches that snapshot and hands the records to
the posting service one at a time.
"""

import logging
from datetime import date
from decimal import Decimal, ROUND_DOWN
from typing import Iterable, Optional, Sequence

from shopledger.database.base import Database
from shopledger.domain import errors
from shopledger.domain.balances import BalanceService
from shopledger.domain.entities import (
    AllocationReport,
    EntityRole,
    Invoice,
    InvoiceKind,
    Payment,
    PaymentSelection,
    PaymentType,
    SubmissionResult,
    SubmissionStatus,
)
from shopledger.domain.errors import DomainError, NotFoundError, ValidationError
from shopledger.domain.pending import calculate_pending_amount
from shopledger.domain.posting import PostingService
from shopledger.utils.amount_parser import CENT, to_decimal

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def allocate(
    selections: Sequence[PaymentSelection],
    advance_used: Decimal,
    payment_account_id: Optional[int],
    invoices: Iterable[Invoice],
    payment_date: Optional[date] = None,
) -> list[Payment]:
    """Split a payment across the selected invoices.

    Args:
        selections: Invoices to settle and how much of each
        advance_used: Advance credit to draw, shared across the selection
            in proportion to each invoice's pending amount
        payment_account_id: Cash/bank account paying the cash portion
        invoices: Snapshot of the invoices the selection refers to
        payment_date: Date stamped on the records (defaults to today)

    Returns:
        One unsaved Payment per selection, in selection order

    Raises:
        ValidationError: If any selection or the totals are invalid; nothing
            is returned for a partially valid selection
    """
    if not selections:
        raise ValidationError("At least one invoice must be selected", field="selections")

    advance_used = to_decimal(advance_used)
    if advance_used < 0:
        raise ValidationError("Advance amount cannot be negative", field="advance_used")

    by_id = {inv.id: inv for inv in invoices}
    selected: list[Invoice] = []
    pending: list[Decimal] = []
    requested: list[Decimal] = []
    for sel in selections:
        invoice = by_id.get(sel.invoice_id)
        if invoice is None:
            raise ValidationError(
                errors.invoice_not_found(sel.invoice_id), invoice_id=sel.invoice_id
            )
        if any(inv.id == invoice.id for inv in selected):
            raise ValidationError(
                f"Invoice {sel.invoice_id} is selected more than once",
                invoice_id=sel.invoice_id,
            )
        amount = to_decimal(sel.requested_amount)
        invoice_pending = calculate_pending_amount(invoice)
        if amount <= 0:
            raise ValidationError(
                errors.amount_not_positive(invoice.id, amount),
                field="requested_amount",
                invoice_id=invoice.id,
            )
        if amount > invoice_pending:
            raise ValidationError(
                errors.amount_exceeds_pending(invoice.id, amount, invoice_pending),
                field="requested_amount",
                invoice_id=invoice.id,
            )
        selected.append(invoice)
        pending.append(invoice_pending)
        requested.append(amount)

    _check_single_counterparty(selected)

    total_cash = sum(requested, ZERO)
    if total_cash + advance_used <= 0:
        raise ValidationError("Total payment must be greater than 0", field="amount")

    shares = advance_shares(pending, requested, advance_used)
    cash_portions = [req - share for req, share in zip(requested, shares)]

    if any(cash > 0 for cash in cash_portions) and payment_account_id is None:
        raise ValidationError(
            "A payment account is required when paying cash",
            field="payment_account_id",
        )

    payment_date = payment_date or date.today()
    records = []
    for invoice, cash, share in zip(selected, cash_portions, shares):
        records.append(
            Payment(
                date=payment_date,
                type=_payment_type(invoice),
                amount=cash,
                account_id=payment_account_id if cash > 0 else None,
                customer_id=invoice.customer_id,
                supplier_id=invoice.supplier_id,
                invoice_id=invoice.id,
                use_advance_balance=share > 0,
                advance_amount_used=share,
            )
        )
    return records


def advance_shares(
    pending: Sequence[Decimal], requested: Sequence[Decimal], advance_used: Decimal
) -> list[Decimal]:
    """Distribute ``advance_used`` proportionally to ``pending``.

    Each share is rounded down to the cent and the leftover cents go to the
    largest remainders (earlier selections first on ties). A share never
    exceeds the amount requested for its invoice, so the total can be lower
    than ``advance_used`` but never higher.
    """
    if advance_used <= 0:
        return [ZERO for _ in pending]

    total_pending = sum(pending, ZERO)
    exact = [p * advance_used / total_pending for p in pending]
    shares = [value.quantize(CENT, rounding=ROUND_DOWN) for value in exact]

    leftover_cents = int((advance_used - sum(shares, ZERO)) / CENT)
    by_remainder = sorted(
        range(len(shares)), key=lambda i: (-(exact[i] - shares[i]), i)
    )
    for i in by_remainder[:leftover_cents]:
        shares[i] += CENT

    return [min(req, share) for req, share in zip(requested, shares)]


def _payment_type(invoice: Invoice) -> PaymentType:
    if invoice.kind == InvoiceKind.PURCHASE:
        return PaymentType.SUPPLIER_PAYMENT
    return PaymentType.CUSTOMER_PAYMENT


def _check_single_counterparty(invoices: Sequence[Invoice]) -> None:
    parties = {(inv.kind, inv.customer_id, inv.supplier_id) for inv in invoices}
    if len(parties) > 1:
        raise ValidationError(
            "Selected invoices must belong to the same customer or supplier",
            field="selections",
        )


class PaymentAllocationService:
    """Service for paying several invoices of one customer or supplier."""

    def __init__(self, db: Database, posting: Optional[PostingService] = None):
        """Initialize payment allocation service.

        Args:
            db: Database instance
            posting: Posting service used to persist records
        """
        self.db = db
        self.posting = posting or PostingService(db)
        self.balances = BalanceService(db)

    def payable_invoices(self, role: EntityRole, entity_id: int) -> list[Invoice]:
        """Invoices of an entity that still have a pending amount."""
        invoices = self.db.fetch_invoices_for_entity(role, entity_id)
        return [inv for inv in invoices if calculate_pending_amount(inv) > 0]

    def plan(
        self,
        role: EntityRole,
        entity_id: int,
        selections: Sequence[PaymentSelection],
        advance_used: Decimal = ZERO,
        payment_account_id: Optional[int] = None,
        payment_date: Optional[date] = None,
    ) -> list[Payment]:
        """Validate a selection against fresh data and split it into records.

        Raises:
            NotFoundError: If the entity or payment account doesn't exist
            ValidationError: If the selection or advance amount is invalid
        """
        balance = self.balances.entity_balance(role, entity_id)

        advance_used = to_decimal(advance_used)
        if advance_used > 0:
            available = balance.snapshot.available_advance
            if advance_used > available:
                raise ValidationError(
                    f"Advance amount {advance_used} exceeds available advance {available}",
                    field="advance_used",
                )

        if payment_account_id is not None and self.db.get_account(payment_account_id) is None:
            raise NotFoundError(errors.account_not_found(payment_account_id))

        invoices = self.db.fetch_invoices_for_entity(role, entity_id)
        return allocate(
            selections,
            advance_used,
            payment_account_id,
            invoices,
            payment_date=payment_date,
        )

    def submit(self, records: Sequence[Payment]) -> AllocationReport:
        """Post records one by one, stopping at the first failure.

        Records are independent writes; a failure leaves earlier records
        posted. The report says which ones so the caller never resubmits
        an already paid invoice.
        """
        results: list[SubmissionResult] = []
        failed = False
        for record in records:
            if failed:
                results.append(
                    SubmissionResult(invoice_id=record.invoice_id, status=SubmissionStatus.SKIPPED)
                )
                continue
            try:
                stored = self.posting.post_payment(record)
            except DomainError as e:
                logger.warning(
                    "Payment for invoice %s failed: %s", record.invoice_id, e
                )
                results.append(
                    SubmissionResult(
                        invoice_id=record.invoice_id,
                        status=SubmissionStatus.FAILED,
                        error=str(e),
                    )
                )
                failed = True
                continue
            logger.info(
                "Posted payment %s for invoice %s", stored.payment_number, record.invoice_id
            )
            results.append(
                SubmissionResult(
                    invoice_id=record.invoice_id,
                    status=SubmissionStatus.POSTED,
                    payment_id=stored.id,
                )
            )
        return AllocationReport(results=tuple(results))

    def pay_invoices(
        self,
        role: EntityRole,
        entity_id: int,
        selections: Sequence[PaymentSelection],
        advance_used: Decimal = ZERO,
        payment_account_id: Optional[int] = None,
        payment_date: Optional[date] = None,
    ) -> AllocationReport:
        """Plan and submit a multi-invoice payment."""
        records = self.plan(
            role,
            entity_id,
            selections,
            advance_used=advance_used,
            payment_account_id=payment_account_id,
            payment_date=payment_date,
        )
        return self.submit(records)
