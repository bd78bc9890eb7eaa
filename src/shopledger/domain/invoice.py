"""Invoice and return domain service."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from shopledger.database.base import Database
from shopledger.domain import errors
from shopledger.domain.entities import (
    EntityRole,
    Invoice,
    InvoiceKind,
    Payment,
    PaymentType,
    Return,
)
from shopledger.domain.errors import ConflictError, NotFoundError, ValidationError
from shopledger.domain.pending import calculate_pending_amount, payable_invoices
from shopledger.domain.posting import PostingService
from shopledger.utils.amount_parser import to_decimal

logger = logging.getLogger(__name__)


class InvoiceService:
    """Service for customer orders, purchase invoices and returns."""

    def __init__(self, db: Database):
        """Initialize invoice service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_invoice(
        self,
        role: EntityRole,
        entity_id: int,
        number: str,
        total_amount: Decimal,
        invoice_date: Optional[date] = None,
        paid_amount: Optional[Decimal] = None,
    ) -> int:
        """Create an order (customer) or purchase invoice (supplier).

        Args:
            role: Whether the invoice belongs to a customer or a supplier
            entity_id: Customer or supplier ID
            number: Unique invoice number
            total_amount: Invoice total
            invoice_date: Invoice date (defaults to today)
            paid_amount: Amount already paid when the invoice was raised,
                recorded on the invoice itself rather than as a payment

        Returns:
            Invoice ID

        Raises:
            ValidationError: If amounts are invalid
            NotFoundError: If the customer or supplier doesn't exist
            ConflictError: If the invoice number is taken
        """
        total_amount = to_decimal(total_amount)
        if total_amount <= 0:
            raise ValidationError("Invoice total must be greater than 0", field="total_amount")
        if paid_amount is not None:
            paid_amount = to_decimal(paid_amount)
            if paid_amount < 0 or paid_amount > total_amount:
                raise ValidationError(
                    "Paid amount must be between 0 and the invoice total", field="paid_amount"
                )

        number = number.strip()
        if not number:
            raise ValidationError("Invoice number cannot be empty", field="number")
        if self.db.get_invoice_by_number(number) is not None:
            raise ConflictError(f"Invoice with number '{number}' already exists")

        if role == EntityRole.CUSTOMER:
            if self.db.get_customer(entity_id) is None:
                raise NotFoundError(errors.customer_not_found(entity_id))
            kind, customer_id, supplier_id = InvoiceKind.ORDER, entity_id, None
        else:
            if self.db.get_supplier(entity_id) is None:
                raise NotFoundError(errors.supplier_not_found(entity_id))
            kind, customer_id, supplier_id = InvoiceKind.PURCHASE, None, entity_id

        invoice_id = self.db.create_invoice(
            number=number,
            kind=kind,
            date=invoice_date or date.today(),
            total_amount=total_amount,
            customer_id=customer_id,
            supplier_id=supplier_id,
            payment_amount=paid_amount,
        )
        logger.info("Created %s %s for %s %s", kind.value, number, role.value, entity_id)
        return invoice_id

    def get_invoice(self, invoice_id: int) -> Invoice:
        invoice = self.db.get_invoice(invoice_id)
        if invoice is None:
            raise NotFoundError(errors.invoice_not_found(invoice_id))
        return invoice

    def list_invoices(
        self, role: EntityRole, entity_id: int, pending_only: bool = False
    ) -> list[tuple[Invoice, Decimal]]:
        """Invoices of an entity with their pending amounts, oldest first."""
        invoices = self.db.fetch_invoices_for_entity(role, entity_id)
        if pending_only:
            invoices = payable_invoices(invoices)
        return [(inv, calculate_pending_amount(inv)) for inv in invoices]

    def record_return(
        self,
        invoice_id: int,
        return_number: str,
        total_amount: Decimal,
        refund_amount: Decimal = Decimal("0"),
        return_date: Optional[date] = None,
        refund_account_id: Optional[int] = None,
    ) -> int:
        """Record goods returned against an invoice.

        A customer return is credited to the customer's account. A supplier
        return may be partly settled by the supplier paying cash back; that
        part is posted as a REFUND payment into ``refund_account_id``.

        Returns:
            Return ID

        Raises:
            ValidationError: If amounts are invalid or a refund has no account
            NotFoundError: If the invoice or refund account doesn't exist
        """
        invoice = self.get_invoice(invoice_id)
        total_amount = to_decimal(total_amount)
        refund_amount = to_decimal(refund_amount)
        if total_amount <= 0:
            raise ValidationError("Return total must be greater than 0", field="total_amount")
        if total_amount > invoice.total_amount:
            raise ValidationError(
                f"Return total {total_amount} exceeds invoice total {invoice.total_amount}",
                field="total_amount",
            )
        if refund_amount < 0 or refund_amount > total_amount:
            raise ValidationError(
                "Refund amount must be between 0 and the return total", field="refund_amount"
            )
        if refund_amount > 0:
            if invoice.kind != InvoiceKind.PURCHASE:
                raise ValidationError(
                    "Cash refunds apply to supplier returns; customer returns are credited "
                    "to the customer's account",
                    field="refund_amount",
                )
            if refund_account_id is None:
                raise ValidationError(
                    "A refund account is required when the supplier refunds cash",
                    field="refund_account_id",
                )
            if self.db.get_account(refund_account_id) is None:
                raise NotFoundError(errors.account_not_found(refund_account_id))

        return_date = return_date or date.today()
        return_id = self.db.create_return(
            return_number=return_number,
            date=return_date,
            total_amount=total_amount,
            refund_amount=refund_amount,
            invoice_id=invoice.id,
            customer_id=invoice.customer_id,
            supplier_id=invoice.supplier_id,
        )
        if refund_amount > 0:
            refund = PostingService(self.db).post_payment(
                Payment(
                    date=return_date,
                    type=PaymentType.REFUND,
                    amount=refund_amount,
                    account_id=refund_account_id,
                    supplier_id=invoice.supplier_id,
                )
            )
            logger.info(
                "Return %s refunded %s as %s", return_number, refund_amount, refund.payment_number
            )
        return return_id

    def list_returns(self, role: EntityRole, entity_id: int) -> list[Return]:
        if role == EntityRole.CUSTOMER:
            return self.db.list_returns(customer_id=entity_id)
        return self.db.list_returns(supplier_id=entity_id)
