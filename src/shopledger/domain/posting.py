"""Posting of balanced transactions and payments."""

import logging
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from shopledger.database.base import Database
from shopledger.domain import errors
from shopledger.domain.balances import BalanceService
from shopledger.domain.entities import (
    Account,
    AccountType,
    EntityRole,
    Invoice,
    Payment,
    PaymentType,
    TransactionLine,
)
from shopledger.domain.errors import (
    ConflictError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from shopledger.domain.ledger import balance_change
from shopledger.domain.pending import calculate_pending_amount
from shopledger.utils.amount_parser import BALANCE_TOLERANCE, to_decimal

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

CASH = "1000"
BANK = "1100"
ACCOUNTS_RECEIVABLE = "1200"
ADVANCE_TO_SUPPLIERS = "1230"
ACCOUNTS_PAYABLE = "2000"
CUSTOMER_ADVANCES = "2300"
OPENING_BALANCE = "3001"
SALES_RETURNS = "4100"

# (code, name, type, sub type)
DEFAULT_CHART = [
    (CASH, "Cash", AccountType.ASSET, "CASH"),
    (BANK, "Bank Account", AccountType.ASSET, "BANK"),
    (ACCOUNTS_RECEIVABLE, "Accounts Receivable", AccountType.ASSET, None),
    (ADVANCE_TO_SUPPLIERS, "Advance to Suppliers", AccountType.ASSET, None),
    ("1300", "Inventory", AccountType.ASSET, None),
    (ACCOUNTS_PAYABLE, "Accounts Payable", AccountType.LIABILITY, None),
    ("2100", "Accrued Expenses", AccountType.LIABILITY, None),
    ("2200", "COD Fee Payable", AccountType.LIABILITY, None),
    (CUSTOMER_ADVANCES, "Customer Advances", AccountType.LIABILITY, None),
    ("3000", "Owner Capital", AccountType.EQUITY, None),
    (OPENING_BALANCE, "Opening Balance", AccountType.EQUITY, None),
    ("3100", "Owner Drawings", AccountType.EQUITY, None),
    ("4000", "Sales Revenue", AccountType.INCOME, None),
    (SALES_RETURNS, "Sales Returns", AccountType.INCOME, None),
    ("4200", "Shipping Revenue", AccountType.INCOME, None),
    ("5000", "Cost of Goods Sold", AccountType.EXPENSE, None),
    ("5100", "Shipping Expense", AccountType.EXPENSE, None),
    ("5200", "COD Fee Expense", AccountType.EXPENSE, None),
    ("5800", "Other Expenses", AccountType.EXPENSE, None),
]


class PostingService:
    """Service for posting transactions and payments."""

    def __init__(self, db: Database):
        """Initialize posting service.

        Args:
            db: Database instance
        """
        self.db = db

    def initialize_chart_of_accounts(self) -> list[Account]:
        """Create any missing default accounts.

        Returns:
            The default accounts, existing or newly created
        """
        return [self.get_or_create_account(code) for code, _, _, _ in DEFAULT_CHART]

    def get_or_create_account(self, code: str) -> Account:
        """Get an account by code, creating it from the default chart if missing.

        Raises:
            NotFoundError: If the code is neither stored nor in the default chart
        """
        account = self.db.get_account_by_code(code)
        if account is not None:
            return account
        for chart_code, name, account_type, sub_type in DEFAULT_CHART:
            if chart_code == code:
                account_id = self.db.create_account(
                    code=code, name=name, type=account_type, sub_type=sub_type
                )
                logger.info("Created default account %s %s", code, name)
                return self.db.get_account(account_id)
        raise NotFoundError(errors.account_code_not_found(code))

    def validate_lines(self, lines: Sequence[TransactionLine]) -> dict[int, Account]:
        """Check that lines are well formed and balanced.

        Returns:
            Accounts referenced by the lines, keyed by ID

        Raises:
            ValidationError: If the lines are empty, negative or unbalanced
            NotFoundError: If a line references an unknown account
        """
        if not lines:
            raise ValidationError("A transaction needs at least one line", field="lines")

        accounts: dict[int, Account] = {}
        for line in lines:
            if line.debit_amount < 0 or line.credit_amount < 0:
                raise ValidationError("Line amounts cannot be negative", field="lines")
            if line.debit_amount == 0 and line.credit_amount == 0:
                raise ValidationError("Line has neither debit nor credit", field="lines")
            if line.account_id not in accounts:
                account = self.db.get_account(line.account_id)
                if account is None:
                    raise NotFoundError(errors.account_not_found(line.account_id))
                accounts[line.account_id] = account

        debits = sum((line.debit_amount for line in lines), ZERO)
        credits = sum((line.credit_amount for line in lines), ZERO)
        if abs(debits - credits) > BALANCE_TOLERANCE:
            raise ValidationError(errors.unbalanced_transaction(debits, credits), field="lines")
        return accounts

    def post_transaction(
        self,
        date: date,
        description: Optional[str],
        lines: Sequence[TransactionLine],
        payment: Optional[Payment] = None,
    ) -> tuple[int, Optional[int]]:
        """Post a balanced transaction and update account balances.

        The transaction, its lines, the balance updates and the optional
        payment record are written in one database commit.

        Returns:
            (transaction ID, payment ID or None)

        Raises:
            ValidationError: If the lines are invalid or unbalanced
            NotFoundError: If a line references an unknown account
            SubmissionError: If the database write fails
        """
        accounts = self.validate_lines(lines)

        balance_changes: dict[int, Decimal] = {}
        for line in lines:
            account = accounts[line.account_id]
            change = balance_change(account.type, line.debit_amount, line.credit_amount)
            balance_changes[line.account_id] = balance_changes.get(line.account_id, ZERO) + change

        transaction_number = self.db.next_transaction_number(date)
        txn_id, payment_id = self.db.create_transaction(
            transaction_number=transaction_number,
            date=date,
            description=description,
            lines=list(lines),
            balance_changes=balance_changes,
            payment=payment,
        )
        logger.debug("Posted transaction %s with %d lines", transaction_number, len(lines))
        return txn_id, payment_id

    def set_opening_balance(self, account_id: int, amount: Decimal, date: date) -> int:
        """Record an opening balance for an asset or liability account.

        Returns:
            Transaction ID

        Raises:
            ValidationError: If the amount isn't positive or the account type
                doesn't take an opening balance
            NotFoundError: If the account doesn't exist
        """
        amount = to_decimal(amount)
        if amount <= 0:
            raise ValidationError("Opening balance amount must be greater than 0", field="amount")

        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(errors.account_not_found(account_id))

        equity = self.get_or_create_account(OPENING_BALANCE)
        if account.type == AccountType.ASSET:
            lines = [_debit(account.id, amount), _credit(equity.id, amount)]
        elif account.type == AccountType.LIABILITY:
            lines = [_debit(equity.id, amount), _credit(account.id, amount)]
        else:
            raise ValidationError(
                "Opening balance can only be set for Asset or Liability accounts",
                field="account_id",
            )
        txn_id, _ = self.post_transaction(date, f"Opening Balance - {account.name}", lines)
        return txn_id

    def post_payment(self, record: Payment) -> Payment:
        """Persist a payment record with its journal entry.

        The linked invoice's pending amount and the entity's advance balance
        are read again here, so a record planned from a stale snapshot is
        refused instead of overpaying.

        Returns:
            The stored payment

        Raises:
            ValidationError: If the record is malformed
            NotFoundError: If the invoice or an account doesn't exist
            ConflictError: If the record no longer fits current balances
            StorageError: If reading current balances fails
            SubmissionError: If the database write fails
        """
        self._validate_payment(record)
        invoice = self._revalidate_against_current_state(record)

        lines = self._payment_lines(record)
        payment_number = self.db.next_payment_number(record.date)
        record = replace(record, payment_number=payment_number)

        description = f"Payment: {payment_number} - {record.type.value}"
        if record.advance_amount_used > 0:
            description += f" (Paid: {record.amount}, Advance Used: {record.advance_amount_used})"
        if invoice is not None:
            description += f" - Invoice: {invoice.number}"

        _, payment_id = self.post_transaction(record.date, description, lines, payment=record)
        try:
            return self.db.get_payment(payment_id)
        except StorageError as e:
            # Already committed, so the caller must still see it as posted
            logger.warning("Payment %s posted but could not be read back: %s", payment_number, e)
            return replace(record, id=payment_id)

    def _validate_payment(self, record: Payment) -> None:
        if record.amount < 0:
            raise ValidationError("Payment amount cannot be negative", field="amount")
        if record.advance_amount_used < 0:
            raise ValidationError("Advance amount cannot be negative", field="advance_used")
        if record.applied_amount <= 0:
            raise ValidationError(
                "Either payment amount or advance balance must be provided",
                field="amount",
                invoice_id=record.invoice_id,
            )
        if record.amount > 0 and record.account_id is None:
            raise ValidationError(
                "A payment account is required when paying cash",
                field="payment_account_id",
                invoice_id=record.invoice_id,
            )
        if record.type == PaymentType.SUPPLIER_PAYMENT and record.supplier_id is None:
            raise ValidationError("Supplier ID required for supplier payment", field="supplier_id")
        if record.type == PaymentType.CUSTOMER_PAYMENT and record.customer_id is None:
            raise ValidationError("Customer ID required for customer payment", field="customer_id")
        if record.type == PaymentType.REFUND and record.supplier_id is None:
            raise ValidationError("Supplier ID required for refund", field="supplier_id")
        if record.type == PaymentType.REFUND and record.advance_amount_used > 0:
            raise ValidationError("Refunds cannot use advance balance", field="advance_used")

    def _revalidate_against_current_state(self, record: Payment) -> Optional[Invoice]:
        invoice = None
        if record.invoice_id is not None:
            invoice = self.db.get_invoice(record.invoice_id)
            if invoice is None:
                raise NotFoundError(errors.invoice_not_found(record.invoice_id))
            pending = calculate_pending_amount(invoice)
            if record.applied_amount > pending:
                raise ConflictError(
                    f"Invoice {invoice.id} pending amount is now {pending}; "
                    f"cannot apply {record.applied_amount}"
                )

        if record.advance_amount_used > 0:
            if record.type == PaymentType.SUPPLIER_PAYMENT:
                role, entity_id = EntityRole.SUPPLIER, record.supplier_id
            else:
                role, entity_id = EntityRole.CUSTOMER, record.customer_id
            available = BalanceService(self.db).snapshot(role, entity_id).available_advance
            if record.advance_amount_used > available:
                raise ConflictError(
                    f"Available advance is now {available}; "
                    f"cannot use {record.advance_amount_used}"
                )
        return invoice

    def _payment_lines(self, record: Payment) -> list[TransactionLine]:
        cash = record.amount
        advance = record.advance_amount_used
        lines = []

        if record.type == PaymentType.SUPPLIER_PAYMENT:
            ap = self.get_or_create_account(ACCOUNTS_PAYABLE)
            lines.append(_debit(ap.id, cash + advance))
            if cash > 0:
                lines.append(_credit(record.account_id, cash))
            if advance > 0:
                prepaid = self.get_or_create_account(ADVANCE_TO_SUPPLIERS)
                lines.append(_credit(prepaid.id, advance))

        elif record.type == PaymentType.CUSTOMER_PAYMENT:
            ar = self.get_or_create_account(ACCOUNTS_RECEIVABLE)
            if cash > 0:
                lines.append(_debit(record.account_id, cash))
            if advance > 0:
                held = self.get_or_create_account(CUSTOMER_ADVANCES)
                lines.append(_debit(held.id, advance))
            lines.append(_credit(ar.id, cash + advance))

        else:
            # Supplier paying us back for returned goods
            ap = self.get_or_create_account(ACCOUNTS_PAYABLE)
            lines.append(_debit(record.account_id, cash))
            lines.append(_credit(ap.id, cash))

        return lines


def _debit(account_id: int, amount: Decimal) -> TransactionLine:
    return TransactionLine(account_id=account_id, debit_amount=amount, credit_amount=ZERO)


def _credit(account_id: int, amount: Decimal) -> TransactionLine:
    return TransactionLine(account_id=account_id, debit_amount=ZERO, credit_amount=amount)
