"""Abstract database interface."""

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

# Import entities directly to avoid circular import through domain services
from shopledger.domain.entities import (
    Account,
    AccountType,
    Customer,
    EntityRole,
    FeeRuleConfig,
    FeeSchedule,
    Invoice,
    InvoiceKind,
    Payment,
    PaymentType,
    Return,
    Supplier,
    Transaction,
    TransactionLine,
)


class Database(ABC):
    """Abstract database interface for shopledger.

    Implementations raise StorageError when a read fails and SubmissionError
    when a write fails.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Account operations
    @abstractmethod
    def create_account(
        self,
        code: str,
        name: str,
        type: AccountType,
        sub_type: Optional[str] = None,
        balance: Decimal = Decimal("0"),
    ) -> int:
        """Create a new account. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def get_account_by_code(self, code: str) -> Optional[Account]:
        """Get account by chart of accounts code."""
        pass

    @abstractmethod
    def list_accounts(self) -> list[Account]:
        """List all accounts ordered by code."""
        pass

    # Transaction operations
    @abstractmethod
    def next_transaction_number(self, txn_date: date) -> str:
        """Next free transaction number for the given date."""
        pass

    @abstractmethod
    def create_transaction(
        self,
        transaction_number: str,
        date: date,
        description: Optional[str],
        lines: Sequence[TransactionLine],
        balance_changes: dict[int, Decimal],
        payment: Optional[Payment] = None,
    ) -> tuple[int, Optional[int]]:
        """Write a transaction, its lines, balance updates and optional payment.

        Everything is committed together or not at all.

        Returns:
            (transaction ID, payment ID or None)

        Raises:
            SubmissionError: If the write fails
        """
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID, with its lines."""
        pass

    @abstractmethod
    def list_account_lines(self, account_id: int) -> list[TransactionLine]:
        """All transaction lines posted to an account."""
        pass

    # Customer and supplier operations
    @abstractmethod
    def create_customer(
        self, name: str, phone: Optional[str] = None, opening_balance: Decimal = Decimal("0")
    ) -> int:
        """Create a new customer. Returns customer ID."""
        pass

    @abstractmethod
    def get_customer(self, customer_id: int) -> Optional[Customer]:
        """Get customer by ID."""
        pass

    @abstractmethod
    def list_customers(self) -> list[Customer]:
        """List all customers ordered by name."""
        pass

    @abstractmethod
    def create_supplier(self, name: str, opening_balance: Decimal = Decimal("0")) -> int:
        """Create a new supplier. Returns supplier ID."""
        pass

    @abstractmethod
    def get_supplier(self, supplier_id: int) -> Optional[Supplier]:
        """Get supplier by ID."""
        pass

    @abstractmethod
    def list_suppliers(self) -> list[Supplier]:
        """List all suppliers ordered by name."""
        pass

    # Invoice operations
    @abstractmethod
    def create_invoice(
        self,
        number: str,
        kind: InvoiceKind,
        date: date,
        total_amount: Decimal,
        customer_id: Optional[int] = None,
        supplier_id: Optional[int] = None,
        payment_amount: Optional[Decimal] = None,
    ) -> int:
        """Create an order or purchase invoice. Returns invoice ID."""
        pass

    @abstractmethod
    def get_invoice(self, invoice_id: int) -> Optional[Invoice]:
        """Get invoice by ID, with linked and entity-level payments."""
        pass

    @abstractmethod
    def get_invoice_by_number(self, number: str) -> Optional[Invoice]:
        """Get invoice by number."""
        pass

    @abstractmethod
    def fetch_invoices_for_entity(self, role: EntityRole, entity_id: int) -> list[Invoice]:
        """Invoices of a customer (orders) or supplier (purchases), oldest first."""
        pass

    # Payment operations
    @abstractmethod
    def next_payment_number(self, payment_date: date) -> str:
        """Next free payment number for the year of the given date."""
        pass

    @abstractmethod
    def get_payment(self, payment_id: int) -> Optional[Payment]:
        """Get payment by ID."""
        pass

    @abstractmethod
    def list_payments(
        self,
        customer_id: Optional[int] = None,
        supplier_id: Optional[int] = None,
        invoice_id: Optional[int] = None,
        payment_type: Optional[PaymentType] = None,
    ) -> list[Payment]:
        """List payments with optional filters, oldest first."""
        pass

    # Return operations
    @abstractmethod
    def create_return(
        self,
        return_number: str,
        date: date,
        total_amount: Decimal,
        refund_amount: Decimal = Decimal("0"),
        invoice_id: Optional[int] = None,
        customer_id: Optional[int] = None,
        supplier_id: Optional[int] = None,
    ) -> int:
        """Record a return. Returns return ID."""
        pass

    @abstractmethod
    def list_returns(
        self, customer_id: Optional[int] = None, supplier_id: Optional[int] = None
    ) -> list[Return]:
        """List returns with optional filters, oldest first."""
        pass

    # Fee schedule operations
    @abstractmethod
    def create_fee_schedule(self, name: str, config: FeeRuleConfig) -> int:
        """Create a named fee schedule. Returns schedule ID."""
        pass

    @abstractmethod
    def get_fee_schedule_by_name(self, name: str) -> Optional[FeeSchedule]:
        """Get fee schedule by name."""
        pass

    @abstractmethod
    def update_fee_schedule(self, schedule_id: int, config: FeeRuleConfig) -> None:
        """Replace a schedule's configuration."""
        pass

    @abstractmethod
    def list_fee_schedules(self) -> list[FeeSchedule]:
        """List all fee schedules ordered by name."""
        pass
