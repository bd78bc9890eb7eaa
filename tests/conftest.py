"""Shared pytest fixtures for shopledger tests."""

import tempfile
import os
from datetime import date
from decimal import Decimal
import pytest

from shopledger.database.factories import create_sqlite_database
from shopledger.domain.account import AccountService
from shopledger.domain.allocation import PaymentAllocationService
from shopledger.domain.balances import BalanceService
from shopledger.domain.entities import EntityRole
from shopledger.domain.fee_schedule import FeeScheduleService
from shopledger.domain.invoice import InvoiceService
from shopledger.domain.ledger import AccountLedgerService
from shopledger.domain.parties import PartyService
from shopledger.domain.posting import PostingService
from shopledger.domain.statement import StatementService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for CLI tests that open their own connection
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def account_service(temp_db):
    return AccountService(temp_db)


@pytest.fixture
def posting_service(temp_db):
    """Create a PostingService with the default chart of accounts."""
    service = PostingService(temp_db)
    service.initialize_chart_of_accounts()
    return service


@pytest.fixture
def party_service(temp_db):
    return PartyService(temp_db)


@pytest.fixture
def invoice_service(temp_db):
    return InvoiceService(temp_db)


@pytest.fixture
def balance_service(temp_db):
    return BalanceService(temp_db)


@pytest.fixture
def statement_service(temp_db):
    return StatementService(temp_db)


@pytest.fixture
def ledger_service(temp_db):
    return AccountLedgerService(temp_db)


@pytest.fixture
def allocation_service(temp_db, posting_service):
    return PaymentAllocationService(temp_db, posting=posting_service)


@pytest.fixture
def fee_service(temp_db):
    return FeeScheduleService(temp_db)


@pytest.fixture
def cash_account(temp_db, posting_service):
    """The default Cash account."""
    return temp_db.get_account_by_code("1000")


@pytest.fixture
def sample_supplier(party_service, invoice_service):
    """A supplier with two purchase invoices of 200 and 300."""
    supplier_id = party_service.create_supplier(name="Karachi Textiles")
    first = invoice_service.create_invoice(
        EntityRole.SUPPLIER, supplier_id, "PI-001", Decimal("200"), date(2025, 1, 10)
    )
    second = invoice_service.create_invoice(
        EntityRole.SUPPLIER, supplier_id, "PI-002", Decimal("300"), date(2025, 1, 12)
    )
    return {"id": supplier_id, "invoices": [first, second]}


@pytest.fixture
def sample_customer(party_service, invoice_service):
    """A customer with one order of 1000."""
    customer_id = party_service.create_customer(name="Ayesha Khan", phone="0300-1234567")
    order = invoice_service.create_invoice(
        EntityRole.CUSTOMER, customer_id, "ORD-001", Decimal("1000"), date(2025, 2, 1)
    )
    return {"id": customer_id, "invoices": [order]}


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
