"""Tests for account commands."""

from datetime import date
from decimal import Decimal

import pytest
from shopledger.cli.main import cli
from shopledger.domain.errors import ConflictError, NotFoundError, ValidationError
from shopledger.domain.entities import AccountType


def test_init_creates_chart(cli_runner, temp_db):
    """Test init creates the default accounts once."""
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "init"])
    assert result.exit_code == 0
    assert "Created 19 accounts." in result.output

    again = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "init"])
    assert again.exit_code == 0
    assert "already initialized" in again.output


def test_account_list_empty(cli_runner, temp_db):
    """Test listing accounts when none exist."""
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "account", "list"]
    )

    assert result.exit_code == 0
    assert "No accounts found" in result.output


def test_account_create_bank(cli_runner, temp_db):
    result = cli_runner.invoke(
        cli,
        [
            "--db-path", temp_db.database_path,
            "account", "create", "1110", "Meezan Bank", "--type", "asset", "--sub-type", "bank",
        ],
    )

    assert result.exit_code == 0
    assert "Created account 1110 'Meezan Bank'" in result.output

    listing = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "account", "list"])
    assert "Meezan Bank [BANK]" in listing.output


def test_account_create_duplicate_code(cli_runner, temp_db, posting_service):
    """Test creating an account with a taken code fails."""
    result = cli_runner.invoke(
        cli,
        ["--db-path", temp_db.database_path, "account", "create", "1000", "Petty Cash", "--type", "ASSET"],
    )

    assert result.exit_code != 0
    assert "Error" in result.output
    assert "already exists" in result.output


def test_opening_balance_and_ledger(cli_runner, temp_db, posting_service):
    """Test an opening balance shows up in the account ledger."""
    result = cli_runner.invoke(
        cli,
        [
            "--db-path", temp_db.database_path,
            "account", "opening-balance", "1000", "25,000", "--date", "2025-01-01",
        ],
    )
    assert result.exit_code == 0
    assert "Rs. 25,000.00" in result.output

    ledger = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "account", "ledger", "1000"]
    )
    assert ledger.exit_code == 0
    assert "TXN-20250101-0001" in ledger.output
    assert "Opening Balance - Cash" in ledger.output
    assert "Current balance: Rs. 25,000.00" in ledger.output
    assert "does not match" not in ledger.output


def test_opening_balance_income_account_rejected(cli_runner, temp_db, posting_service):
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "account", "opening-balance", "4000", "100"]
    )
    assert result.exit_code == 1
    assert "Asset or Liability" in result.output


def test_ledger_unknown_account(cli_runner, temp_db):
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "account", "ledger", "9999"]
    )
    assert result.exit_code == 1
    assert "not found" in result.output


class TestAccountService:
    """Tests for AccountService."""

    def test_create_and_resolve(self, account_service):
        account_id = account_service.create_account("1110", "Meezan Bank", AccountType.ASSET, "bank")

        by_code = account_service.resolve("1110")
        by_id = account_service.resolve(account_id)
        assert by_code == by_id
        assert by_code.sub_type == "BANK"
        assert by_code.balance == Decimal("0")

    def test_duplicate_code(self, account_service):
        account_service.create_account("5300", "Packaging", AccountType.EXPENSE)
        with pytest.raises(ConflictError):
            account_service.create_account("5300", "Packing", AccountType.EXPENSE)

    def test_sub_type_only_on_assets(self, account_service):
        with pytest.raises(ValidationError) as exc_info:
            account_service.create_account("2400", "Card", AccountType.LIABILITY, "BANK")
        assert exc_info.value.field == "sub_type"

    def test_resolve_unknown(self, account_service):
        with pytest.raises(NotFoundError):
            account_service.resolve("petty")

    def test_payment_accounts(self, account_service, posting_service, cash_account):
        posting_service.set_opening_balance(cash_account.id, Decimal("300"), date(2025, 1, 1))

        payment_accounts = account_service.list_payment_accounts()
        assert [acc.code for acc in payment_accounts] == ["1000", "1100"]
        assert account_service.total_balance(payment_accounts) == Decimal("300")
