"""Tests for domain entities."""

import pytest
from datetime import date
from decimal import Decimal

from shopledger.domain.entities import (
    Account,
    AccountType,
    AllocationReport,
    BalanceSnapshot,
    EntityBalance,
    EntityRole,
    FeeRule,
    LedgerEntryType,
    Payment,
    PaymentType,
    SubmissionResult,
    SubmissionStatus,
)


class TestAccount:
    """Tests for Account entity."""

    def test_account_immutability(self):
        """Test that Account entities are immutable."""
        account = Account(1, "1000", "Cash", AccountType.ASSET, Decimal("0"))
        with pytest.raises(Exception):  # dataclass frozen raises FrozenInstanceError
            account.balance = Decimal("5")

    @pytest.mark.parametrize(
        "account_type,expected",
        [
            (AccountType.ASSET, True),
            (AccountType.EXPENSE, True),
            (AccountType.LIABILITY, False),
            (AccountType.EQUITY, False),
            (AccountType.INCOME, False),
        ],
    )
    def test_debit_increase(self, account_type, expected):
        assert account_type.is_debit_increase is expected


def test_payment_applied_amount():
    payment = Payment(
        date=date(2025, 1, 1),
        type=PaymentType.SUPPLIER_PAYMENT,
        amount=Decimal("160"),
        advance_amount_used=Decimal("40"),
    )
    assert payment.applied_amount == Decimal("200")


def test_available_advance():
    assert BalanceSnapshot(Decimal("-120")).available_advance == Decimal("120")
    assert BalanceSnapshot(Decimal("80")).available_advance == Decimal("0")


def test_entity_balance_pending():
    balance = EntityBalance(
        entity_id=1,
        role=EntityRole.SUPPLIER,
        name="Textiles",
        opening_balance=Decimal("100"),
        total_invoiced=Decimal("500"),
        total_paid=Decimal("450"),
        total_returns=Decimal("50"),
    )
    assert balance.pending == Decimal("100")
    assert balance.snapshot == BalanceSnapshot(Decimal("100"))


def test_ledger_entry_type_rank_follows_declaration():
    ranks = [t.sort_rank for t in LedgerEntryType]
    assert ranks == sorted(ranks)
    assert LedgerEntryType.OPENING_BALANCE.sort_rank < LedgerEntryType.PAYMENT.sort_rank


def test_fee_rule_bounds_inclusive():
    rule = FeeRule(min=Decimal("1"), max=Decimal("5"), fee=Decimal("10"))
    assert rule.matches(Decimal("1"))
    assert rule.matches(Decimal("5"))
    assert not rule.matches(Decimal("5.01"))
    assert FeeRule(Decimal("6"), None, Decimal("20")).matches(Decimal("1000000"))


def test_allocation_report_groups_results():
    report = AllocationReport(
        results=(
            SubmissionResult(1, SubmissionStatus.POSTED, payment_id=10),
            SubmissionResult(2, SubmissionStatus.FAILED, error="stale"),
            SubmissionResult(3, SubmissionStatus.SKIPPED),
        )
    )
    assert [r.invoice_id for r in report.succeeded] == [1]
    assert [r.invoice_id for r in report.failed] == [2]
    assert [r.invoice_id for r in report.skipped] == [3]
    assert not report.is_complete
    assert AllocationReport().is_complete
