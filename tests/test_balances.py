"""Tests for customer and supplier balances."""

from datetime import date
from decimal import Decimal

import pytest

from shopledger.domain.entities import EntityRole, Payment, PaymentSelection, PaymentType
from shopledger.domain.errors import NotFoundError


def test_supplier_balance_breakdown(balance_service, sample_supplier):
    balance = balance_service.supplier_balance(sample_supplier["id"])

    assert balance.name == "Karachi Textiles"
    assert balance.total_invoiced == Decimal("500")
    assert balance.total_paid == Decimal("0")
    assert balance.pending == Decimal("500")
    assert balance.snapshot.available_advance == Decimal("0")


def test_payments_and_returns_reduce_customer_balance(
    allocation_service, invoice_service, balance_service, sample_customer, cash_account
):
    order_id = sample_customer["invoices"][0]
    allocation_service.pay_invoices(
        EntityRole.CUSTOMER,
        sample_customer["id"],
        [PaymentSelection(order_id, Decimal("600"))],
        payment_account_id=cash_account.id,
        payment_date=date(2025, 2, 2),
    )
    invoice_service.record_return(order_id, "RET-01", Decimal("150"), return_date=date(2025, 2, 3))

    balance = balance_service.customer_balance(sample_customer["id"])
    assert balance.total_paid == Decimal("600")
    assert balance.total_returns == Decimal("150")
    assert balance.pending == Decimal("250")


def test_advance_use_does_not_change_balance(
    temp_db, party_service, invoice_service, allocation_service, balance_service
):
    """Test settling from an advance only moves credit that already counted."""
    supplier_id = party_service.create_supplier("Prepaid Co", opening_balance=Decimal("-600"))
    invoice_id = invoice_service.create_invoice(
        EntityRole.SUPPLIER, supplier_id, "PI-900", Decimal("400"), date(2025, 1, 5)
    )
    before = balance_service.supplier_balance(supplier_id).pending

    allocation_service.pay_invoices(
        EntityRole.SUPPLIER,
        supplier_id,
        [PaymentSelection(invoice_id, Decimal("150"))],
        advance_used=Decimal("150"),
        payment_date=date(2025, 1, 6),
    )

    assert before == Decimal("-200")
    assert balance_service.supplier_balance(supplier_id).pending == before
    assert temp_db.get_invoice(invoice_id).payments[0].advance_amount_used == Decimal("150")


def test_legacy_paid_amount_counts_once(
    temp_db, party_service, invoice_service, posting_service, balance_service, cash_account
):
    """Test an invoice with linked payments ignores its stored paid amount."""
    customer_id = party_service.create_customer("Sana")
    legacy = invoice_service.create_invoice(
        EntityRole.CUSTOMER, customer_id, "ORD-L1", Decimal("500"), date(2024, 1, 1), paid_amount=Decimal("500")
    )
    linked = invoice_service.create_invoice(
        EntityRole.CUSTOMER, customer_id, "ORD-L2", Decimal("300"), date(2024, 1, 2), paid_amount=Decimal("100")
    )
    posting_service.post_payment(
        Payment(
            date=date(2024, 1, 3),
            type=PaymentType.CUSTOMER_PAYMENT,
            amount=Decimal("200"),
            account_id=cash_account.id,
            customer_id=customer_id,
            invoice_id=linked,
        )
    )

    balance = balance_service.customer_balance(customer_id)
    assert balance.total_paid == Decimal("700")
    assert balance.pending == Decimal("100")
    assert temp_db.get_invoice(legacy).legacy_payment_amount == Decimal("500")


def test_unknown_entity(balance_service):
    with pytest.raises(NotFoundError):
        balance_service.customer_balance(404)
    with pytest.raises(NotFoundError):
        balance_service.snapshot(EntityRole.SUPPLIER, 404)


def test_totals(
    posting_service, party_service, balance_service, sample_customer, sample_supplier, cash_account
):
    party_service.create_customer("Paid Ahead", opening_balance=Decimal("-250"))
    posting_service.set_opening_balance(cash_account.id, Decimal("10000"), date(2025, 1, 1))

    totals = balance_service.totals()

    assert totals.total_receivables == Decimal("1000")
    assert totals.total_payables == Decimal("500")
    assert totals.net_balance == Decimal("500")
    assert totals.cash_position == Decimal("10000")
    assert totals.customer_count == 2
    assert totals.supplier_count == 1
