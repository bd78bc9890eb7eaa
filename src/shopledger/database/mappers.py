"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, including the JSON encoding of
fee rule lists, so the rest of the code never sees raw column values.
"""

from decimal import Decimal
from typing import Iterable

from shopledger.domain import entities as domain
from shopledger.domain.fee_rules import rule_to_dict, rules_from_field
from shopledger.database.models import (
    Account as ORMAccount,
    Customer as ORMCustomer,
    FeeSchedule as ORMFeeSchedule,
    Invoice as ORMInvoice,
    Payment as ORMPayment,
    Return as ORMReturn,
    Supplier as ORMSupplier,
    Transaction as ORMTransaction,
    TransactionLine as ORMTransactionLine,
)
from shopledger.utils.json_field import Raw, dump_json_field


def _money(value) -> Decimal:
    return Decimal("0") if value is None else Decimal(value)


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        code=orm_account.code,
        name=orm_account.name,
        type=domain.AccountType(orm_account.type),
        balance=_money(orm_account.balance),
        sub_type=orm_account.sub_type,
    )


def line_to_domain(orm_line: ORMTransactionLine) -> domain.TransactionLine:
    """Convert a transaction line, copying date and number from its transaction."""
    txn = orm_line.transaction
    return domain.TransactionLine(
        account_id=orm_line.account_id,
        debit_amount=_money(orm_line.debit_amount),
        credit_amount=_money(orm_line.credit_amount),
        date=txn.date,
        transaction_number=txn.transaction_number,
        description=txn.description,
        transaction_id=txn.id,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        transaction_number=orm_transaction.transaction_number,
        date=orm_transaction.date,
        description=orm_transaction.description,
        lines=tuple(line_to_domain(line) for line in orm_transaction.lines),
        created_at=orm_transaction.created_at,
    )


def payment_to_domain(orm_payment: ORMPayment) -> domain.Payment:
    """Convert SQLAlchemy Payment model to domain Payment entity."""
    return domain.Payment(
        id=orm_payment.id,
        payment_number=orm_payment.payment_number,
        date=orm_payment.date,
        type=domain.PaymentType(orm_payment.type),
        amount=_money(orm_payment.amount),
        account_id=orm_payment.account_id,
        customer_id=orm_payment.customer_id,
        supplier_id=orm_payment.supplier_id,
        invoice_id=orm_payment.invoice_id,
        use_advance_balance=orm_payment.use_advance_balance,
        advance_amount_used=_money(orm_payment.advance_amount_used),
        transaction_id=orm_payment.transaction_id,
    )


def invoice_to_domain(
    orm_invoice: ORMInvoice,
    payments: Iterable[ORMPayment] = (),
    entity_payments: Iterable[ORMPayment] = (),
) -> domain.Invoice:
    """Convert SQLAlchemy Invoice model plus its payments to a domain Invoice."""
    return domain.Invoice(
        id=orm_invoice.id,
        number=orm_invoice.number,
        kind=domain.InvoiceKind(orm_invoice.kind),
        date=orm_invoice.date,
        total_amount=_money(orm_invoice.total_amount),
        customer_id=orm_invoice.customer_id,
        supplier_id=orm_invoice.supplier_id,
        payments=tuple(payment_to_domain(p) for p in payments),
        entity_payments=tuple(payment_to_domain(p) for p in entity_payments),
        legacy_payment_amount=(
            None if orm_invoice.payment_amount is None else Decimal(orm_invoice.payment_amount)
        ),
    )


def customer_to_domain(orm_customer: ORMCustomer) -> domain.Customer:
    return domain.Customer(
        id=orm_customer.id,
        name=orm_customer.name,
        phone=orm_customer.phone,
        opening_balance=_money(orm_customer.opening_balance),
        created_at=orm_customer.created_at,
    )


def supplier_to_domain(orm_supplier: ORMSupplier) -> domain.Supplier:
    return domain.Supplier(
        id=orm_supplier.id,
        name=orm_supplier.name,
        opening_balance=_money(orm_supplier.opening_balance),
        created_at=orm_supplier.created_at,
    )


def return_to_domain(orm_return: ORMReturn) -> domain.Return:
    return domain.Return(
        id=orm_return.id,
        return_number=orm_return.return_number,
        date=orm_return.date,
        total_amount=_money(orm_return.total_amount),
        refund_amount=_money(orm_return.refund_amount),
        invoice_id=orm_return.invoice_id,
        customer_id=orm_return.customer_id,
        supplier_id=orm_return.supplier_id,
    )


def fee_schedule_to_domain(orm_schedule: ORMFeeSchedule) -> domain.FeeSchedule:
    """Convert a stored fee schedule, parsing its JSON rule list."""
    config = domain.FeeRuleConfig(
        mode=domain.FeeMode(orm_schedule.mode),
        domain=domain.FeeDomain(orm_schedule.domain),
        rules=rules_from_field(Raw(orm_schedule.rules or "")),
        default_fee=_money(orm_schedule.default_fee),
        percentage=(
            None if orm_schedule.percentage is None else Decimal(orm_schedule.percentage)
        ),
        fixed_amount=(
            None if orm_schedule.fixed_amount is None else Decimal(orm_schedule.fixed_amount)
        ),
    )
    return domain.FeeSchedule(
        id=orm_schedule.id,
        name=orm_schedule.name,
        config=config,
        created_at=orm_schedule.created_at,
    )


def apply_fee_config(orm_schedule: ORMFeeSchedule, config: domain.FeeRuleConfig) -> None:
    """Copy a domain fee configuration onto a stored schedule."""
    orm_schedule.mode = config.mode.value
    orm_schedule.domain = config.domain.value
    orm_schedule.percentage = config.percentage
    orm_schedule.fixed_amount = config.fixed_amount
    orm_schedule.default_fee = config.default_fee
    orm_schedule.rules = dump_json_field([rule_to_dict(rule) for rule in config.rules])
