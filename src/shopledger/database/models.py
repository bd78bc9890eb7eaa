"""SQLAlchemy models for shopledger database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


class Account(Base):
    """Chart of accounts model."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    code = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    type = Column(String, nullable=False)
    sub_type = Column(String, nullable=True)
    balance = Column(Numeric(14, 2), default=0, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    lines = relationship("TransactionLine", back_populates="account")


class Transaction(Base):
    """Journal transaction model."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    transaction_number = Column(String, unique=True, nullable=False)
    date = Column(Date, nullable=False)
    description = Column(String, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    lines = relationship(
        "TransactionLine",
        back_populates="transaction",
        cascade="all, delete-orphan",
        order_by="TransactionLine.id",
    )


class TransactionLine(Base):
    """Debit or credit line of a transaction."""

    __tablename__ = "transaction_lines"

    id = Column(Integer, primary_key=True)
    transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    debit_amount = Column(Numeric(14, 2), default=0, nullable=False)
    credit_amount = Column(Numeric(14, 2), default=0, nullable=False)

    # Relationships
    transaction = relationship("Transaction", back_populates="lines")
    account = relationship("Account", back_populates="lines")


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    opening_balance = Column(Numeric(14, 2), default=0, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


class Supplier(Base):
    __tablename__ = "suppliers"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    opening_balance = Column(Numeric(14, 2), default=0, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


class Invoice(Base):
    """Customer order or supplier purchase invoice.

    ``payment_amount`` is the single paid amount recorded on invoices created
    before payments were tracked as separate records.
    """

    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True)
    number = Column(String, unique=True, nullable=False)
    kind = Column(String, nullable=False)
    date = Column(Date, nullable=False)
    total_amount = Column(Numeric(14, 2), nullable=False)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=True)
    payment_amount = Column(Numeric(14, 2), nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


class Payment(Base):
    """Payment model. ``amount`` is the cash portion only."""

    __tablename__ = "payments"

    id = Column(Integer, primary_key=True)
    payment_number = Column(String, unique=True, nullable=False)
    date = Column(Date, nullable=False)
    type = Column(String, nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id"), nullable=True)
    use_advance_balance = Column(Boolean, default=False, nullable=False)
    advance_amount_used = Column(Numeric(14, 2), default=0, nullable=False)
    transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


class Return(Base):
    __tablename__ = "returns"

    id = Column(Integer, primary_key=True)
    return_number = Column(String, unique=True, nullable=False)
    date = Column(Date, nullable=False)
    total_amount = Column(Numeric(14, 2), nullable=False)
    refund_amount = Column(Numeric(14, 2), default=0, nullable=False)
    invoice_id = Column(Integer, ForeignKey("invoices.id"), nullable=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


class FeeSchedule(Base):
    """Named fee rule configuration; ``rules`` holds the rule list as JSON."""

    __tablename__ = "fee_schedules"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    mode = Column(String, nullable=False)
    domain = Column(String, nullable=False)
    percentage = Column(Numeric(9, 4), nullable=True)
    fixed_amount = Column(Numeric(14, 2), nullable=True)
    default_fee = Column(Numeric(14, 2), default=0, nullable=False)
    rules = Column(Text, nullable=False, default="[]")
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
