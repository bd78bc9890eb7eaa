"""Customer and supplier domain service."""

from decimal import Decimal
from typing import Optional

from shopledger.database.base import Database
from shopledger.domain import errors
from shopledger.domain.entities import Customer, EntityRole, Supplier
from shopledger.domain.errors import NotFoundError, ValidationError
from shopledger.utils.amount_parser import to_decimal


class PartyService:
    """Service for managing customers and suppliers."""

    def __init__(self, db: Database):
        """Initialize party service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_customer(
        self, name: str, phone: Optional[str] = None, opening_balance: Decimal = Decimal("0")
    ) -> int:
        """Create a customer.

        Args:
            name: Customer name
            phone: Contact number
            opening_balance: Positive when the customer already owes us,
                negative for an advance they paid before using the system

        Returns:
            Customer ID
        """
        name = _require_name(name)
        return self.db.create_customer(
            name=name, phone=phone, opening_balance=to_decimal(opening_balance)
        )

    def create_supplier(self, name: str, opening_balance: Decimal = Decimal("0")) -> int:
        """Create a supplier.

        A positive opening balance is money we owe them; negative is an
        advance we already paid.

        Returns:
            Supplier ID
        """
        name = _require_name(name)
        return self.db.create_supplier(name=name, opening_balance=to_decimal(opening_balance))

    def get_customer(self, customer_id: int) -> Customer:
        customer = self.db.get_customer(customer_id)
        if customer is None:
            raise NotFoundError(errors.customer_not_found(customer_id))
        return customer

    def get_supplier(self, supplier_id: int) -> Supplier:
        supplier = self.db.get_supplier(supplier_id)
        if supplier is None:
            raise NotFoundError(errors.supplier_not_found(supplier_id))
        return supplier

    def get(self, role: EntityRole, entity_id: int) -> Customer | Supplier:
        """Get a customer or supplier.

        Raises:
            NotFoundError: If it doesn't exist
        """
        if role == EntityRole.CUSTOMER:
            return self.get_customer(entity_id)
        return self.get_supplier(entity_id)

    def list_parties(self, role: EntityRole) -> list[Customer] | list[Supplier]:
        if role == EntityRole.CUSTOMER:
            return self.db.list_customers()
        return self.db.list_suppliers()


def _require_name(name: str) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Name cannot be empty", field="name")
    return name
