"""Account domain service."""

from decimal import Decimal
from typing import Optional

from shopledger.database.base import Database
from shopledger.domain import errors
from shopledger.domain.entities import Account as AccountEntity, AccountType
from shopledger.domain.errors import ConflictError, NotFoundError, ValidationError

SUB_TYPES = ("CASH", "BANK")


class AccountService:
    """Service for managing the chart of accounts."""

    def __init__(self, db: Database):
        """Initialize account service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_account(
        self, code: str, name: str, type: AccountType, sub_type: Optional[str] = None
    ) -> int:
        """Create a new account.

        Args:
            code: Unique chart of accounts code, e.g. "1000"
            name: Account name
            type: Account type
            sub_type: CASH or BANK for asset accounts that hold money

        Returns:
            Account ID

        Raises:
            ConflictError: If the code is already used
            ValidationError: If the sub type doesn't fit the account
        """
        code = code.strip()
        if not code:
            raise ValidationError("Account code cannot be empty", field="code")
        if self.db.get_account_by_code(code) is not None:
            raise ConflictError(f"Account with code '{code}' already exists")

        type = AccountType(type)
        if sub_type is not None:
            sub_type = sub_type.upper()
            if sub_type not in SUB_TYPES:
                raise ValidationError(
                    f"Unknown sub type '{sub_type}' (expected one of {', '.join(SUB_TYPES)})",
                    field="sub_type",
                )
            if type != AccountType.ASSET:
                raise ValidationError("Only asset accounts can be CASH or BANK", field="sub_type")

        return self.db.create_account(code=code, name=name, type=type, sub_type=sub_type)

    def get_account(self, account_id: int) -> Optional[AccountEntity]:
        """Get account by ID.

        Args:
            account_id: Account ID

        Returns:
            Account entity or None if not found
        """
        return self.db.get_account(account_id)

    def list_accounts(self) -> list[AccountEntity]:
        return self.db.list_accounts()

    def list_payment_accounts(self) -> list[AccountEntity]:
        """Asset accounts that can pay or receive cash."""
        return [
            acc
            for acc in self.db.list_accounts()
            if acc.type == AccountType.ASSET and acc.sub_type in SUB_TYPES
        ]

    def resolve(self, account: str | int) -> AccountEntity:
        """Find an account by code or ID.

        Codes are tried first since they are what users see.

        Raises:
            NotFoundError: If neither a code nor an ID matches
        """
        by_code = self.db.get_account_by_code(str(account).strip())
        if by_code is not None:
            return by_code
        try:
            account_id = int(account)
        except (TypeError, ValueError):
            raise NotFoundError(errors.account_code_not_found(str(account)))
        by_id = self.db.get_account(account_id)
        if by_id is None:
            raise NotFoundError(f"Account '{account}' not found")
        return by_id

    def total_balance(self, accounts: list[AccountEntity]) -> Decimal:
        return sum((acc.balance for acc in accounts), Decimal("0"))
