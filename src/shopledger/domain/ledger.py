"""Account ledger reconstruction from transaction lines."""

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from shopledger.database.base import Database
from shopledger.domain import errors
from shopledger.domain.entities import (
    Account,
    AccountLedgerEntry,
    AccountType,
    TransactionLine,
)
from shopledger.domain.errors import NotFoundError
from shopledger.utils.amount_parser import BALANCE_TOLERANCE

logger = logging.getLogger(__name__)


def balance_change(account_type: AccountType, debit: Decimal, credit: Decimal) -> Decimal:
    """Signed effect of one line on an account of the given type.

    ASSET and EXPENSE accounts grow with debits; LIABILITY, EQUITY and
    INCOME accounts grow with credits.
    """
    if account_type.is_debit_increase:
        return debit - credit
    return credit - debit


def compute_account_ledger(
    lines: Iterable[TransactionLine],
    account_type: AccountType,
    opening_balance: Decimal = Decimal("0"),
) -> list[AccountLedgerEntry]:
    """Walk an account's lines chronologically and attach running balances.

    Lines are ordered by ``(date, transaction_number)`` first, so the result
    never depends on the order the lines were fetched in. The returned list
    is oldest-first; callers that display newest-first reverse it without
    touching the balances.
    """
    ordered = sorted(lines, key=_chronological_key)
    balance = opening_balance
    entries = []
    for line in ordered:
        balance += balance_change(account_type, line.debit_amount, line.credit_amount)
        entries.append(
            AccountLedgerEntry(
                date=line.date,
                transaction_number=line.transaction_number,
                description=line.description,
                debit=line.debit_amount,
                credit=line.credit_amount,
                balance=balance,
            )
        )
    return entries


def reconcile_account(account: Account, lines: Iterable[TransactionLine]) -> bool:
    """True when the replayed balance matches the account's cached balance."""
    entries = compute_account_ledger(lines, account.type)
    replayed = entries[-1].balance if entries else Decimal("0")
    return abs(replayed - account.balance) <= BALANCE_TOLERANCE


def _chronological_key(line: TransactionLine) -> tuple[date, str]:
    return (line.date or date.min, line.transaction_number or "")


class AccountLedgerService:
    """Service for reading account ledgers."""

    def __init__(self, db: Database):
        """Initialize account ledger service.

        Args:
            db: Database instance
        """
        self.db = db

    def _require_account(self, account_id: int) -> Account:
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(errors.account_not_found(account_id))
        return account

    def get_ledger(
        self,
        account_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        newest_first: bool = True,
    ) -> list[AccountLedgerEntry]:
        """Ledger of one account, optionally limited to a date range.

        Balances are always computed over the full history; the date range
        only filters which entries are returned.

        Raises:
            NotFoundError: If the account doesn't exist
        """
        account = self._require_account(account_id)
        entries = compute_account_ledger(self.db.list_account_lines(account_id), account.type)
        if start_date is not None:
            entries = [e for e in entries if e.date >= start_date]
        if end_date is not None:
            entries = [e for e in entries if e.date <= end_date]
        if newest_first:
            entries.reverse()
        return entries

    def reconcile(self, account_id: int) -> bool:
        """Check an account's cached balance against its transaction lines.

        Raises:
            NotFoundError: If the account doesn't exist
        """
        account = self._require_account(account_id)
        ok = reconcile_account(account, self.db.list_account_lines(account_id))
        if not ok:
            logger.warning(
                "Account %s (%s) balance %s does not match its ledger",
                account.code,
                account.name,
                account.balance,
            )
        return ok
