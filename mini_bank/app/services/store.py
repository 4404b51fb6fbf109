from __future__ import annotations

import logging
import threading
import uuid
from contextlib import ExitStack, contextmanager
from decimal import (
    Context,
    Decimal,
    DecimalException,
    DivisionByZero,
    Inexact,
    InvalidOperation,
    Overflow,
    localcontext,
)
from typing import Dict, Iterator, Optional, Tuple

from ..core.errors import (
    AccountNotFoundError,
    InactiveAccountError,
    InvalidAmountError,
    OverdrawnError,
)
from ..models import AccountRecord, AccountSnapshot


logger = logging.getLogger(__name__)

# Balances stay at or below MAX_BALANCE. Ledger arithmetic traps instead of
# rounding.
MAX_BALANCE = Decimal("1E+24")
LEDGER_CONTEXT = Context(
    prec=60,
    traps=[InvalidOperation, Overflow, Inexact, DivisionByZero],
)


class AccountStore:
    """In-memory ledger, the only owner of account state.

    Every account carries its own lock; mutations and snapshots of an account
    happen while holding it. The table lock only guards the dictionary itself.
    Transfers take both account locks in ascending number order.
    """

    def __init__(self) -> None:
        self._accounts: Dict[str, AccountRecord] = {}
        self._table_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Helper utilities
    # ------------------------------------------------------------------
    def _lookup(self, number: str) -> Optional[AccountRecord]:
        with self._table_lock:
            return self._accounts.get(number)

    def _get_account(self, number: str) -> AccountRecord:
        account = self._lookup(number)
        if account is None:
            raise AccountNotFoundError(f"Account {number} not found")
        return account

    @staticmethod
    def _ensure_active(account: AccountRecord) -> None:
        if not account.active:
            raise InactiveAccountError(f"Account {account.number} is closed")

    @staticmethod
    def _ensure_finite(amount: Decimal) -> None:
        if not amount.is_finite():
            raise InvalidAmountError(f"Amount {amount} is not a finite number")

    @staticmethod
    @contextmanager
    def _exact(number: str) -> Iterator[None]:
        try:
            with localcontext(LEDGER_CONTEXT):
                yield
        except DecimalException as exc:
            raise InvalidAmountError(
                f"Amount cannot be booked exactly on account {number}"
            ) from exc

    def _apply_deposit(self, account: AccountRecord, amount: Decimal) -> Decimal:
        self._ensure_active(account)
        self._ensure_finite(amount)
        # Non-positive deposits are accepted and ignored.
        if amount > 0:
            with self._exact(account.number):
                balance = account.balance + amount
            if balance > MAX_BALANCE:
                raise InvalidAmountError(
                    f"Deposit would push account {account.number} over {MAX_BALANCE}"
                )
            account.balance = balance
        return account.balance

    def _apply_withdraw(self, account: AccountRecord, amount: Decimal) -> Decimal:
        self._ensure_active(account)
        self._ensure_finite(amount)
        if amount <= 0:
            return account.balance
        if amount > account.balance:
            raise OverdrawnError(f"Insufficient balance on account {account.number}")
        with self._exact(account.number):
            account.balance = account.balance - amount
        return account.balance

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def create(self, owner: str) -> str:
        with self._table_lock:
            number = str(uuid.uuid4())
            while number in self._accounts:
                number = str(uuid.uuid4())
            self._accounts[number] = AccountRecord(number=number, owner=owner)
        logger.info("account.created", extra={"number": number, "owner": owner})
        return number

    def close(self, number: str) -> bool:
        account = self._lookup(number)
        if account is None:
            return False
        with account.lock:
            if not account.active or account.balance != 0:
                return False
            account.active = False
        logger.info("account.closed", extra={"number": number})
        return True

    def get(self, number: str) -> Optional[AccountSnapshot]:
        account = self._lookup(number)
        if account is None:
            return None
        with account.lock:
            return account.snapshot()

    def active_numbers(self) -> frozenset[str]:
        with self._table_lock:
            accounts = list(self._accounts.values())
        numbers = set()
        for account in accounts:
            with account.lock:
                if account.active:
                    numbers.add(account.number)
        return frozenset(numbers)

    def deposit(self, number: str, amount: Decimal) -> Decimal:
        account = self._get_account(number)
        with account.lock:
            balance = self._apply_deposit(account, amount)
        logger.info(
            "account.deposit",
            extra={"number": number, "amount": str(amount), "balance": str(balance)},
        )
        return balance

    def withdraw(self, number: str, amount: Decimal) -> Decimal:
        account = self._get_account(number)
        with account.lock:
            balance = self._apply_withdraw(account, amount)
        logger.info(
            "account.withdraw",
            extra={"number": number, "amount": str(amount), "balance": str(balance)},
        )
        return balance

    def transfer(
        self,
        from_number: str,
        to_number: str,
        amount: Decimal,
    ) -> Tuple[Decimal, Decimal]:
        self._ensure_finite(amount)
        if amount < 0:
            raise InvalidAmountError("Can't transfer negative amounts")

        source = self._get_account(from_number)
        dest = self._get_account(to_number)

        if source is dest:
            with source.lock:
                return source.balance, source.balance

        ordered = sorted((source, dest), key=lambda account: account.number)
        with ExitStack() as stack:
            for account in ordered:
                stack.enter_context(account.lock)

            self._apply_withdraw(source, amount)
            try:
                self._apply_deposit(dest, amount)
            except Exception:
                if amount > 0:
                    with localcontext(LEDGER_CONTEXT):
                        source.balance = source.balance + amount
                raise
            balances = (source.balance, dest.balance)

        logger.info(
            "account.transfer",
            extra={"from_number": from_number, "to_number": to_number, "amount": str(amount)},
        )
        return balances
