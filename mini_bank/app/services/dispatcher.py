from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

from ..core.errors import AccountNotFoundError, LedgerError
from ..models import (
    CloseAccountRequest,
    CloseAccountResponse,
    CommandKind,
    CommandRequest,
    CommandResponse,
    CreateAccountRequest,
    CreateAccountResponse,
    DepositRequest,
    DepositResponse,
    GetAccountRequest,
    GetAccountResponse,
    ListActiveAccountsRequest,
    ListActiveAccountsResponse,
    TransferRequest,
    TransferResponse,
    WithdrawRequest,
    WithdrawResponse,
)
from .notifier import AccountUpdateNotifier
from .store import AccountStore


logger = logging.getLogger(__name__)

Handler = Callable[[CommandRequest], CommandResponse]


class CommandDispatcher:
    """Routes a decoded request to the store and builds its response.

    The dispatcher keeps no state between calls. Ledger errors raised by the
    store are turned into the ``error`` tag of the response.
    """

    def __init__(
        self,
        store: AccountStore,
        notifier: Optional[AccountUpdateNotifier] = None,
    ) -> None:
        self.store = store
        self.notifier = notifier
        self._handlers: Dict[CommandKind, Handler] = {
            CommandKind.CREATE_ACCOUNT: self._create_account,
            CommandKind.GET_ACCOUNT: self._get_account,
            CommandKind.LIST_ACTIVE_ACCOUNTS: self._list_active_accounts,
            CommandKind.DEPOSIT: self._deposit,
            CommandKind.WITHDRAW: self._withdraw,
            CommandKind.CLOSE_ACCOUNT: self._close_account,
            CommandKind.TRANSFER: self._transfer,
        }
        missing = set(CommandKind) - set(self._handlers)
        if missing:
            raise RuntimeError(f"No handler for command kinds: {sorted(k.value for k in missing)}")

    def dispatch(self, request: CommandRequest) -> CommandResponse:
        kind = CommandKind(request.kind)
        return self._handlers[kind](request)

    # ------------------------------------------------------------------
    # Helper utilities
    # ------------------------------------------------------------------
    def _notify(self, *numbers: str) -> None:
        if self.notifier is None:
            return
        for number in dict.fromkeys(numbers):
            self.notifier.publish(number)

    @staticmethod
    def _rejected(request: CommandRequest, error: LedgerError) -> None:
        logger.warning(
            "command.rejected",
            extra={"kind": request.kind, "correlation_id": request.id, "error": error.kind.value},
        )

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------
    def _create_account(self, request: CreateAccountRequest) -> CreateAccountResponse:
        number = self.store.create(request.owner)
        self._notify(number)
        return CreateAccountResponse(correlation_id=request.id, account_number=number)

    def _get_account(self, request: GetAccountRequest) -> GetAccountResponse:
        snapshot = self.store.get(request.number)
        if snapshot is None:
            return GetAccountResponse(correlation_id=request.id, found=False)
        return GetAccountResponse(
            correlation_id=request.id,
            found=True,
            owner=snapshot.owner,
            balance=snapshot.balance,
            active=snapshot.active,
        )

    def _list_active_accounts(
        self, request: ListActiveAccountsRequest
    ) -> ListActiveAccountsResponse:
        numbers = sorted(self.store.active_numbers())
        return ListActiveAccountsResponse(correlation_id=request.id, numbers=numbers)

    def _deposit(self, request: DepositRequest) -> DepositResponse:
        try:
            balance = self.store.deposit(request.number, request.amount)
        except LedgerError as exc:
            self._rejected(request, exc)
            return DepositResponse(correlation_id=request.id, error=exc.kind)
        self._notify(request.number)
        return DepositResponse(correlation_id=request.id, new_balance=balance)

    def _withdraw(self, request: WithdrawRequest) -> WithdrawResponse:
        try:
            balance = self.store.withdraw(request.number, request.amount)
        except LedgerError as exc:
            self._rejected(request, exc)
            return WithdrawResponse(correlation_id=request.id, error=exc.kind)
        self._notify(request.number)
        return WithdrawResponse(correlation_id=request.id, new_balance=balance)

    def _close_account(self, request: CloseAccountRequest) -> CloseAccountResponse:
        closed = self.store.close(request.number)
        if closed:
            self._notify(request.number)
        else:
            logger.warning("account.close_refused", extra={"number": request.number})
        return CloseAccountResponse(correlation_id=request.id, closed=closed)

    def _transfer(self, request: TransferRequest) -> TransferResponse:
        try:
            for number in (request.from_number, request.to_number):
                if self.store.get(number) is None:
                    raise AccountNotFoundError(f"Account {number} not found")
            from_balance, to_balance = self.store.transfer(
                request.from_number, request.to_number, request.amount
            )
        except LedgerError as exc:
            self._rejected(request, exc)
            return TransferResponse(correlation_id=request.id, error=exc.kind)
        self._notify(request.from_number, request.to_number)
        return TransferResponse(
            correlation_id=request.id,
            from_balance=from_balance,
            to_balance=to_balance,
        )
