from .account import AccountRecord, AccountSnapshot
from .commands import (
    PROTOCOL_VERSION,
    AccountChangedEvent,
    AnyRequest,
    AnyResponse,
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
    MalformedResponse,
    TransferRequest,
    TransferResponse,
    WithdrawRequest,
    WithdrawResponse,
    new_command_id,
    request_adapter,
    response_adapter,
)

__all__ = [
    "PROTOCOL_VERSION",
    "AccountChangedEvent",
    "AccountRecord",
    "AccountSnapshot",
    "AnyRequest",
    "AnyResponse",
    "CloseAccountRequest",
    "CloseAccountResponse",
    "CommandKind",
    "CommandRequest",
    "CommandResponse",
    "CreateAccountRequest",
    "CreateAccountResponse",
    "DepositRequest",
    "DepositResponse",
    "GetAccountRequest",
    "GetAccountResponse",
    "ListActiveAccountsRequest",
    "ListActiveAccountsResponse",
    "MalformedResponse",
    "TransferRequest",
    "TransferResponse",
    "WithdrawRequest",
    "WithdrawResponse",
    "new_command_id",
    "request_adapter",
    "response_adapter",
]
