"""Command catalogue for the bank protocol.

Requests and responses are separate immutable models. A response carries the
``id`` of the request it answers as ``correlation_id``. Every payload is
tagged with ``kind`` and ``version`` so any client can decode it from plain
JSON.

Example request::

    {"version": 1, "id": "cmd_1f2e3d4c5b6a", "kind": "Deposit",
     "number": "6b0c...", "amount": "100.00"}

Example response::

    {"version": 1, "correlation_id": "cmd_1f2e3d4c5b6a", "kind": "Deposit",
     "error": null, "new_balance": "100.00"}
"""

from __future__ import annotations

import uuid
from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from ..core.errors import ErrorKind

PROTOCOL_VERSION = 1

# Up to 18 integer digits and 4 decimal places.
AMOUNT_MAX_DIGITS = 22
AMOUNT_DECIMAL_PLACES = 4

Amount = Annotated[
    Decimal,
    Field(
        allow_inf_nan=False,
        max_digits=AMOUNT_MAX_DIGITS,
        decimal_places=AMOUNT_DECIMAL_PLACES,
        description="Decimal amount, never a float",
    ),
]


def new_command_id() -> str:
    return f"cmd_{uuid.uuid4().hex[:12]}"


class CommandKind(str, Enum):
    """All supported command kinds."""

    CREATE_ACCOUNT = "CreateAccount"
    GET_ACCOUNT = "GetAccount"
    LIST_ACTIVE_ACCOUNTS = "ListActiveAccounts"
    DEPOSIT = "Deposit"
    WITHDRAW = "Withdraw"
    CLOSE_ACCOUNT = "CloseAccount"
    TRANSFER = "Transfer"


# Requests ---------------------------------------------------------------


class CommandRequest(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    version: Literal[1] = PROTOCOL_VERSION
    id: str = Field(default_factory=new_command_id, min_length=1)


class CreateAccountRequest(CommandRequest):
    kind: Literal["CreateAccount"] = "CreateAccount"
    owner: str = Field(..., min_length=1, description="Name of the account holder")


class GetAccountRequest(CommandRequest):
    kind: Literal["GetAccount"] = "GetAccount"
    number: str


class ListActiveAccountsRequest(CommandRequest):
    kind: Literal["ListActiveAccounts"] = "ListActiveAccounts"


class DepositRequest(CommandRequest):
    kind: Literal["Deposit"] = "Deposit"
    number: str
    amount: Amount


class WithdrawRequest(CommandRequest):
    kind: Literal["Withdraw"] = "Withdraw"
    number: str
    amount: Amount


class CloseAccountRequest(CommandRequest):
    kind: Literal["CloseAccount"] = "CloseAccount"
    number: str


class TransferRequest(CommandRequest):
    kind: Literal["Transfer"] = "Transfer"
    from_number: str
    to_number: str
    amount: Amount


AnyRequest = Annotated[
    Union[
        CreateAccountRequest,
        GetAccountRequest,
        ListActiveAccountsRequest,
        DepositRequest,
        WithdrawRequest,
        CloseAccountRequest,
        TransferRequest,
    ],
    Field(discriminator="kind"),
]


# Responses --------------------------------------------------------------


class CommandResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    version: Literal[1] = PROTOCOL_VERSION
    correlation_id: Optional[str] = None
    error: Optional[ErrorKind] = None


class CreateAccountResponse(CommandResponse):
    kind: Literal["CreateAccount"] = "CreateAccount"
    account_number: str


class GetAccountResponse(CommandResponse):
    kind: Literal["GetAccount"] = "GetAccount"
    found: bool = False
    owner: Optional[str] = None
    balance: Optional[Decimal] = None
    active: Optional[bool] = None


class ListActiveAccountsResponse(CommandResponse):
    kind: Literal["ListActiveAccounts"] = "ListActiveAccounts"
    numbers: list[str] = Field(default_factory=list)


class DepositResponse(CommandResponse):
    kind: Literal["Deposit"] = "Deposit"
    new_balance: Optional[Decimal] = None


class WithdrawResponse(CommandResponse):
    kind: Literal["Withdraw"] = "Withdraw"
    new_balance: Optional[Decimal] = None


class CloseAccountResponse(CommandResponse):
    kind: Literal["CloseAccount"] = "CloseAccount"
    closed: bool = False


class TransferResponse(CommandResponse):
    kind: Literal["Transfer"] = "Transfer"
    from_balance: Optional[Decimal] = None
    to_balance: Optional[Decimal] = None


class MalformedResponse(CommandResponse):
    """Answer for payloads that never made it to the dispatcher."""

    kind: Literal["Malformed"] = "Malformed"
    error: Optional[ErrorKind] = ErrorKind.MALFORMED
    detail: str


AnyResponse = Annotated[
    Union[
        CreateAccountResponse,
        GetAccountResponse,
        ListActiveAccountsResponse,
        DepositResponse,
        WithdrawResponse,
        CloseAccountResponse,
        TransferResponse,
        MalformedResponse,
    ],
    Field(discriminator="kind"),
]


# Events -----------------------------------------------------------------


class AccountChangedEvent(BaseModel):
    """Pushed to listeners after an account was created or mutated."""

    model_config = ConfigDict(frozen=True)

    version: Literal[1] = PROTOCOL_VERSION
    kind: Literal["AccountChanged"] = "AccountChanged"
    number: str


request_adapter: TypeAdapter[AnyRequest] = TypeAdapter(AnyRequest)
response_adapter: TypeAdapter[AnyResponse] = TypeAdapter(AnyResponse)
