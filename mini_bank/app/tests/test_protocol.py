import json
from decimal import Decimal

import pytest

from ..core.errors import ErrorKind, MalformedCommandError
from ..models import (
    CreateAccountRequest,
    DepositRequest,
    MalformedResponse,
    TransferRequest,
)
from ..services import CommandHandler, decode_request, decode_response, encode


def send(handler: CommandHandler, payload: dict) -> dict:
    return json.loads(handler.handle(json.dumps(payload).encode("utf-8")))


def test_decode_request_builds_typed_command() -> None:
    request = decode_request(
        b'{"version": 1, "id": "cmd_1", "kind": "Transfer",'
        b' "from_number": "a", "to_number": "b", "amount": "12.50"}'
    )
    assert isinstance(request, TransferRequest)
    assert request.id == "cmd_1"
    assert request.amount == Decimal("12.50")


def test_decode_request_generates_correlation_id() -> None:
    request = decode_request('{"kind": "CreateAccount", "owner": "Alice"}')
    assert isinstance(request, CreateAccountRequest)
    assert request.id.startswith("cmd_")
    assert request.version == 1


def test_encoded_request_decodes_to_equal_command() -> None:
    request = DepositRequest(number="abc", amount=Decimal("0.10"))
    assert decode_request(encode(request)) == request


@pytest.mark.parametrize(
    "payload",
    [
        b"not json",
        b"[1, 2, 3]",
        b'{"kind": "Explode"}',
        b'{"kind": "Deposit", "number": "abc"}',
        b'{"kind": "Deposit", "number": "abc", "amount": "NaN"}',
        b'{"kind": "Deposit", "number": "abc", "amount": "lots"}',
        b'{"kind": "CreateAccount", "owner": ""}',
        b'{"version": 2, "kind": "ListActiveAccounts"}',
        b'{"kind": "ListActiveAccounts", "unexpected": true}',
        b"\xff\xfe",
    ],
)
def test_decode_request_rejects_malformed_payloads(payload: bytes) -> None:
    with pytest.raises(MalformedCommandError):
        decode_request(payload)


def test_decode_request_enforces_size_limit() -> None:
    payload = json.dumps({"kind": "CreateAccount", "owner": "x" * 100}).encode("utf-8")
    with pytest.raises(MalformedCommandError, match="exceeds limit"):
        decode_request(payload, max_bytes=50)


def test_handler_round_trip(handler: CommandHandler) -> None:
    created = send(handler, {"id": "cmd_a", "kind": "CreateAccount", "owner": "Alice"})
    assert created["kind"] == "CreateAccount"
    assert created["correlation_id"] == "cmd_a"
    assert created["error"] is None
    number = created["account_number"]

    deposit = send(handler, {"kind": "Deposit", "number": number, "amount": "100"})
    assert Decimal(deposit["new_balance"]) == Decimal("100")

    withdraw = send(handler, {"kind": "Withdraw", "number": number, "amount": 150})
    assert withdraw["error"] == "Overdrawn"
    assert withdraw["new_balance"] is None

    account = send(handler, {"kind": "GetAccount", "number": number})
    assert account["found"] is True
    assert account["owner"] == "Alice"
    assert Decimal(account["balance"]) == Decimal("100")


def test_handler_answers_malformed_with_recovered_id(handler: CommandHandler) -> None:
    reply = send(handler, {"id": "cmd_bad", "kind": "Deposit", "number": "abc"})
    assert reply["kind"] == "Malformed"
    assert reply["error"] == "Malformed"
    assert reply["correlation_id"] == "cmd_bad"
    assert "amount" in reply["detail"]


def test_handler_answers_malformed_for_garbage(handler: CommandHandler) -> None:
    response = decode_response(handler.handle(b"\x00\x01garbage"))
    assert isinstance(response, MalformedResponse)
    assert response.error == ErrorKind.MALFORMED
    assert response.correlation_id is None


def test_handler_rejects_oversized_payload(handler: CommandHandler) -> None:
    payload = json.dumps({"kind": "CreateAccount", "owner": "x" * 5000}).encode("utf-8")
    response = decode_response(handler.handle(payload))
    assert isinstance(response, MalformedResponse)


@pytest.mark.parametrize("amount", ["9E+999999", "1E+30", "-1E+30", "0.00001", "1E-100"])
def test_decode_request_rejects_amounts_out_of_range(amount: str) -> None:
    payload = json.dumps({"kind": "Deposit", "number": "abc", "amount": amount})
    with pytest.raises(MalformedCommandError):
        decode_request(payload)


def test_decode_request_accepts_largest_amount() -> None:
    request = decode_request(
        '{"kind": "Withdraw", "number": "abc", "amount": "999999999999999999.9999"}'
    )
    assert request.amount == Decimal("999999999999999999.9999")


def test_handler_keeps_answering_huge_amounts(handler: CommandHandler) -> None:
    number = send(handler, {"kind": "CreateAccount", "owner": "Alice"})["account_number"]

    for _ in range(2):
        reply = send(
            handler,
            {"id": "cmd_big", "kind": "Deposit", "number": number, "amount": "9E+999999"},
        )
        assert reply["kind"] == "Malformed"
        assert reply["correlation_id"] == "cmd_big"

    account = send(handler, {"kind": "GetAccount", "number": number})
    assert Decimal(account["balance"]) == Decimal("0")
