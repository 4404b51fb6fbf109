"""Wire codec and the single entry point used by every transport adapter."""

from __future__ import annotations

import json
import logging
from typing import Optional, Union

from pydantic import BaseModel, ValidationError

from ..core.errors import MalformedCommandError
from ..models import (
    CommandRequest,
    CommandResponse,
    MalformedResponse,
    request_adapter,
    response_adapter,
)
from .dispatcher import CommandDispatcher


logger = logging.getLogger(__name__)

Payload = Union[bytes, str]


def _as_text(payload: Payload) -> str:
    if isinstance(payload, str):
        return payload
    try:
        return payload.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedCommandError("Payload is not valid UTF-8") from exc


def _recover_id(text: str) -> Optional[str]:
    try:
        data = json.loads(text)
    except ValueError:
        return None
    if isinstance(data, dict) and isinstance(data.get("id"), str):
        return data["id"]
    return None


def _describe(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    if location:
        return f"{location}: {first['msg']}"
    return first["msg"]


def decode_request(payload: Payload, max_bytes: Optional[int] = None) -> CommandRequest:
    """Decode one request, raising ``MalformedCommandError`` on any defect."""
    size = len(payload.encode("utf-8")) if isinstance(payload, str) else len(payload)
    if max_bytes is not None and size > max_bytes:
        raise MalformedCommandError(f"Payload of {size} bytes exceeds limit of {max_bytes}")

    text = _as_text(payload)
    try:
        return request_adapter.validate_json(text)
    except ValidationError as exc:
        raise MalformedCommandError(_describe(exc), correlation_id=_recover_id(text)) from exc


def decode_response(payload: Payload) -> CommandResponse:
    return response_adapter.validate_json(_as_text(payload))


def encode(message: BaseModel) -> bytes:
    return message.model_dump_json().encode("utf-8")


def encode_response(response: CommandResponse) -> bytes:
    return encode(response)


def malformed_response(error: MalformedCommandError) -> MalformedResponse:
    return MalformedResponse(correlation_id=error.correlation_id, detail=error.detail)


class CommandHandler:
    """Implements ``handle(command_bytes) -> response_bytes`` for adapters.

    Undecodable payloads are answered with a ``Malformed`` response; they
    never reach the dispatcher.
    """

    def __init__(
        self,
        dispatcher: CommandDispatcher,
        max_payload_bytes: Optional[int] = None,
    ) -> None:
        self.dispatcher = dispatcher
        self.max_payload_bytes = max_payload_bytes

    def execute(self, payload: Payload) -> CommandResponse:
        try:
            request = decode_request(payload, self.max_payload_bytes)
        except MalformedCommandError as exc:
            logger.warning(
                "command.malformed",
                extra={"detail": exc.detail, "correlation_id": exc.correlation_id},
            )
            return malformed_response(exc)
        logger.debug("command.received", extra={"kind": request.kind, "correlation_id": request.id})
        return self.dispatcher.dispatch(request)

    def handle(self, payload: Payload) -> bytes:
        return encode_response(self.execute(payload))
