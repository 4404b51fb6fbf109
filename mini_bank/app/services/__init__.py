from .dispatcher import CommandDispatcher
from .notifier import AccountUpdateNotifier
from .protocol import (
    CommandHandler,
    decode_request,
    decode_response,
    encode,
    encode_response,
    malformed_response,
)
from .store import AccountStore

__all__ = [
    "AccountStore",
    "AccountUpdateNotifier",
    "CommandDispatcher",
    "CommandHandler",
    "decode_request",
    "decode_response",
    "encode",
    "encode_response",
    "malformed_response",
]
