from .broker import BrokerAdapter, BrokerMessage, InMemoryBroker, call
from .socket_server import FrameError, SocketServer, read_frame, send_command, write_frame

__all__ = [
    "BrokerAdapter",
    "BrokerMessage",
    "FrameError",
    "InMemoryBroker",
    "SocketServer",
    "call",
    "read_frame",
    "send_command",
    "write_frame",
]
