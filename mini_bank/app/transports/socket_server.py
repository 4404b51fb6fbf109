"""Raw TCP transport with length-prefixed frames.

Each frame is a 4-byte big-endian payload length followed by the payload.
A connection may carry any number of request/response frame pairs.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import struct
from typing import Optional

from fastapi.concurrency import run_in_threadpool

from ..models import CommandRequest, CommandResponse
from ..services import CommandHandler, decode_response, encode


logger = logging.getLogger(__name__)

HEADER = struct.Struct(">I")
DEFAULT_MAX_FRAME_BYTES = 1024 * 1024


class FrameError(ConnectionError):
    """Raised when a peer sends a truncated or oversized frame."""


async def read_frame(
    reader: asyncio.StreamReader,
    max_bytes: int = DEFAULT_MAX_FRAME_BYTES,
) -> Optional[bytes]:
    """Read one frame, or return None on a clean end of stream."""
    try:
        header = await reader.readexactly(HEADER.size)
    except asyncio.IncompleteReadError as exc:
        if exc.partial:
            raise FrameError("Truncated frame header") from exc
        return None

    (length,) = HEADER.unpack(header)
    if length > max_bytes:
        raise FrameError(f"Frame of {length} bytes exceeds limit of {max_bytes}")
    try:
        return await reader.readexactly(length)
    except asyncio.IncompleteReadError as exc:
        raise FrameError("Truncated frame body") from exc


def write_frame(writer: asyncio.StreamWriter, payload: bytes) -> None:
    writer.write(HEADER.pack(len(payload)) + payload)


class SocketServer:
    def __init__(
        self,
        handler: CommandHandler,
        host: str = "127.0.0.1",
        port: int = 0,
        max_frame_bytes: int = DEFAULT_MAX_FRAME_BYTES,
    ) -> None:
        self.handler = handler
        self.host = host
        self.port = port
        self.max_frame_bytes = max_frame_bytes
        self._server: Optional[asyncio.AbstractServer] = None

    async def start(self) -> None:
        self._server = await asyncio.start_server(self._serve_client, self.host, self.port)
        # Port 0 asks the OS for a free port; record the one we got.
        self.port = self._server.sockets[0].getsockname()[1]
        logger.info("socket.listening", extra={"host": self.host, "port": self.port})

    async def stop(self) -> None:
        if self._server is None:
            return
        self._server.close()
        await self._server.wait_closed()
        self._server = None
        logger.info("socket.stopped", extra={"host": self.host, "port": self.port})

    async def _serve_client(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        peer = str(writer.get_extra_info("peername"))
        logger.info("socket.connected", extra={"peer": peer})
        try:
            while True:
                payload = await read_frame(reader, self.max_frame_bytes)
                if payload is None:
                    break
                reply = await run_in_threadpool(self.handler.handle, payload)
                write_frame(writer, reply)
                await writer.drain()
        except ConnectionError as exc:
            logger.warning("socket.dropped", extra={"peer": peer, "reason": str(exc)})
        finally:
            writer.close()
            with contextlib.suppress(ConnectionError):
                await writer.wait_closed()


async def send_command(
    host: str,
    port: int,
    request: CommandRequest,
    max_frame_bytes: int = DEFAULT_MAX_FRAME_BYTES,
) -> CommandResponse:
    """Open a connection, send one request and return the decoded response."""
    reader, writer = await asyncio.open_connection(host, port)
    try:
        write_frame(writer, encode(request))
        await writer.drain()
        payload = await read_frame(reader, max_frame_bytes)
        if payload is None:
            raise ConnectionError("Server closed the connection without replying")
        return decode_response(payload)
    finally:
        writer.close()
        with contextlib.suppress(ConnectionError):
            await writer.wait_closed()
