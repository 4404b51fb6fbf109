"""WebSocket channel: one text frame in, one text frame out.

Binary frames are answered with a ``Malformed`` response.

Besides command responses, every connected session receives an
``AccountChanged`` event whenever an account is created or mutated.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool

from ..core.dependencies import get_command_handler, get_notifier
from ..models import AccountChangedEvent, MalformedResponse
from ..services import AccountUpdateNotifier, CommandHandler, encode


logger = logging.getLogger(__name__)

ws_router = APIRouter(tags=["websocket"])


async def _push_updates(
    websocket: WebSocket,
    updates: asyncio.Queue[str],
    send_lock: asyncio.Lock,
) -> None:
    while True:
        number = await updates.get()
        event = encode(AccountChangedEvent(number=number)).decode("utf-8")
        async with send_lock:
            await websocket.send_text(event)


@ws_router.websocket("/ws")
async def command_channel(
    websocket: WebSocket,
    handler: CommandHandler = Depends(get_command_handler),
    notifier: AccountUpdateNotifier = Depends(get_notifier),
) -> None:
    await websocket.accept()
    loop = asyncio.get_running_loop()
    send_lock = asyncio.Lock()
    updates: asyncio.Queue[str] = asyncio.Queue()

    unsubscribe = notifier.subscribe(
        lambda number: loop.call_soon_threadsafe(updates.put_nowait, number)
    )
    push_task = asyncio.create_task(_push_updates(websocket, updates, send_lock))
    logger.info("websocket.connected", extra={"client": str(websocket.client)})

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            payload = message.get("text")
            if payload is None:
                reply = encode(MalformedResponse(detail="Only text frames are accepted"))
            else:
                reply = await run_in_threadpool(handler.handle, payload)
            async with send_lock:
                await websocket.send_text(reply.decode("utf-8"))
    except WebSocketDisconnect:
        logger.info("websocket.disconnected", extra={"client": str(websocket.client)})
    except Exception:
        logger.exception("websocket.failed", extra={"client": str(websocket.client)})
        raise
    finally:
        unsubscribe()
        push_task.cancel()
        # The push task may already have died on a closed socket.
        with contextlib.suppress(asyncio.CancelledError, WebSocketDisconnect, RuntimeError):
            await push_task


__all__ = ["ws_router"]
