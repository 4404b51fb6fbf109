"""Message-queue transport.

``InMemoryBroker`` offers named point-to-point queues and fan-out topics on
one event loop. ``BrokerAdapter`` consumes bank requests from a queue, sends
each reply to the queue named in the message's ``reply_to`` and publishes
``AccountChanged`` events on the update topic. Queue and topic names are
given to the adapter when it is built.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from fastapi.concurrency import run_in_threadpool

from ..models import AccountChangedEvent, CommandRequest, CommandResponse
from ..services import AccountUpdateNotifier, CommandHandler, decode_response, encode


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BrokerMessage:
    body: bytes
    correlation_id: Optional[str] = None
    reply_to: Optional[str] = None


class InMemoryBroker:
    def __init__(self) -> None:
        self._queues: Dict[str, asyncio.Queue[BrokerMessage]] = {}
        self._topics: Dict[str, List[asyncio.Queue[BrokerMessage]]] = {}

    def queue(self, name: str) -> asyncio.Queue[BrokerMessage]:
        if name not in self._queues:
            self._queues[name] = asyncio.Queue()
        return self._queues[name]

    def delete_queue(self, name: str) -> None:
        self._queues.pop(name, None)

    async def send(self, queue_name: str, message: BrokerMessage) -> None:
        await self.queue(queue_name).put(message)

    async def receive(self, queue_name: str, timeout: Optional[float] = None) -> BrokerMessage:
        return await asyncio.wait_for(self.queue(queue_name).get(), timeout)

    def subscribe(self, topic: str) -> asyncio.Queue[BrokerMessage]:
        subscription: asyncio.Queue[BrokerMessage] = asyncio.Queue()
        self._topics.setdefault(topic, []).append(subscription)
        return subscription

    def unsubscribe(self, topic: str, subscription: asyncio.Queue[BrokerMessage]) -> None:
        subscribers = self._topics.get(topic, [])
        if subscription in subscribers:
            subscribers.remove(subscription)

    def publish(self, topic: str, message: BrokerMessage) -> None:
        for subscription in list(self._topics.get(topic, ())):
            subscription.put_nowait(message)


class BrokerAdapter:
    def __init__(
        self,
        broker: InMemoryBroker,
        handler: CommandHandler,
        notifier: AccountUpdateNotifier,
        request_queue: str,
        update_topic: str,
    ) -> None:
        self.broker = broker
        self.handler = handler
        self.notifier = notifier
        self.request_queue = request_queue
        self.update_topic = update_topic
        self._task: Optional[asyncio.Task[None]] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    async def start(self) -> None:
        loop = asyncio.get_running_loop()
        self._unsubscribe = self.notifier.subscribe(
            lambda number: loop.call_soon_threadsafe(self._publish_update, number)
        )
        self._task = asyncio.create_task(self._consume())
        logger.info(
            "broker.started",
            extra={"request_queue": self.request_queue, "update_topic": self.update_topic},
        )

    async def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        logger.info("broker.stopped", extra={"request_queue": self.request_queue})

    def _publish_update(self, number: str) -> None:
        event = encode(AccountChangedEvent(number=number))
        self.broker.publish(self.update_topic, BrokerMessage(body=event))

    async def _consume(self) -> None:
        while True:
            message = await self.broker.receive(self.request_queue)
            try:
                reply = await run_in_threadpool(self.handler.handle, message.body)
            except Exception:
                logger.exception(
                    "broker.request_failed",
                    extra={"correlation_id": message.correlation_id},
                )
                continue

            if message.reply_to is None:
                logger.warning(
                    "broker.no_reply_to",
                    extra={"correlation_id": message.correlation_id},
                )
                continue
            await self.broker.send(
                message.reply_to,
                BrokerMessage(body=reply, correlation_id=message.correlation_id),
            )


async def call(
    broker: InMemoryBroker,
    request_queue: str,
    request: CommandRequest,
    timeout: Optional[float] = 5.0,
) -> CommandResponse:
    """Send one request through the broker and wait for its reply."""
    reply_queue = f"reply.{request.id}"
    try:
        await broker.send(
            request_queue,
            BrokerMessage(body=encode(request), correlation_id=request.id, reply_to=reply_queue),
        )
        reply = await broker.receive(reply_queue, timeout)
    finally:
        broker.delete_queue(reply_queue)
    return decode_response(reply.body)
