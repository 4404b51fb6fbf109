from __future__ import annotations

import logging
import threading
from typing import Callable, List


logger = logging.getLogger(__name__)

UpdateCallback = Callable[[str], None]


class AccountUpdateNotifier:
    """Fans out the numbers of changed accounts to registered listeners.

    Callbacks run in the publishing thread, so listeners living on an event
    loop must hand the number over with ``loop.call_soon_threadsafe``.
    """

    def __init__(self) -> None:
        self._subscribers: List[UpdateCallback] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: UpdateCallback) -> Callable[[], None]:
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, number: str) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(number)
            except Exception:
                logger.exception("notifier.subscriber_failed", extra={"number": number})

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)
