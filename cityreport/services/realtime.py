# cityreport/services/realtime.py
"""In-process feed of newly inserted notifications, keyed by recipient.

Request handlers run in a worker thread, so ``publish`` hands each payload to
the subscriber's own event loop. A subscription must be closed when its
WebSocket goes away; use it as a context manager.
"""
import asyncio
import logging
import threading
from collections import defaultdict

logger = logging.getLogger(__name__)


class Subscription:
    def __init__(self, hub: "NotificationHub", recipient_id: int, loop: asyncio.AbstractEventLoop):
        self.recipient_id = recipient_id
        self._hub = hub
        self._loop = loop
        self._queue: asyncio.Queue = asyncio.Queue()
        self.closed = False

    def _deliver(self, payload: dict):
        if self.closed:
            return
        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, payload)
        except RuntimeError:
            # loop already shut down
            self.close()

    async def get(self) -> dict:
        return await self._queue.get()

    def __aiter__(self):
        return self

    async def __anext__(self) -> dict:
        if self.closed:
            raise StopAsyncIteration
        return await self.get()

    def close(self):
        if not self.closed:
            self.closed = True
            self._hub._remove(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class NotificationHub:
    def __init__(self):
        self._subs: dict[int, set[Subscription]] = defaultdict(set)
        self._lock = threading.Lock()

    def subscribe(self, recipient_id: int) -> Subscription:
        """Open a feed for one recipient. Must be called from a running event loop."""
        sub = Subscription(self, recipient_id, asyncio.get_running_loop())
        with self._lock:
            self._subs[recipient_id].add(sub)
        logger.debug("notification feed opened for admin %s", recipient_id)
        return sub

    def _remove(self, sub: Subscription):
        with self._lock:
            subs = self._subs.get(sub.recipient_id)
            if subs is not None:
                subs.discard(sub)
                if not subs:
                    del self._subs[sub.recipient_id]
        logger.debug("notification feed closed for admin %s", sub.recipient_id)

    def subscriber_count(self, recipient_id: int) -> int:
        with self._lock:
            return len(self._subs.get(recipient_id, ()))

    def publish(self, recipient_id: int, payload: dict) -> int:
        with self._lock:
            subs = list(self._subs.get(recipient_id, ()))
        for sub in subs:
            sub._deliver(payload)
        return len(subs)


hub = NotificationHub()
