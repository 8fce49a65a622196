"""Live subscriber registry and broadcast fan-out."""

from __future__ import annotations

import asyncio
import itertools
import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class Subscriber(Protocol):
    """Anything that can receive a text frame (e.g. a WebSocket)."""

    async def send_text(self, data: str) -> None: ...


class SubscriberRegistry:
    """Fan-out to live subscribers, keyed by an opaque integer handle.

    A subscriber whose send fails, or does not finish within
    ``send_timeout`` seconds, is logged and dropped; the remaining
    subscribers still receive the message.
    """

    def __init__(self, send_timeout: float = 5.0) -> None:
        self.send_timeout = send_timeout
        self._subscribers: dict[int, Subscriber] = {}
        self._ids = itertools.count(1)

    def __len__(self) -> int:
        return len(self._subscribers)

    def __contains__(self, handle: object) -> bool:
        return handle in self._subscribers

    def add(self, subscriber: Subscriber) -> int:
        handle = next(self._ids)
        self._subscribers[handle] = subscriber
        logger.debug("Subscriber %d connected (%d live)", handle, len(self._subscribers))
        return handle

    def discard(self, handle: int) -> None:
        if self._subscribers.pop(handle, None) is not None:
            logger.debug("Subscriber %d removed (%d live)", handle, len(self._subscribers))

    async def deliver(self, subscriber: Subscriber, data: str) -> None:
        """Send one frame, raising ``TimeoutError`` if it stalls."""
        await asyncio.wait_for(subscriber.send_text(data), timeout=self.send_timeout)

    async def broadcast(self, data: str) -> None:
        targets = list(self._subscribers.items())
        if not targets:
            return

        results = await asyncio.gather(
            *(self.deliver(subscriber, data) for _, subscriber in targets),
            return_exceptions=True,
        )
        for (handle, _), result in zip(targets, results):
            if isinstance(result, Exception):
                logger.warning(
                    "Dropping subscriber %d after send failure: %s: %s",
                    handle,
                    type(result).__name__,
                    result,
                )
                self.discard(handle)
