# ============================================================================
# apps/display/broadcast.py - Publish/subscribe for display clients
# ============================================================================

import asyncio
import itertools
import logging
import threading
from typing import Any, Callable, Dict

logger = logging.getLogger(__name__)

TICKET_CALLED = "ticketCalled"

Listener = Callable[[str, Dict[str, Any]], None]


class Broadcaster:
    """Fan-out of call events to the subscribed displays.

    ``publish`` can be called from any thread. Delivery is best effort: a
    listener that raises is logged and removed, and displays that were not
    connected simply miss the event.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._listeners: Dict[int, Listener] = {}
        self._ids = itertools.count(1)

    def subscribe(self, listener: Listener) -> int:
        with self._lock:
            token = next(self._ids)
            self._listeners[token] = listener
        logger.info(f"Display subscriber {token} connected ({len(self)} total)")
        return token

    def unsubscribe(self, token: int) -> None:
        with self._lock:
            removed = self._listeners.pop(token, None)
        if removed is not None:
            logger.info(f"Display subscriber {token} disconnected")

    def subscribe_queue(self, loop: asyncio.AbstractEventLoop, queue: "asyncio.Queue") -> int:
        """Subscribe an asyncio queue that lives on ``loop``"""

        def _enqueue(topic: str, payload: Dict[str, Any]) -> None:
            loop.call_soon_threadsafe(queue.put_nowait, {"event": topic, "data": payload})

        return self.subscribe(_enqueue)

    def publish(self, topic: str, payload: Dict[str, Any]) -> int:
        """Deliver ``payload`` to every listener; returns how many received it"""
        with self._lock:
            listeners = list(self._listeners.items())

        delivered = 0
        for token, listener in listeners:
            try:
                listener(topic, payload)
                delivered += 1
            except Exception as e:
                logger.warning(f"Dropping display subscriber {token}: {e}")
                self.unsubscribe(token)
        logger.debug(f"Published {topic} to {delivered} subscriber(s)")
        return delivered

    def __len__(self) -> int:
        with self._lock:
            return len(self._listeners)
