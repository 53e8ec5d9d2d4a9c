"""
In-process topic bus.

Handlers run synchronously on the publisher's thread. A failing handler is
logged and does not affect the other subscribers of the topic.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from typing import Any, Callable, Dict, List

Handler = Callable[[Any], Any]


class MessageBus:
    def __init__(self):
        self._lock = threading.Lock()
        self._handlers: Dict[str, List[Handler]] = defaultdict(list)

    def subscribe(self, topic: str, handler: Handler) -> None:
        with self._lock:
            self._handlers[topic].append(handler)
        logging.info(f"Subscribed {getattr(handler, '__qualname__', handler)} to {topic}")

    def unsubscribe(self, topic: str, handler: Handler) -> None:
        with self._lock:
            if handler in self._handlers.get(topic, []):
                self._handlers[topic].remove(handler)

    def publish(self, topic: str, message: Any) -> int:
        """
        Deliver a message to every subscriber of a topic.

        Returns the number of handlers that completed without error.
        """
        with self._lock:
            handlers = list(self._handlers.get(topic, []))

        delivered = 0
        for handler in handlers:
            try:
                handler(message)
            except Exception as e:
                logging.warning(f"Handler error on {topic}: {e}")
            else:
                delivered += 1
        return delivered

    def subscriber_count(self, topic: str) -> int:
        with self._lock:
            return len(self._handlers.get(topic, []))
