from __future__ import annotations

import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)

Listener = Callable[[str, dict], None]


class StockEventBroadcaster:
    """Fans stock events out to in-process listeners (push channels, tests)."""

    def __init__(self):
        self._lock = threading.Lock()
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def publish(self, event_name: str, payload: dict) -> int:
        with self._lock:
            listeners = list(self._listeners)

        logger.info(
            "Publishing %s for product %s to %d listener(s).",
            event_name,
            payload.get("product_id"),
            len(listeners),
            extra={"event": event_name, "product_id": payload.get("product_id")},
        )
        delivered = 0
        for listener in listeners:
            try:
                listener(event_name, dict(payload))
            # noinspection PyBroadException
            except Exception:
                logger.exception("Stock event listener failed for %s.", event_name)
                continue
            delivered += 1
        return delivered


__all__ = ["Listener", "StockEventBroadcaster"]
