from __future__ import annotations

from threading import RLock
from typing import Callable, Generic, TypeVar

P = TypeVar("P")
Handler = Callable[[P], None]


class Signal(Generic[P]):
    """Synchronous publish/subscribe channel carrying one payload type.

    Handlers run on the emitting thread in the order they were connected;
    connecting the same handler twice is a no-op. A handler raising
    ``ReferenceError`` (a dead weak proxy) is dropped, any other exception
    reaches the emitter.
    """

    def __init__(self) -> None:
        # dict keys keep insertion order and give O(1) membership
        self._handlers: dict[Handler, None] = {}
        self._lock = RLock()

    def connect(self, handler: Handler) -> None:
        with self._lock:
            self._handlers.setdefault(handler, None)

    def disconnect(self, handler: Handler) -> None:
        with self._lock:
            self._handlers.pop(handler, None)

    def clear(self) -> None:
        with self._lock:
            self._handlers = {}

    @property
    def subscriber_count(self) -> int:
        return len(self._handlers)

    def emit(self, payload: P) -> None:
        with self._lock:
            snapshot = tuple(self._handlers)
        dead = [handler for handler in snapshot if not _deliver(handler, payload)]
        for handler in dead:
            self.disconnect(handler)


def _deliver(handler: Handler, payload) -> bool:
    try:
        handler(payload)
    except ReferenceError:
        return False
    return True


__all__ = ["Signal"]
