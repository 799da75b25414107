"""
Reactive Signal System

🔄 Replay-Latest Observables:
A Signal holds a single current value and pushes every new value to its
subscribers in the order it was set. A new subscriber receives the current
value first, so a late observer never waits for the next change to render.

Key Features:
- Synchronous callbacks for in-process derivations
- Async iteration for observers running in their own task
- Explicit close that ends every open iterator
"""

import asyncio
import logging
from typing import Any, AsyncIterator, Callable, Generic, List, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')

# Pushed onto observer queues when the signal closes
_CLOSED = object()


class Signal(Generic[T]):
    """
    Observable value with replay-latest semantics.

    Every call to ``set`` is delivered to every current subscriber exactly
    once, in call order, except to conflating observers, which only see the
    newest of the values queued while they were busy. Observers never see a
    value older than one they have already received.
    """

    def __init__(self, initial: T, name: str = "signal"):
        self.name = name
        self._value = initial
        self._callbacks: List[Callable[[T], Any]] = []
        self._queues: List[asyncio.Queue] = []
        self._closed = False

    @property
    def value(self) -> T:
        """The most recently set value."""
        return self._value

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def subscriber_count(self) -> int:
        """Number of active callbacks and async observers."""
        return len(self._callbacks) + len(self._queues)

    def set(self, value: T) -> None:
        """
        Replace the current value and notify all subscribers.

        Args:
            value: The new value

        Raises:
            RuntimeError: If the signal has been closed
        """
        if self._closed:
            raise RuntimeError(f"Signal '{self.name}' is closed")

        self._value = value
        for callback in list(self._callbacks):
            try:
                callback(value)
            except Exception:
                logger.exception("Signal '%s' callback %r failed", self.name, callback)

        for queue in self._queues:
            queue.put_nowait(value)

    def subscribe(self, callback: Callable[[T], Any], replay: bool = True) -> Callable[[], None]:
        """
        Register a synchronous callback.

        Args:
            callback: Called with each new value
            replay: Call it immediately with the current value

        Returns:
            A function that removes the callback again
        """
        self._callbacks.append(callback)
        if replay:
            callback(self._value)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    async def observe(self, conflate: bool = False) -> AsyncIterator[T]:
        """
        Iterate over the current value and every later one.

        The iterator is lazy: the replayed value is whatever is current when
        iteration starts. It ends when the signal is closed.

        Args:
            conflate: Skip values superseded while the observer was busy and
                yield only the newest one
        """
        if self._closed:
            return

        queue: asyncio.Queue = asyncio.Queue()
        queue.put_nowait(self._value)
        self._queues.append(queue)
        try:
            while True:
                item = await queue.get()
                while conflate and item is not _CLOSED and not queue.empty():
                    item = queue.get_nowait()
                if item is _CLOSED:
                    return
                yield item
        finally:
            if queue in self._queues:
                self._queues.remove(queue)

    def close(self) -> None:
        """Drop callbacks and end every open observer."""
        if self._closed:
            return
        self._closed = True
        self._callbacks.clear()
        for queue in self._queues:
            queue.put_nowait(_CLOSED)

    def __repr__(self):
        return f"Signal({self.name}={self._value!r})"
