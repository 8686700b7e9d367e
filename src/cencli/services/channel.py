"""Single-producer/single-consumer pipe shared by progress and streaming.

A :class:`Channel` hands items from the operation's thread to one dedicated
consumer thread. With ``buffer=0`` the hand-off is synchronous: ``send``
returns only once the consumer has finished with the item. A positive buffer
lets the producer run that many items ahead.

The producer ends the pipe with :meth:`Channel.close`, which enqueues a final
*done* item carrying an optional error. Iterating the channel is the consumer
side; iteration ends at the done item.
"""

from __future__ import annotations

import functools
import queue
import threading
from collections.abc import Callable, Iterator
from typing import Any, Generic, TypeVar

T = TypeVar("T")
F = TypeVar("F", bound=Callable[..., Any])


class ChannelClosedError(Exception):
    """Raised when sending on a closed channel."""


def run_once(func: F) -> F:
    """Make ``func`` run at most once; later calls wait for it and return None."""
    lock = threading.Lock()
    called = False

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        nonlocal called
        with lock:
            if called:
                return None
            called = True
            return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


class Channel(Generic[T]):
    """Blocking FIFO between one producer and one consumer.

    Subclasses define how the final done item is built and which error is
    raised after close.

    Parameters
    ----------
    buffer : int
        Items the producer may run ahead of the consumer; 0 is synchronous
    """

    closed_error: type[ChannelClosedError] = ChannelClosedError

    def __init__(self, buffer: int = 0) -> None:
        if buffer < 0:
            msg = f"buffer must not be negative, got {buffer}"
            raise ValueError(msg)
        self.buffer = buffer
        self._queue: queue.Queue[T] = queue.Queue(maxsize=max(buffer, 1))
        self._lock = threading.Lock()
        self._closed = False
        self.final_error: BaseException | None = None

    @property
    def closed(self) -> bool:
        """Whether :meth:`close` has been called."""
        with self._lock:
            return self._closed

    def _final_item(self, error: BaseException | None) -> T:
        raise NotImplementedError

    def _is_final(self, item: T) -> bool:
        raise NotImplementedError

    def _send(self, item: T) -> None:
        if self.closed:
            raise self.closed_error
        self._queue.put(item)
        if self.buffer == 0:
            # Wait until the consumer is done with the item
            self._queue.join()

    def close(self, error: BaseException | None = None) -> None:
        """Close the channel with an optional final error.

        Idempotent. Blocks only while the consumer drains the item ahead of
        the final one.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self.final_error = error
        self._queue.put(self._final_item(error))

    def __iter__(self) -> Iterator[T]:
        while True:
            item = self._queue.get()
            try:
                if self._is_final(item):
                    return
                yield item
            finally:
                self._queue.task_done()


def start_consumer(
    name: str,
    target: Callable[[], None],
) -> threading.Thread:
    """Start a daemon consumer thread."""
    thread = threading.Thread(target=target, name=name, daemon=True)
    thread.start()
    return thread
