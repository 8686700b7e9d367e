"""Progress events for long-running operations.

Business logic reports what it is doing through the publisher bound to the
current context; it never talks to the terminal. When no publisher is bound
the report helpers do nothing, so services run unchanged outside a command.
"""

from __future__ import annotations

import contextlib
import contextvars
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum

from cencli.services.channel import Channel, ChannelClosedError


class Stage(str, Enum):
    """Phase of an operation."""

    PREPARE = "prepare"
    FETCH = "fetch"
    PROCESS = "process"
    RENDER = "render"


@dataclass(frozen=True)
class ProgressEvent:
    """One progress update.

    ``message`` falls back to the stage tag when rendered; ``done`` marks the
    final event enqueued by :meth:`ChannelPublisher.close`.
    """

    stage: Stage | None = None
    message: str = ""
    done: bool = False
    error: BaseException | None = None

    @property
    def display_message(self) -> str:
        if self.message:
            return self.message
        return self.stage.value if self.stage is not None else ""


class PublisherClosedError(ChannelClosedError):
    """Raised when publishing after the publisher was closed."""

    def __str__(self) -> str:
        return "progress publisher closed"


class ChannelPublisher(Channel[ProgressEvent]):
    """Progress pipe; ``buffer=0`` makes every publish wait for the consumer."""

    closed_error = PublisherClosedError

    def publish(self, event: ProgressEvent) -> None:
        """Send an event to the consumer.

        Raises
        ------
        PublisherClosedError
            If the publisher was closed
        """
        self._send(event)

    def _final_item(self, error: BaseException | None) -> ProgressEvent:
        return ProgressEvent(done=True, error=error)

    def _is_final(self, item: ProgressEvent) -> bool:
        return item.done


_current_publisher: contextvars.ContextVar[ChannelPublisher | None] = (
    contextvars.ContextVar("cencli_progress_publisher", default=None)
)


@contextlib.contextmanager
def bind_publisher(publisher: ChannelPublisher | None) -> Iterator[None]:
    """Make ``publisher`` current for the duration of the block."""
    if publisher is None:
        yield
        return
    token = _current_publisher.set(publisher)
    try:
        yield
    finally:
        _current_publisher.reset(token)


def current_publisher() -> ChannelPublisher | None:
    """The publisher bound to the current context, if any."""
    return _current_publisher.get()


def publish(event: ProgressEvent) -> None:
    """Publish through the bound publisher; no-op when none is bound."""
    publisher = current_publisher()
    if publisher is None:
        return
    publisher.publish(event)


def report_stage(stage: Stage) -> None:
    """Report entering ``stage``; a closed publisher is ignored."""
    with contextlib.suppress(PublisherClosedError):
        publish(ProgressEvent(stage=stage))


def report_message(stage: Stage, message: str) -> None:
    """Report a human message for ``stage``; a closed publisher is ignored."""
    with contextlib.suppress(PublisherClosedError):
        publish(ProgressEvent(stage=stage, message=message))


def report_error(stage: Stage, error: BaseException | None) -> None:
    """Report a non-fatal error for ``stage``; a closed publisher is ignored."""
    if error is None:
        return
    with contextlib.suppress(PublisherClosedError):
        publish(ProgressEvent(stage=stage, message=str(error), error=error))
