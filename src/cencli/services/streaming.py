"""Incremental NDJSON output for streaming mode.

When ``--streaming`` is active the command binds an emitter; services hand
each result record to it as soon as they have it, and a dedicated writer
thread prints one NDJSON line per record. The single-shot render path is
skipped for the whole invocation.
"""

from __future__ import annotations

import contextlib
import contextvars
import logging
import sys
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import IO, Any, TypeVar

from cencli.core.constants import STREAM_BUFFER_SIZE
from cencli.services.channel import (
    Channel,
    ChannelClosedError,
    run_once,
    start_consumer,
)

T = TypeVar("T")

StopFunc = Callable[[BaseException | None], None]


@dataclass(frozen=True)
class StreamItem:
    """One streamed record, or a per-record failure."""

    data: Any = None
    error: BaseException | None = None
    done: bool = False


class EmitterClosedError(ChannelClosedError):
    """Raised when emitting after the emitter was closed."""

    def __str__(self) -> str:
        return "streaming emitter closed"


class ChannelEmitter(Channel[StreamItem]):
    """Streaming pipe with a small buffer."""

    closed_error = EmitterClosedError

    def __init__(self, buffer: int = STREAM_BUFFER_SIZE) -> None:
        super().__init__(max(buffer, 1))

    def emit(self, data: Any) -> None:
        """Send a record to the writer."""
        self._send(StreamItem(data=data))

    def emit_error(self, error: BaseException) -> None:
        """Send a per-record failure; the writer logs and skips it."""
        self._send(StreamItem(error=error))

    def _final_item(self, error: BaseException | None) -> StreamItem:
        return StreamItem(done=True, error=error)

    def _is_final(self, item: StreamItem) -> bool:
        return item.done


_current_emitter: contextvars.ContextVar[ChannelEmitter | None] = contextvars.ContextVar(
    "cencli_stream_emitter",
    default=None,
)


@contextlib.contextmanager
def bind_emitter(emitter: ChannelEmitter | None) -> Iterator[None]:
    """Make ``emitter`` current for the duration of the block."""
    if emitter is None:
        yield
        return
    token = _current_emitter.set(emitter)
    try:
        yield
    finally:
        _current_emitter.reset(token)


def current_emitter() -> ChannelEmitter | None:
    """The emitter bound to the current context, if any."""
    return _current_emitter.get()


def is_streaming() -> bool:
    """Whether an emitter is bound to the current context."""
    return current_emitter() is not None


def emit(data: Any) -> None:
    """Emit through the bound emitter; no-op when none is bound."""
    emitter = current_emitter()
    if emitter is not None:
        emitter.emit(data)


def emit_or_collect(item: T, items: list[T]) -> list[T]:
    """Emit ``item`` when streaming, otherwise append it to ``items``."""
    if is_streaming():
        emit(item)
        return items
    items.append(item)
    return items


def _noop_stop(error: BaseException | None = None) -> None:
    return None


def start_streaming(
    enabled: bool,
    writer: Callable[[IO[str], Any, bool], None],
    logger: logging.Logger | logging.LoggerAdapter,
    colored: bool = False,
    stream: IO[str] | None = None,
) -> tuple[ChannelEmitter | None, StopFunc]:
    """Start the NDJSON writer thread when streaming is enabled.

    Parameters
    ----------
    enabled : bool
        Whether streaming is active for this invocation
    writer : Callable
        Writes one item as a single NDJSON line and flushes
    logger : logging.Logger | logging.LoggerAdapter
        Receives per-item errors at DEBUG
    colored : bool
        Colorize records
    stream : IO[str] | None
        Output sink; resolved to ``sys.stdout`` when the thread starts

    Returns
    -------
    tuple[ChannelEmitter | None, StopFunc]
        ``(None, no-op)`` when disabled, so no thread is started
    """
    if not enabled:
        return None, _noop_stop

    sink = stream if stream is not None else sys.stdout
    emitter = ChannelEmitter(STREAM_BUFFER_SIZE)

    def consume() -> None:
        for item in emitter:
            if item.error is not None:
                logger.debug(
                    "streaming item error",
                    extra={"fields": {"error": str(item.error)}},
                )
                continue
            try:
                writer(sink, item.data, colored)
            except Exception as e:
                logger.debug(
                    "failed to write streaming item",
                    extra={"fields": {"error": str(e)}},
                )
                continue

    thread = start_consumer("cencli-streaming", consume)

    @run_once
    def stop(error: BaseException | None = None) -> None:
        emitter.close(error)
        thread.join()

    return emitter, stop


@contextlib.contextmanager
def streaming_output(
    enabled: bool,
    writer: Callable[[IO[str], Any, bool], None],
    logger: logging.Logger | logging.LoggerAdapter,
    colored: bool = False,
    stream: IO[str] | None = None,
) -> Iterator[ChannelEmitter | None]:
    """Bind a streaming emitter for the block and drain it on exit."""
    emitter, stop = start_streaming(enabled, writer, logger, colored, stream)
    error: BaseException | None = None
    try:
        with bind_emitter(emitter):
            yield emitter
    except BaseException as e:
        error = e
        raise
    finally:
        stop(error)
