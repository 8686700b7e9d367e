"""Progress reporting lifecycle for long-running commands.

``start_progress`` wires a :class:`ChannelPublisher` to a consumer thread
that logs every event at DEBUG and mirrors it on the indicator. The returned
``stop`` closes the publisher, waits for the consumer to drain and stops the
indicator; it is safe to call any number of times.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Callable, Iterator

from cencli.core.constants import PROGRESS_BUFFER_SIZE
from cencli.services.channel import run_once, start_consumer
from cencli.services.progress import ChannelPublisher, ProgressEvent, bind_publisher
from cencli.services.spinner import Indicator, start_indicator

StopFunc = Callable[[BaseException | None], None]
IndicatorFactory = Callable[[bool, str], Indicator]


class ProgressDisplay:
    """Renders progress events to the log and the indicator.

    Parameters
    ----------
    logger : logging.Logger | logging.LoggerAdapter
        Receives one DEBUG record per event
    indicator : Indicator
        Spinner or no-op handle
    indicator_enabled : bool
        Whether messages are forwarded to the indicator
    """

    def __init__(
        self,
        logger: logging.Logger | logging.LoggerAdapter,
        indicator: Indicator,
        indicator_enabled: bool,
    ) -> None:
        self.logger = logger
        self.indicator = indicator
        self.indicator_enabled = indicator_enabled

    def render(self, event: ProgressEvent) -> None:
        message = event.display_message
        stage = event.stage.value if event.stage is not None else ""
        self.logger.debug(
            "progress",
            extra={"fields": {"stage": stage, "message": message}},
        )
        if self.indicator_enabled and message:
            self.indicator.set_message(message)

    def stop(self) -> None:
        self.indicator.stop()


def start_progress(
    logger: logging.Logger | logging.LoggerAdapter,
    initial_message: str = "",
    indicator_enabled: bool = False,
    indicator_factory: IndicatorFactory = start_indicator,
) -> tuple[ChannelPublisher, StopFunc]:
    """Start progress reporting for one operation.

    Returns
    -------
    tuple[ChannelPublisher, StopFunc]
        The publisher to bind, and the idempotent stop function
    """
    publisher = ChannelPublisher(PROGRESS_BUFFER_SIZE)
    indicator = indicator_factory(indicator_enabled, initial_message)
    display = ProgressDisplay(logger, indicator, indicator_enabled)

    def consume() -> None:
        for event in publisher:
            try:
                display.render(event)
            except Exception as e:
                # The channel must keep draining or publishers block
                logger.debug(
                    "failed to render progress event",
                    extra={"fields": {"error": str(e)}},
                )
                continue

    thread = start_consumer("cencli-progress", consume)

    @run_once
    def stop(final_error: BaseException | None = None) -> None:
        publisher.close(final_error)
        thread.join()
        display.stop()

    return publisher, stop


@contextlib.contextmanager
def progress_reporting(
    logger: logging.Logger | logging.LoggerAdapter,
    initial_message: str = "",
    indicator_enabled: bool = False,
    indicator_factory: IndicatorFactory = start_indicator,
) -> Iterator[ChannelPublisher]:
    """Bind a progress publisher for the block; stop runs on every exit path."""
    publisher, stop = start_progress(
        logger,
        initial_message,
        indicator_enabled,
        indicator_factory,
    )
    error: BaseException | None = None
    try:
        with bind_publisher(publisher):
            yield publisher
    except BaseException as e:
        error = e
        raise
    finally:
        stop(error)
