"""Tests for progress reporting."""

import logging
import threading

import pytest

from cencli.core.progress_display import progress_reporting, start_progress
from cencli.services.progress import (
    ProgressEvent,
    Stage,
    bind_publisher,
    current_publisher,
    report_error,
    report_message,
    report_stage,
)


class RecordingIndicator:
    def __init__(self, enabled: bool, message: str) -> None:
        self.enabled = enabled
        self.messages = [message]
        self.stops = 0

    def start(self) -> None:
        pass

    def stop(self) -> None:
        self.stops += 1

    def set_message(self, message: str) -> None:
        self.messages.append(message)


class FailingIndicator(RecordingIndicator):
    def set_message(self, message: str) -> None:
        raise RuntimeError("indicator failed")


@pytest.fixture
def indicators():
    return []


@pytest.fixture
def factory(indicators):
    def make(enabled: bool, message: str) -> RecordingIndicator:
        indicator = RecordingIndicator(enabled, message)
        indicators.append(indicator)
        return indicator

    return make


@pytest.fixture
def logger(caplog):
    caplog.set_level(logging.DEBUG, logger="test.progress")
    return logging.getLogger("test.progress")


def _progress_records(caplog):
    return [r for r in caplog.records if r.name == "test.progress" and r.getMessage() == "progress"]


@pytest.mark.unit
class TestStartProgress:
    """Tests for start_progress."""

    def test_every_event_is_logged_and_shown(self, logger, caplog, factory, indicators):
        publisher, stop = start_progress(logger, "Starting...", True, factory)

        with bind_publisher(publisher):
            report_stage(Stage.PREPARE)
            report_message(Stage.FETCH, "Fetching page 2...")
            report_error(Stage.FETCH, RuntimeError("page 3 failed"))
        stop(None)

        records = _progress_records(caplog)
        assert [r.fields for r in records] == [
            {"stage": "prepare", "message": "prepare"},
            {"stage": "fetch", "message": "Fetching page 2..."},
            {"stage": "fetch", "message": "page 3 failed"},
        ]
        assert indicators[0].messages == [
            "Starting...",
            "prepare",
            "Fetching page 2...",
            "page 3 failed",
        ]

    def test_disabled_indicator_still_logs(self, logger, caplog, factory, indicators):
        publisher, stop = start_progress(logger, "Starting...", False, factory)

        publisher.publish(ProgressEvent(Stage.FETCH, "quiet"))
        stop(None)

        assert len(_progress_records(caplog)) == 1
        assert indicators[0].messages == ["Starting..."]

    def test_stop_is_idempotent(self, logger, factory, indicators):
        _, stop = start_progress(logger, "", True, factory)

        stop(None)
        stop(RuntimeError("again"))

        assert indicators[0].stops == 1

    def test_reports_after_stop_are_ignored(self, logger, caplog, factory):
        publisher, stop = start_progress(logger, "", False, factory)
        stop(None)

        with bind_publisher(publisher):
            report_message(Stage.FETCH, "too late")

        assert _progress_records(caplog) == []

    def test_failing_indicator_does_not_block_publishers(self, logger, caplog):
        publisher, stop = start_progress(logger, "", True, FailingIndicator)
        done = threading.Event()

        def run() -> None:
            publisher.publish(ProgressEvent(Stage.FETCH, "page 1"))
            publisher.publish(ProgressEvent(Stage.FETCH, "page 2"))
            stop(None)
            done.set()

        threading.Thread(target=run, daemon=True).start()

        assert done.wait(3)
        failures = [
            r for r in caplog.records if r.getMessage() == "failed to render progress event"
        ]
        assert [r.fields for r in failures] == [{"error": "indicator failed"}] * 2


@pytest.mark.unit
class TestProgressReporting:
    """Tests for the progress_reporting context manager."""

    def test_publisher_is_bound_only_inside(self, logger, factory):
        with progress_reporting(logger, "", False, factory) as publisher:
            assert current_publisher() is publisher
        assert current_publisher() is None

    def test_stops_on_error(self, logger, factory, indicators):
        with pytest.raises(RuntimeError):
            with progress_reporting(logger, "", True, factory) as publisher:
                raise RuntimeError("boom")

        assert indicators[0].stops == 1
        assert isinstance(publisher.final_error, RuntimeError)


@pytest.mark.unit
def test_report_without_publisher_is_noop():
    report_message(Stage.FETCH, "nobody listens")
