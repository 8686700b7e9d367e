"""Tests for streaming output."""

import io
import json
import logging
import threading

import pytest

from cencli.core.output.renderers import write_ndjson_item
from cencli.services.streaming import (
    current_emitter,
    emit_or_collect,
    is_streaming,
    start_streaming,
    streaming_output,
)


@pytest.fixture
def logger():
    return logging.getLogger("test.streaming")


@pytest.mark.unit
class TestStreamingOutput:
    """Tests for streaming_output."""

    def test_items_are_written_as_ndjson(self, logger):
        stream = io.StringIO()
        collected = []

        with streaming_output(True, write_ndjson_item, logger, stream=stream) as emitter:
            assert is_streaming()
            emit_or_collect({"ip": "1.1.1.1"}, collected)
            emitter.emit_error(RuntimeError("bad record"))
            emit_or_collect({"ip": "8.8.8.8"}, collected)

        assert collected == []
        lines = stream.getvalue().splitlines()
        assert [json.loads(line) for line in lines] == [{"ip": "1.1.1.1"}, {"ip": "8.8.8.8"}]
        assert current_emitter() is None

    def test_error_item_is_skipped_in_order(self, logger):
        stream = io.StringIO()

        with streaming_output(True, write_ndjson_item, logger, stream=stream) as emitter:
            for n in (1, 2):
                emitter.emit(n)
            emitter.emit_error(RuntimeError("record 3 failed"))
            for n in (4, 5):
                emitter.emit(n)

        assert [json.loads(line) for line in stream.getvalue().splitlines()] == [1, 2, 4, 5]

    def test_failing_writer_keeps_draining(self, logger, caplog):
        caplog.set_level(logging.DEBUG, logger="test.streaming")
        written = []

        def writer(stream, item, colored):
            if item == 2:
                raise RuntimeError("writer failed")
            written.append(item)

        emitter, stop = start_streaming(True, writer, logger, stream=io.StringIO())
        done = threading.Event()

        def run() -> None:
            for n in (1, 2, 3):
                emitter.emit(n)
            stop(None)
            done.set()

        threading.Thread(target=run, daemon=True).start()

        assert done.wait(3)
        assert written == [1, 3]
        assert any(
            r.getMessage() == "failed to write streaming item" and r.fields == {"error": "writer failed"}
            for r in caplog.records
        )

    def test_item_errors_are_logged(self, logger, caplog):
        caplog.set_level(logging.DEBUG, logger="test.streaming")

        with streaming_output(True, write_ndjson_item, logger, stream=io.StringIO()) as emitter:
            emitter.emit_error(RuntimeError("bad record"))

        assert any(
            r.getMessage() == "streaming item error" and r.fields == {"error": "bad record"}
            for r in caplog.records
        )

    def test_disabled_collects(self, logger):
        collected = []

        with streaming_output(False, write_ndjson_item, logger) as emitter:
            assert emitter is None
            assert not is_streaming()
            emit_or_collect({"ip": "1.1.1.1"}, collected)

        assert collected == [{"ip": "1.1.1.1"}]

    def test_emitter_is_closed_after_error(self, logger):
        with pytest.raises(RuntimeError):
            with streaming_output(True, write_ndjson_item, logger, stream=io.StringIO()) as emitter:
                raise RuntimeError("boom")

        assert emitter.closed
        assert isinstance(emitter.final_error, RuntimeError)


@pytest.mark.unit
def test_start_streaming_disabled_starts_no_thread(logger):
    before = threading.active_count()

    emitter, stop = start_streaming(False, write_ndjson_item, logger)

    assert emitter is None
    assert threading.active_count() == before
    assert all(t.name != "cencli-streaming" for t in threading.enumerate())
    stop(None)
