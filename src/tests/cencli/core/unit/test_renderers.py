"""Tests for data-format rendering."""

import datetime
import io
import json
from dataclasses import dataclass

import pytest
import yaml

from cencli.core.errors import CencliError
from cencli.core.output.formats import OutputFormat
from cencli.core.output.renderers import print_by_format, to_serializable, write_ndjson_item

HITS = [{"host": {"ip": "1.1.1.1", "ports": [53, 443]}}, {"host": {"ip": "8.8.8.8"}}]


@dataclass
class _Record:
    name: str
    seen: datetime.date


@pytest.mark.unit
class TestPrintByFormat:
    """Tests for print_by_format."""

    def test_json(self):
        stream = io.StringIO()

        print_by_format(HITS, OutputFormat.JSON, stream=stream)

        assert json.loads(stream.getvalue()) == HITS

    def test_yaml(self):
        stream = io.StringIO()

        print_by_format(HITS, "yaml", stream=stream)

        assert yaml.safe_load(stream.getvalue()) == HITS

    def test_ndjson_writes_one_line_per_item(self):
        stream = io.StringIO()

        print_by_format(HITS, OutputFormat.NDJSON, stream=stream)

        lines = stream.getvalue().splitlines()
        assert [json.loads(line) for line in lines] == HITS

    def test_ndjson_single_value_is_one_line(self):
        stream = io.StringIO()

        print_by_format({"balance": 10}, OutputFormat.NDJSON, stream=stream)

        assert stream.getvalue() == '{"balance":10}\n'

    def test_tree(self):
        stream = io.StringIO()

        print_by_format({"host": {"ip": "1.1.1.1", "tags": []}}, OutputFormat.TREE, stream=stream)

        text = stream.getvalue()
        assert "result" in text
        assert "ip: 1.1.1.1" in text
        assert "tags: []" in text

    @pytest.mark.parametrize("output_format", ["short", "template"])
    def test_non_data_formats_are_rejected(self, output_format):
        with pytest.raises(CencliError):
            print_by_format(HITS, output_format, stream=io.StringIO())


@pytest.mark.unit
def test_write_ndjson_item_is_compact_and_flushed():
    stream = io.StringIO()

    write_ndjson_item(stream, {"ip": "1.1.1.1", "ports": [80]})

    assert stream.getvalue() == '{"ip":"1.1.1.1","ports":[80]}\n'


@pytest.mark.unit
def test_to_serializable_handles_dataclasses_and_dates():
    record = _Record("example", datetime.date(2025, 1, 2))

    assert to_serializable([record, OutputFormat.JSON]) == [
        {"name": "example", "seen": "2025-01-02"},
        "json",
    ]
