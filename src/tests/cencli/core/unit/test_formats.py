"""Tests for output formats."""

import pytest

from cencli.core.errors import InvalidFormatError
from cencli.core.output.formats import (
    OutputFormat,
    OutputType,
    available_output_formats,
    formats_for_types,
)


@pytest.mark.unit
class TestOutputFormat:
    """Tests for OutputFormat."""

    @pytest.mark.parametrize(
        ("output_format", "output_type"),
        [
            (OutputFormat.JSON, OutputType.DATA),
            (OutputFormat.TREE, OutputType.DATA),
            (OutputFormat.SHORT, OutputType.SHORT),
            (OutputFormat.TEMPLATE, OutputType.TEMPLATE),
        ],
    )
    def test_output_type(self, output_format, output_type):
        assert output_format.output_type is output_type

    def test_parse_rejects_unknown(self):
        with pytest.raises(InvalidFormatError):
            OutputFormat.parse("csv")

    def test_str_is_value(self):
        assert str(OutputFormat.NDJSON) == "ndjson"


@pytest.mark.unit
def test_available_output_formats_in_declaration_order():
    assert available_output_formats() == ["json", "yaml", "ndjson", "tree", "short", "template"]


@pytest.mark.unit
def test_formats_for_types_keeps_type_order_without_duplicates():
    result = formats_for_types([OutputType.SHORT, OutputType.DATA, OutputType.SHORT])

    assert result == ["short", "json", "yaml", "ndjson", "tree"]
