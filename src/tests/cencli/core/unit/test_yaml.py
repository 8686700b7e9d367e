"""Tests for YAML file helpers."""

import pytest

from cencli.core.yaml import YamlOperationError, dump_yaml, safe_read_yaml, safe_write_yaml


@pytest.mark.unit
class TestSafeYaml:
    """Tests for safe_read_yaml and safe_write_yaml."""

    def test_write_creates_parent_and_applies_mode(self, tmp_path):
        path = tmp_path / "nested" / "file.yaml"

        safe_write_yaml(path, {"b": 1, "a": 2}, mode=0o600)

        assert path.read_text().splitlines() == ["b: 1", "a: 2"]
        assert path.stat().st_mode & 0o777 == 0o600
        assert list(tmp_path.joinpath("nested").iterdir()) == [path]

    def test_read_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert safe_read_yaml(path) == {}

    def test_read_missing_file(self, tmp_path):
        with pytest.raises(YamlOperationError, match="does not exist"):
            safe_read_yaml(tmp_path / "missing.yaml")

    def test_read_non_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(YamlOperationError, match="Expected a mapping"):
            safe_read_yaml(path)


@pytest.mark.unit
def test_dump_yaml_keeps_order_and_unicode():
    assert dump_yaml({"z": "é", "a": [1]}) == "z: é\na:\n- 1\n"
