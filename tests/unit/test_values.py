"""Tests for values loading and merging."""

from __future__ import annotations

import pytest

from s3_secret_renderer.builders.context import ChartInfo
from s3_secret_renderer.builders.values import (
    build_values,
    get_value,
    load_chart,
    load_values_file,
    merge_values,
    parse_set_args,
)
from s3_secret_renderer.utils.errors import ValuesError


class TestLoadValuesFile:
    """Test cases for load_values_file function."""

    def test_load_mapping(self, tmp_path):
        """Test loading a values mapping."""
        path = tmp_path / "values.yaml"
        path.write_text("storage:\n  objectStore:\n    type: s3\n")

        assert load_values_file(str(path)) == {"storage": {"objectStore": {"type": "s3"}}}

    def test_empty_file(self, tmp_path):
        """Test that an empty file yields no values."""
        path = tmp_path / "values.yaml"
        path.write_text("")

        assert load_values_file(str(path)) == {}

    def test_missing_file(self, tmp_path):
        """Test error when the file does not exist."""
        with pytest.raises(ValuesError, match="cannot read values file"):
            load_values_file(str(tmp_path / "absent.yaml"))

    def test_invalid_yaml(self, tmp_path):
        """Test error on malformed YAML."""
        path = tmp_path / "values.yaml"
        path.write_text("storage: [unclosed\n")

        with pytest.raises(ValuesError, match="invalid YAML"):
            load_values_file(str(path))

    def test_non_mapping(self, tmp_path):
        """Test error when the top level is not a mapping."""
        path = tmp_path / "values.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ValuesError, match="must contain a mapping, got list"):
            load_values_file(str(path))


class TestMergeValues:
    """Test cases for merge_values function."""

    def test_nested_merge(self):
        """Test that nested mappings merge key by key."""
        base = {"storage": {"objectStore": {"type": "local", "s3": {"accessKeyId": "a"}}}}
        override = {"storage": {"objectStore": {"type": "s3"}}}

        merged = merge_values(base, override)

        assert merged == {"storage": {"objectStore": {"type": "s3", "s3": {"accessKeyId": "a"}}}}

    def test_scalar_replaces_mapping(self):
        """Test that a scalar override replaces a mapping."""
        assert merge_values({"a": {"b": 1}}, {"a": "x"}) == {"a": "x"}

    def test_none_removes_key(self):
        """Test that null in the override deletes the key."""
        assert merge_values({"a": 1, "b": 2}, {"a": None}) == {"b": 2}

    def test_inputs_not_mutated(self):
        """Test that neither input is modified."""
        base = {"a": {"b": 1}}
        override = {"a": {"c": 2}}

        merge_values(base, override)

        assert base == {"a": {"b": 1}}
        assert override == {"a": {"c": 2}}


class TestParseSetArgs:
    """Test cases for parse_set_args function."""

    def test_nested_keys_and_multiple_assignments(self):
        """Test dotted keys and comma separated assignments."""
        result = parse_set_args(["storage.objectStore.type=s3,nameOverride=canary"])

        assert result == {"storage": {"objectStore": {"type": "s3"}}, "nameOverride": "canary"}

    def test_typed_values(self):
        """Test type inference for --set."""
        result = parse_set_args(["a=true", "b=false", "c=42", "d=null", "e=1.5"])

        assert result == {"a": True, "b": False, "c": 42, "d": None, "e": "1.5"}

    def test_typed_values_ignore_case(self):
        """Test that true, false and null match in any case."""
        result = parse_set_args(["a=True", "b=FALSE", "c=Null"])

        assert result == {"a": True, "b": False, "c": None}

    def test_leading_zero_stays_string(self):
        """Test that values with leading zeros are not parsed as integers."""
        result = parse_set_args(["a=0123", "b=007123", "c=0", "d=-5"])

        assert result == {"a": "0123", "b": "007123", "c": 0, "d": -5}

    def test_integer_outside_int64_stays_string(self):
        """Test that integers beyond int64 are kept as strings."""
        result = parse_set_args(["a=99999999999999999999", "b=9223372036854775807"])

        assert result == {"a": "99999999999999999999", "b": 9223372036854775807}

    def test_string_values(self):
        """Test that --set-string keeps everything a string."""
        assert parse_set_args(["a=true,b=42"], as_string=True) == {"a": "true", "b": "42"}

    def test_escaped_separators(self):
        """Test escaped commas and dots."""
        result = parse_set_args([r"podAnnotations.example\.com/key=a\,b"])

        assert result == {"podAnnotations": {"example.com/key": "a,b"}}

    def test_value_with_equals(self):
        """Test that only the first '=' separates key and value."""
        assert parse_set_args(["secret=abc=="]) == {"secret": "abc=="}

    def test_later_assignment_wins(self):
        """Test that later assignments override earlier ones."""
        assert parse_set_args(["a.b=1", "a=2"]) == {"a": 2}

    def test_missing_equals(self):
        """Test error when a segment has no value."""
        with pytest.raises(ValuesError, match="key 'storage' has no value"):
            parse_set_args(["storage"])

    def test_empty_key_segment(self):
        """Test error on an empty key segment."""
        with pytest.raises(ValuesError, match="invalid key"):
            parse_set_args(["a..b=1"])


class TestGetValue:
    """Test cases for get_value function."""

    def test_existing_path(self):
        """Test looking up an existing path."""
        values = {"storage": {"objectStore": {"type": "s3"}}}

        assert get_value(values, "storage.objectStore.type") == "s3"

    def test_missing_path_raises(self):
        """Test error for a missing path without default."""
        with pytest.raises(ValuesError, match="missing required value 'storage.objectStore.type'"):
            get_value({"storage": {}}, "storage.objectStore.type")

    def test_missing_path_default(self):
        """Test default for a missing path."""
        assert get_value({}, "a.b", default="x") == "x"

    def test_non_mapping_parent(self):
        """Test lookup through a scalar parent."""
        assert get_value({"storage": None}, "storage.objectStore", default=None) is None


class TestLoadChart:
    """Test cases for load_chart function."""

    def test_load_chart_with_values(self, tmp_path):
        """Test loading chart metadata and default values."""
        (tmp_path / "Chart.yaml").write_text(
            "apiVersion: v2\nname: canary\nversion: 1.2.3\nappVersion: v0.9.0\n"
        )
        (tmp_path / "values.yaml").write_text("storage:\n  objectStore:\n    type: local\n")

        chart, defaults = load_chart(str(tmp_path))

        assert chart == ChartInfo(name="canary", version="1.2.3", app_version="v0.9.0")
        assert defaults == {"storage": {"objectStore": {"type": "local"}}}

    def test_load_chart_without_values(self, tmp_path):
        """Test that values.yaml is optional."""
        (tmp_path / "Chart.yaml").write_text("name: canary\nversion: 0.1.0\n")

        chart, defaults = load_chart(str(tmp_path))

        assert chart.app_version is None
        assert defaults == {}

    def test_missing_chart_file(self, tmp_path):
        """Test error when Chart.yaml is absent."""
        with pytest.raises(ValuesError, match="no Chart.yaml found"):
            load_chart(str(tmp_path))

    def test_chart_without_version(self, tmp_path):
        """Test error when Chart.yaml lacks a version."""
        (tmp_path / "Chart.yaml").write_text("name: canary\n")

        with pytest.raises(ValuesError, match="must set name and version"):
            load_chart(str(tmp_path))


class TestBuildValues:
    """Test cases for build_values function."""

    def test_precedence(self, tmp_path):
        """Test defaults < files < --set < --set-string."""
        first = tmp_path / "first.yaml"
        first.write_text("a: file1\nb: file1\nc: file1\nd: file1\n")
        second = tmp_path / "second.yaml"
        second.write_text("b: file2\nc: file2\nd: file2\n")

        values = build_values(
            {"a": "default", "e": "default"},
            [str(first), str(second)],
            ["c=set,d=set"],
            ["d=string"],
        )

        assert values == {"a": "file1", "b": "file2", "c": "set", "d": "string", "e": "default"}

    def test_defaults_not_mutated(self):
        """Test that chart defaults are left untouched."""
        defaults = {"a": {"b": 1}}

        build_values(defaults, [], ["a.b=2"])

        assert defaults == {"a": {"b": 1}}
