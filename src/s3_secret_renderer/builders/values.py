"""Loading and merging of chart values."""

from __future__ import annotations

import copy
import logging
import os
import re
from typing import Any, Iterable

import yaml

from ..constants import CHART_FILE, VALUES_FILE
from ..utils.errors import ValuesError
from .context import ChartInfo

logger = logging.getLogger(__name__)

MISSING = object()

_INT_RE = re.compile(r"[-+]?[0-9]+")

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

# Splits on separators not preceded by a backslash
_UNESCAPED_COMMA_RE = re.compile(r"(?<!\\),")
_UNESCAPED_DOT_RE = re.compile(r"(?<!\\)\.")


def load_values_file(path: str) -> dict[str, Any]:
    """Load a single values file.

    Args:
        path: Path to a YAML values file

    Returns:
        Parsed values, ``{}`` for an empty file

    Raises:
        ValuesError: If the file cannot be read, is not valid YAML, or is not a mapping
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ValuesError(f"cannot read values file '{path}': {e.strerror}") from e
    except yaml.YAMLError as e:
        raise ValuesError(f"invalid YAML in values file '{path}': {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValuesError(
            f"values file '{path}' must contain a mapping, got {type(data).__name__}"
        )
    return data


def merge_values(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge ``override`` into a copy of ``base``.

    Mappings merge recursively, other values replace. A ``None`` override
    removes the key.
    """
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if value is None:
            merged.pop(key, None)
        elif isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_values(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _typed_value(raw: str) -> Any:
    lowered = raw.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    if lowered == "null":
        return None
    if raw == "0":
        return 0
    # Leading zeros keep the value a string, e.g. "0123"
    if raw and raw[0] != "0" and _INT_RE.fullmatch(raw):
        number = int(raw)
        if _INT64_MIN <= number <= _INT64_MAX:
            return number
    return raw


def _unescape(text: str) -> str:
    return text.replace("\\,", ",").replace("\\.", ".")


def parse_set_args(items: Iterable[str], *, as_string: bool = False) -> dict[str, Any]:
    """Parse ``--set`` style expressions into a values tree.

    Args:
        items: Expressions such as ``a.b=c,d=e``
        as_string: Keep every value as a string (``--set-string``)

    Returns:
        Nested values, later assignments winning

    Raises:
        ValuesError: If a segment has no ``=`` or an empty key
    """
    result: dict[str, Any] = {}
    for item in items:
        for assignment in _UNESCAPED_COMMA_RE.split(item):
            if not assignment:
                continue
            key, sep, raw = assignment.partition("=")
            if not sep:
                raise ValuesError(f"key '{_unescape(assignment)}' has no value")
            path = [_unescape(part) for part in _UNESCAPED_DOT_RE.split(key)]
            if any(not part for part in path):
                raise ValuesError(f"invalid key '{_unescape(key)}'")

            value = _unescape(raw) if as_string else _typed_value(_unescape(raw))
            node = result
            for part in path[:-1]:
                child = node.get(part)
                if not isinstance(child, dict):
                    child = {}
                    node[part] = child
                node = child
            node[path[-1]] = value
    return result


def get_value(values: dict[str, Any], path: str, default: Any = MISSING) -> Any:
    """Look up a dotted path in a values tree.

    Args:
        values: Values tree
        path: Dotted path, e.g. ``storage.objectStore.type``
        default: Returned when the path does not exist

    Raises:
        ValuesError: If the path does not exist and no default is given
    """
    current: Any = values
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            if default is MISSING:
                raise ValuesError(f"missing required value '{path}'")
            return default
        current = current[part]
    return current


def load_chart(chart_dir: str) -> tuple[ChartInfo, dict[str, Any]]:
    """Load chart metadata and default values from a chart directory.

    Args:
        chart_dir: Directory holding ``Chart.yaml`` and optionally ``values.yaml``

    Returns:
        Tuple of chart metadata and default values

    Raises:
        ValuesError: If ``Chart.yaml`` is missing or lacks name/version
    """
    chart_path = os.path.join(chart_dir, CHART_FILE)
    if not os.path.exists(chart_path):
        raise ValuesError(f"no {CHART_FILE} found in '{chart_dir}'")

    metadata = load_values_file(chart_path)
    name = metadata.get("name")
    version = metadata.get("version")
    if not name or not version:
        raise ValuesError(f"{CHART_FILE} in '{chart_dir}' must set name and version")

    app_version = metadata.get("appVersion")
    chart = ChartInfo(
        name=str(name),
        version=str(version),
        app_version=str(app_version) if app_version is not None else None,
    )

    values_path = os.path.join(chart_dir, VALUES_FILE)
    defaults = load_values_file(values_path) if os.path.exists(values_path) else {}
    logger.debug(f"Loaded chart {chart.name}-{chart.version} from {chart_dir}")
    return chart, defaults


def build_values(
    chart_defaults: dict[str, Any] | None = None,
    value_files: Iterable[str] = (),
    set_args: Iterable[str] = (),
    set_string_args: Iterable[str] = (),
) -> dict[str, Any]:
    """Build the effective values tree.

    Precedence, lowest first: chart defaults, values files in order,
    ``--set``, ``--set-string``.
    """
    values = copy.deepcopy(chart_defaults or {})
    for path in value_files:
        values = merge_values(values, load_values_file(path))
    values = merge_values(values, parse_set_args(set_args))
    values = merge_values(values, parse_set_args(set_string_args, as_string=True))
    return values
