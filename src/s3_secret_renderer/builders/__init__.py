"""Builders for rendered resources and their inputs."""

from .context import ChartInfo, ReleaseInfo, RenderContext
from .helpers import chart_label, chart_name, fullname, labels, selector_labels
from .secret import (
    build_object_store_secret,
    render_manifests,
    render_object_store_secret,
    secret_to_manifest,
)
from .values import build_values, get_value, load_chart, load_values_file, merge_values, parse_set_args

__all__ = [
    "ChartInfo",
    "ReleaseInfo",
    "RenderContext",
    "chart_label",
    "chart_name",
    "fullname",
    "labels",
    "selector_labels",
    "build_object_store_secret",
    "render_manifests",
    "render_object_store_secret",
    "secret_to_manifest",
    "build_values",
    "get_value",
    "load_chart",
    "load_values_file",
    "merge_values",
    "parse_set_args",
]
