"""Prometheus metrics for the S3 Secret Renderer."""

from prometheus_client import Counter, Histogram

from .constants import METRICS_PREFIX

# Render metrics
render_total = Counter(
    f"{METRICS_PREFIX}_render_total",
    "Total number of template renders",
    ["template", "result"],
)

render_duration_seconds = Histogram(
    f"{METRICS_PREFIX}_render_duration_seconds",
    "Duration of template renders in seconds",
    ["template"],
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0],
)

# Template expression metrics
template_evaluations_total = Counter(
    f"{METRICS_PREFIX}_template_evaluations_total",
    "Total number of tpl evaluations",
    ["result"],
)
