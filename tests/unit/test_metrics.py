"""Tests for Prometheus metrics."""

from __future__ import annotations

from prometheus_client import REGISTRY

from s3_secret_renderer.metrics import (
    render_duration_seconds,
    render_total,
    template_evaluations_total,
)
from s3_secret_renderer.services.template.engine import tpl


class TestMetricsExist:
    """Test that all expected metrics are defined."""

    def test_render_total_exists(self):
        """Test render_total counter exists."""
        # Prometheus counters don't include "_total" in their _name attribute
        assert render_total._name == "s3_secret_renderer_render"

    def test_render_duration_exists(self):
        """Test render_duration_seconds histogram exists."""
        assert render_duration_seconds._name == "s3_secret_renderer_render_duration_seconds"

    def test_template_evaluations_total_exists(self):
        """Test template_evaluations_total counter exists."""
        assert template_evaluations_total._name == "s3_secret_renderer_template_evaluations"


class TestMetricLabels:
    """Test that metrics have correct labels."""

    def test_render_total_labels(self):
        """Test render_total labels."""
        assert render_total._labelnames == ("template", "result")

    def test_render_duration_labels(self):
        """Test render_duration_seconds labels."""
        assert render_duration_seconds._labelnames == ("template",)


class TestTemplateEvaluationCounting:
    """Test that tpl evaluations are counted."""

    def _count(self, result):
        value = REGISTRY.get_sample_value(
            "s3_secret_renderer_template_evaluations_total", {"result": result}
        )
        return value or 0.0

    def test_success_counted(self):
        """Test successful evaluations increment the success counter."""
        before = self._count("success")

        tpl("plain", {})

        assert self._count("success") == before + 1

    def test_failure_counted(self):
        """Test failed evaluations increment the failure counter."""
        before = self._count("failure")

        try:
            tpl("{{ .Values.nope }}", {"Values": {}})
        except ValueError:
            pass

        assert self._count("failure") == before + 1
