"""Naming and labelling helpers shared by the chart's templates."""

from __future__ import annotations

from ..constants import (
    LABEL_CHART,
    LABEL_INSTANCE,
    LABEL_MANAGED_BY,
    LABEL_NAME,
    LABEL_VERSION,
    MAX_NAME_LENGTH,
)
from .context import RenderContext


def _truncate_name(name: str) -> str:
    return name[:MAX_NAME_LENGTH].removesuffix("-")


def chart_name(ctx: RenderContext) -> str:
    """Name of the chart, honouring ``nameOverride``."""
    return _truncate_name(str(ctx.values.get("nameOverride") or ctx.chart.name))


def fullname(ctx: RenderContext) -> str:
    """Fully qualified app name used for resource names.

    ``fullnameOverride`` wins. Otherwise the release name is used as-is when
    it already contains the chart name, and ``<release>-<name>`` when not.
    """
    override = ctx.values.get("fullnameOverride")
    if override:
        return _truncate_name(str(override))

    name = str(ctx.values.get("nameOverride") or ctx.chart.name)
    if name in ctx.release.name:
        return _truncate_name(ctx.release.name)
    return _truncate_name(f"{ctx.release.name}-{name}")


def chart_label(ctx: RenderContext) -> str:
    """Value of the ``helm.sh/chart`` label."""
    return _truncate_name(f"{ctx.chart.name}-{ctx.chart.version}".replace("+", "_"))


def selector_labels(ctx: RenderContext) -> dict[str, str]:
    return {
        LABEL_NAME: chart_name(ctx),
        LABEL_INSTANCE: ctx.release.name,
    }


def labels(ctx: RenderContext) -> dict[str, str]:
    """Common labels attached to every rendered resource."""
    result = {LABEL_CHART: chart_label(ctx)}
    result.update(selector_labels(ctx))
    if ctx.chart.app_version:
        result[LABEL_VERSION] = ctx.chart.app_version
    result[LABEL_MANAGED_BY] = ctx.release.service
    return result
