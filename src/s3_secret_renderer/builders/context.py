"""Render context passed to templates and helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..constants import (
    DEFAULT_CHART_NAME,
    DEFAULT_CHART_VERSION,
    DEFAULT_NAMESPACE,
    DEFAULT_RELEASE_NAME,
    DEFAULT_RELEASE_SERVICE,
)


@dataclass(frozen=True)
class ReleaseInfo:
    """Release metadata, exposed to templates as ``.Release``."""

    name: str = DEFAULT_RELEASE_NAME
    namespace: str = DEFAULT_NAMESPACE
    service: str = DEFAULT_RELEASE_SERVICE
    revision: int = 1
    is_install: bool = True

    def as_template_dict(self) -> dict[str, Any]:
        return {
            "Name": self.name,
            "Namespace": self.namespace,
            "Service": self.service,
            "Revision": self.revision,
            "IsInstall": self.is_install,
            "IsUpgrade": not self.is_install,
        }


@dataclass(frozen=True)
class ChartInfo:
    """Chart metadata, exposed to templates as ``.Chart``."""

    name: str = DEFAULT_CHART_NAME
    version: str = DEFAULT_CHART_VERSION
    app_version: str | None = None

    def as_template_dict(self) -> dict[str, Any]:
        return {
            "Name": self.name,
            "Version": self.version,
            "AppVersion": self.app_version or "",
        }


@dataclass(frozen=True)
class RenderContext:
    """Everything a render reads: values, release and chart metadata."""

    values: dict[str, Any] = field(default_factory=dict)
    release: ReleaseInfo = field(default_factory=ReleaseInfo)
    chart: ChartInfo = field(default_factory=ChartInfo)

    def as_template_root(self) -> dict[str, Any]:
        """Return the mapping templates evaluate ``.`` against."""
        return {
            "Values": self.values,
            "Release": self.release.as_template_dict(),
            "Chart": self.chart.as_template_dict(),
        }
