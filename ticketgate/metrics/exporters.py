"""Text exposition of the metrics registry."""
from __future__ import annotations

import logging
from typing import Mapping

from .base import Metric
from .registry import MetricsRegistry

logger = logging.getLogger(__name__)

PROMETHEUS_CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace("\n", "\\n").replace('"', '\\"')


def _label_text(labels: Mapping[str, str]) -> str:
    if not labels:
        return ""
    return "{" + ",".join(f'{name}="{_escape(value)}"' for name, value in labels.items()) + "}"


class PrometheusExporter:
    """Render a registry in the Prometheus text format."""

    def __init__(self, registry: MetricsRegistry) -> None:
        self.registry = registry

    def _series(self, metric: Metric) -> list[str]:
        lines: list[str] = []
        for key, values in sorted(metric.snapshot().items()):
            label_text = _label_text(metric.labelled(key))
            if metric.kind == "counter":
                lines.append(f"{metric.name}{label_text} {values['value']}")
                continue
            for suffix in ("count", "sum", "max"):
                lines.append(f"{metric.name}_{suffix}{label_text} {values[suffix]}")
        return lines

    def build_payload(self) -> str:
        lines: list[str] = []
        for metric in self.registry.metrics():
            lines.append(f"# HELP {metric.name} {metric.description}")
            lines.append(f"# TYPE {metric.name} {metric.kind}")
            lines.extend(self._series(metric))
        logger.debug("Rendered %d metric lines", len(lines))
        return "\n".join(lines) + "\n"
