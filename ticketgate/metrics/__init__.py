"""Metrics utilities for the gate service."""
from .base import CounterMetric, DistributionMetric, track_duration
from .definitions import DEFAULT_METRIC_DEFINITIONS, MetricDefinition
from .registry import MetricsRegistry


def register_default_metrics(registry: MetricsRegistry) -> MetricsRegistry:
    """Ensure all default metric definitions exist in ``registry``."""

    for definition in DEFAULT_METRIC_DEFINITIONS:
        if definition.metric_type == "counter":
            registry.counter(
                definition.name,
                description=definition.description,
                label_names=definition.label_names,
            )
        elif definition.metric_type == "distribution":
            registry.distribution(
                definition.name,
                description=definition.description,
                label_names=definition.label_names,
            )
        else:
            raise ValueError(f"Unsupported metric type: {definition.metric_type}")
    return registry


def create_metrics_registry() -> MetricsRegistry:
    return register_default_metrics(MetricsRegistry())


__all__ = [
    "CounterMetric",
    "DistributionMetric",
    "MetricDefinition",
    "MetricsRegistry",
    "create_metrics_registry",
    "register_default_metrics",
    "track_duration",
]
