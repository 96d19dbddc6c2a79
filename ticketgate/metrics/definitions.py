"""Metric definitions used across the gate service."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class MetricDefinition:
    """Describe a metric that should exist in the registry."""

    name: str
    metric_type: str
    description: str
    label_names: Tuple[str, ...] = ()


VERIFICATIONS_TOTAL = "ticket_verifications_total"
CHECKINS_TOTAL = "ticket_checkins_total"
REGISTRY_CALL_DURATION = "registry_call_duration_seconds"
SCAN_SESSIONS_STARTED = "scan_sessions_started_total"
SCAN_RESOURCE_FAILURES = "scan_resource_failures_total"

DEFAULT_METRIC_DEFINITIONS: Tuple[MetricDefinition, ...] = (
    MetricDefinition(
        name=VERIFICATIONS_TOTAL,
        metric_type="counter",
        description="Verdicts produced for scanned or typed codes.",
        label_names=("verdict",),
    ),
    MetricDefinition(
        name=CHECKINS_TOTAL,
        metric_type="counter",
        description="Check-in attempts by outcome.",
        label_names=("outcome",),
    ),
    MetricDefinition(
        name=REGISTRY_CALL_DURATION,
        metric_type="distribution",
        description="Latency of ticket registry calls in seconds.",
        label_names=("operation",),
    ),
    MetricDefinition(
        name=SCAN_SESSIONS_STARTED,
        metric_type="counter",
        description="Scan sessions that acquired a camera.",
    ),
    MetricDefinition(
        name=SCAN_RESOURCE_FAILURES,
        metric_type="counter",
        description="Scan sessions that could not acquire a camera.",
    ),
)
