"""Metric data structures for collectors."""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from prometheus_client.core import GaugeMetricFamily
from prometheus_client.metrics_core import Metric

from .status import CollectionOutcome

NAMESPACE = "tsm"


def build_fqname(namespace: str, subsystem: str, name: str) -> str:
    """
    Join metric name parts with underscores, skipping empty parts.

    Args:
        namespace: Metric namespace (e.g., "tsm")
        subsystem: Metric subsystem (e.g., "db"), may be empty
        name: Metric name (e.g., "pages_total")

    Returns:
        str: Fully qualified metric name
    """
    return "_".join(part for part in (namespace, subsystem, name) if part)


@dataclass
class CollectorResult:
    """Standard result format from all collectors."""

    collector_name: str
    target_name: str
    outcome: CollectionOutcome
    metrics: List[Metric] = field(default_factory=list)
    duration: float = 0.0
    error: Optional[str] = None

    def to_metrics(self) -> List[Metric]:
        """Domain metrics followed by this result's outcome gauges."""
        return list(self.metrics) + outcome_metrics([self])


def outcome_metrics(results: Iterable[CollectorResult]) -> List[Metric]:
    """
    Build the error/timeout/duration gauges for a set of results.

    One family per gauge holds a sample per collector, so several
    collectors can share one exposition.

    Args:
        results: Collector results of one scrape

    Returns:
        List[Metric]: collect_error, collect_timeout and
        collect_duration_seconds families labelled by collector
    """
    labels = ["collector"]
    error = GaugeMetricFamily(
        build_fqname(NAMESPACE, "exporter", "collect_error"),
        "Indicates if error has occurred during collection",
        labels=labels,
    )
    timeout = GaugeMetricFamily(
        build_fqname(NAMESPACE, "exporter", "collect_timeout"),
        "Indicates the collector timed out",
        labels=labels,
    )
    duration = GaugeMetricFamily(
        build_fqname(NAMESPACE, "exporter", "collect_duration_seconds"),
        "Collector time duration.",
        labels=labels,
    )
    for result in results:
        error.add_metric([result.collector_name], result.outcome.error_value)
        timeout.add_metric([result.collector_name], result.outcome.timeout_value)
        duration.add_metric([result.collector_name], result.duration)
    return [error, timeout, duration]
