"""Collector registry and per-request dispatch."""

from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional
import asyncio
import logging

from prometheus_client.metrics_core import Metric

from ..config.models import CollectorOptions, Target
from ..utils.metrics import CollectorResult, outcome_metrics
from ..utils.status import CollectionOutcome
from .base import BaseCollector, QueryExecutor

CollectorFactory = Callable[..., BaseCollector]


@dataclass(frozen=True)
class CollectorEntry:
    name: str
    default_enabled: bool
    factory: CollectorFactory


class CollectorRegistry:
    """
    Named collector factories with their default enablement.

    Built once at startup and handed to the HTTP app.
    """

    def __init__(self):
        self._entries: Dict[str, CollectorEntry] = {}

    def register(self, name: str, default_enabled: bool, factory: CollectorFactory) -> None:
        """
        Register a collector factory.

        Raises:
            ValueError: If the name is already registered
        """
        if name in self._entries:
            raise ValueError(f"Collector {name} already registered")
        self._entries[name] = CollectorEntry(name, default_enabled, factory)

    @property
    def names(self) -> List[str]:
        return list(self._entries)

    def enabled_names(self, target: Target) -> List[str]:
        """
        Collectors to run for a target.

        A target without a collectors list runs every default-enabled
        collector; otherwise the listed, registered collectors run once each,
        in list order.
        """
        if target.collectors is None:
            return [name for name, entry in self._entries.items() if entry.default_enabled]
        return list(dict.fromkeys(name for name in target.collectors if name in self._entries))

    def build(
        self,
        target: Target,
        executor: QueryExecutor,
        options: Optional[CollectorOptions] = None,
        logger: Optional[logging.Logger] = None
    ) -> List[BaseCollector]:
        """Instantiate the enabled collectors for one request."""
        return [
            self._entries[name].factory(target, executor, options, logger)
            for name in self.enabled_names(target)
        ]


def default_registry() -> CollectorRegistry:
    """Registry holding every built-in collector, all enabled by default."""
    from .db_collector import DBCollector
    from .drives_collector import DrivesCollector
    from .events_collector import EventsCollector
    from .libvolumes_collector import LibVolumesCollector
    from .log_collector import LogCollector
    from .occupancy_collector import OccupancyCollector
    from .replicationview_collector import ReplicationViewCollector
    from .status_collector import StatusCollector
    from .stgpools_collector import StoragePoolsCollector
    from .summary_collector import SummaryCollector
    from .volumes_collector import VolumesCollector
    from .volumeusage_collector import VolumeUsageCollector

    registry = CollectorRegistry()
    for collector_class in (
        DBCollector,
        DrivesCollector,
        EventsCollector,
        LibVolumesCollector,
        LogCollector,
        OccupancyCollector,
        ReplicationViewCollector,
        StatusCollector,
        StoragePoolsCollector,
        SummaryCollector,
        VolumesCollector,
        VolumeUsageCollector,
    ):
        registry.register(collector_class.name, True, collector_class)
    return registry


class TSMCollector:
    """
    Runs one target's collectors concurrently for a scrape.

    Exposes the gathered families through collect() so it can be
    registered with a prometheus_client registry.
    """

    def __init__(self, collectors: List[BaseCollector], logger: Optional[logging.Logger] = None):
        self.collectors = collectors
        self.logger = logger or logging.getLogger("tsm_exporter")
        self.results: List[CollectorResult] = []

    async def gather(self) -> List[CollectorResult]:
        """
        Run every collector in parallel.

        A collector that raises instead of returning a result is reported
        as an error outcome; the others are unaffected.
        """
        self.logger.debug(f"Starting parallel collection from {len(self.collectors)} collector(s)")
        results = await asyncio.gather(
            *[collector.collect() for collector in self.collectors],
            return_exceptions=True
        )

        self.results = []
        for collector, result in zip(self.collectors, results):
            if isinstance(result, BaseException):
                self.logger.error(
                    f"Collector '{collector.name}' failed: {result}",
                    extra={"target": collector.target.name}
                )
                result = CollectorResult(
                    collector_name=collector.name,
                    target_name=collector.target.name,
                    outcome=CollectionOutcome.ERROR,
                    error=str(result)
                )
            self.results.append(result)
        return self.results

    def collect(self) -> Iterator[Metric]:
        """Domain families of every collector, then the shared outcome gauges."""
        for result in self.results:
            yield from result.metrics
        yield from outcome_metrics(self.results)
