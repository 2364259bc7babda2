"""Volume usage by node collector."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional
import re

from prometheus_client.core import GaugeMetricFamily
from prometheus_client.metrics_core import Metric

from ..utils.metrics import NAMESPACE, build_fqname
from ..utils.parsing import get_records
from .base import BaseCollector

VOLUMEUSAGE_QUERY = "SELECT DISTINCT VOLUME_NAME,NODE_NAME FROM volumeusage"
ALL_VOLUMES = "all"


@dataclass
class VolumeUsageMetric:
    nodename: str
    volumecounts: Dict[str, float] = field(default_factory=dict)


def classify_volume(volume: str, patterns: Optional[Dict[str, re.Pattern]]) -> Optional[str]:
    """
    Label for a volume name.

    Without a map every volume is counted as "all". With a map the first
    label, in sorted order, whose pattern matches wins; None when nothing
    matches.
    """
    if not patterns:
        return ALL_VOLUMES
    for label in sorted(patterns):
        if patterns[label].search(volume):
            return label
    return None


def volumeusage_parse(out: str, volumeusage_map: Optional[Dict[str, str]] = None) -> List[VolumeUsageMetric]:
    """
    Count volumes per node and volume class.

    Rows are volume,node pairs.

    Raises:
        ParseError: On malformed CSV
    """
    patterns = {label: re.compile(p) for label, p in (volumeusage_map or {}).items()}
    metrics: Dict[str, VolumeUsageMetric] = {}
    for record in get_records(out):
        if len(record) != 2:
            continue
        volume, nodename = record
        label = classify_volume(volume, patterns)
        if label is None:
            continue
        metric = metrics.setdefault(nodename, VolumeUsageMetric(nodename=nodename))
        metric.volumecounts[label] = metric.volumecounts.get(label, 0) + 1
    return list(metrics.values())


class VolumeUsageCollector(BaseCollector):
    """Collects the number of volumes each node has data on."""

    name = "volumeusage"

    async def collect_metrics(self) -> List[Metric]:
        records = volumeusage_parse(await self.query(VOLUMEUSAGE_QUERY), self.target.volumeusage_map)

        usage = GaugeMetricFamily(
            build_fqname(NAMESPACE, "volume", "usage"),
            "Number of volumes used by node name",
            labels=["nodename", "volumename"],
        )
        for m in records:
            for volumename, count in m.volumecounts.items():
                usage.add_metric([m.nodename, volumename], count)
        return [usage]
