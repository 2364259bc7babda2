"""Filespace occupancy collector."""

from dataclasses import dataclass
from typing import List

from prometheus_client.core import GaugeMetricFamily
from prometheus_client.metrics_core import Metric

from ..utils.fields import FieldMap
from ..utils.metrics import NAMESPACE, build_fqname
from ..utils.parsing import get_records
from .base import BaseCollector


@dataclass
class OccupancyMetric:
    filespace: str
    logical: float
    nodename: str
    files: float
    physical: float
    storagepool: str


OCCUPANCY_FIELDS: FieldMap[OccupancyMetric] = FieldMap.from_mapping(
    OccupancyMetric,
    {
        "FILESPACE_NAME": "filespace",
        "LOGICAL_MB": "logical",
        "NODE_NAME": "nodename",
        "NUM_FILES": "files",
        "PHYSICAL_MB": "physical",
        "STGPOOL_NAME": "storagepool",
    },
    labels=("FILESPACE_NAME", "NODE_NAME", "STGPOOL_NAME"),
)

OCCUPANCY_GROUP_BY = ["FILESPACE_NAME", "NODE_NAME", "STGPOOL_NAME"]


def build_occupancy_query() -> str:
    """Sum numeric columns over each node, filespace and storage pool."""
    columns = [c if c in OCCUPANCY_GROUP_BY else f"SUM({c})" for c in OCCUPANCY_FIELDS.columns]
    return f"SELECT {','.join(columns)} FROM occupancy GROUP BY {','.join(OCCUPANCY_GROUP_BY)}"


def occupancy_parse(out: str) -> List[OccupancyMetric]:
    return [OCCUPANCY_FIELDS.build(r) for r in get_records(out) if OCCUPANCY_FIELDS.matches(r)]


class OccupancyCollector(BaseCollector):
    """Collects physical and logical occupancy per node filespace."""

    name = "occupancy"

    async def collect_metrics(self) -> List[Metric]:
        records = occupancy_parse(await self.query(build_occupancy_query()))

        labels = ["nodename", "filespace", "storagepool"]
        physical = GaugeMetricFamily(
            build_fqname(NAMESPACE, "occupancy", "physical_bytes"), "Physical space occupied", labels=labels
        )
        logical = GaugeMetricFamily(
            build_fqname(NAMESPACE, "occupancy", "logical_bytes"), "Logical space occupied", labels=labels
        )
        files = GaugeMetricFamily(
            build_fqname(NAMESPACE, "occupancy", "files"), "Number of files", labels=labels
        )
        for r in records:
            key = [r.nodename, r.filespace, r.storagepool]
            physical.add_metric(key, r.physical)
            logical.add_metric(key, r.logical)
            files.add_metric(key, r.files)
        return [physical, logical, files]
