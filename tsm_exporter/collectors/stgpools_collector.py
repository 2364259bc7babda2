"""Storage pool collector."""

from dataclasses import dataclass
from typing import List
import math

from prometheus_client.core import GaugeMetricFamily
from prometheus_client.metrics_core import Metric

from ..utils.fields import FieldMap
from ..utils.metrics import NAMESPACE, build_fqname
from ..utils.parsing import get_records
from .base import BaseCollector


@dataclass
class StoragePoolMetric:
    name: str
    pool_type: str
    class_name: str
    storage_type: str
    percent_logical: float
    percent_utilized: float
    estimated_capacity: float
    total_cloud_space: float
    used_cloud_space: float
    local_estimated_capacity: float
    local_percent_logical: float
    local_percent_utilized: float


STGPOOL_FIELDS: FieldMap[StoragePoolMetric] = FieldMap.from_mapping(
    StoragePoolMetric,
    {
        "STGPOOL_NAME": "name",
        "POOLTYPE": "pool_type",
        "DEVCLASS": "class_name",
        "STG_TYPE": "storage_type",
        "PCT_LOGICAL": "percent_logical",
        "PCT_UTILIZED": "percent_utilized",
        "EST_CAPACITY_MB": "estimated_capacity",
        "TOTAL_CLOUD_SPACE_MB": "total_cloud_space",
        "USED_CLOUD_SPACE_MB": "used_cloud_space",
        "LOCAL_EST_CAPACITY_MB": "local_estimated_capacity",
        "LOCAL_PCT_LOGICAL": "local_percent_logical",
        "LOCAL_PCT_UTILIZED": "local_percent_utilized",
    },
    labels=("STGPOOL_NAME", "POOLTYPE", "DEVCLASS", "STG_TYPE"),
)

# attribute, metric name, help
STGPOOL_GAUGES = [
    ("percent_logical", "logical_ratio", "Storage pool logical occupancy ratio, 0.0-1.0"),
    ("percent_utilized", "utilized_ratio", "Storage pool utilized ratio, 0.0-1.0"),
    ("estimated_capacity", "estimated_capacity_bytes", "Storage pool estimated capacity"),
    ("total_cloud_space", "cloud_total_bytes", "Storage pool total cloud space"),
    ("used_cloud_space", "cloud_used_bytes", "Storage pool used cloud space"),
    ("local_estimated_capacity", "local_estimated_capacity_bytes", "Storage pool local estimated capacity"),
    ("local_percent_logical", "local_logical_ratio", "Storage pool local logical occupancy ratio, 0.0-1.0"),
    ("local_percent_utilized", "local_utilized_ratio", "Storage pool local utilized ratio, 0.0-1.0"),
]


def build_stgpools_query() -> str:
    return f"SELECT {','.join(STGPOOL_FIELDS.columns)} FROM stgpools"


def stgpools_parse(out: str) -> List[StoragePoolMetric]:
    """
    Parse stgpools query output.

    Raises:
        ParseError: On malformed CSV or an unparseable number
    """
    return [STGPOOL_FIELDS.build(r) for r in get_records(out) if STGPOOL_FIELDS.matches(r)]


class StoragePoolsCollector(BaseCollector):
    """Collects storage pool capacity and utilization."""

    name = "stgpools"

    async def collect_metrics(self) -> List[Metric]:
        records = stgpools_parse(await self.query(build_stgpools_query()))

        labels = ["storagepool", "pooltype", "classname", "storagetype"]
        gauges = {
            attribute: GaugeMetricFamily(build_fqname(NAMESPACE, "storage_pool", metric), help_text, labels=labels)
            for attribute, metric, help_text in STGPOOL_GAUGES
        }
        for r in records:
            key = [r.name, r.pool_type, r.class_name, r.storage_type]
            for attribute, family in gauges.items():
                value = getattr(r, attribute)
                # Pools of one storage type leave the other type's columns empty
                if not math.isnan(value):
                    family.add_metric(key, value)
        return list(gauges.values())
