"""Active log space collector."""

from dataclasses import dataclass
from typing import List

from prometheus_client.core import GaugeMetricFamily
from prometheus_client.metrics_core import Metric

from ..utils.fields import FieldMap
from ..utils.metrics import NAMESPACE, build_fqname
from ..utils.parsing import get_records
from .base import BaseCollector


@dataclass
class LogMetric:
    total: float
    used: float
    free: float


LOG_FIELDS: FieldMap[LogMetric] = FieldMap.from_mapping(
    LogMetric,
    {
        "TOTAL_SPACE_MB": "total",
        "USED_SPACE_MB": "used",
        "FREE_SPACE_MB": "free",
    },
)


def build_log_query() -> str:
    return f"SELECT {','.join(LOG_FIELDS.columns)} FROM log"


def log_parse(out: str) -> List[LogMetric]:
    return [LOG_FIELDS.build(record) for record in get_records(out) if LOG_FIELDS.matches(record)]


class LogCollector(BaseCollector):
    """Collects active log usage."""

    name = "log"

    async def collect_metrics(self) -> List[Metric]:
        records = log_parse(await self.query(build_log_query()))

        total = GaugeMetricFamily(
            build_fqname(NAMESPACE, "active_log", "total_bytes"), "Active log total space in bytes"
        )
        used = GaugeMetricFamily(
            build_fqname(NAMESPACE, "active_log", "used_bytes"), "Active log used space in bytes"
        )
        free = GaugeMetricFamily(
            build_fqname(NAMESPACE, "active_log", "free_bytes"), "Active log free space in bytes"
        )
        # The log table holds a single row
        if records:
            record = records[-1]
            total.add_metric([], record.total)
            used.add_metric([], record.used)
            free.add_metric([], record.free)
        return [total, used, free]
