"""Server status collector."""

from dataclasses import dataclass
from typing import List

from prometheus_client.core import GaugeMetricFamily
from prometheus_client.metrics_core import Metric

from ..utils.metrics import NAMESPACE, build_fqname
from ..utils.parsing import get_records
from .base import BaseCollector

STATUS_QUERY = "QUERY STATUS"
SERVERNAME_NOT_FOUND = "servername not found"


@dataclass
class StatusMetric:
    server_name: str = ""
    reason: str = ""
    status: float = 0.0


def status_parse(out: str) -> StatusMetric:
    """
    Parse QUERY STATUS output.

    The server name is the first field of the status row. Output without
    such a row reports status 0.

    Raises:
        ParseError: On malformed CSV
    """
    metric = StatusMetric()
    for record in get_records(out):
        if len(record) < 2:
            continue
        metric.server_name = record[0]
        metric.status = 1.0
    if not metric.server_name:
        metric.status = 0.0
        metric.reason = SERVERNAME_NOT_FOUND
    return metric


class StatusCollector(BaseCollector):
    """Reports whether the server answers administrative queries."""

    name = "status"

    async def collect_metrics(self) -> List[Metric]:
        metric = status_parse(await self.query(STATUS_QUERY))
        status = GaugeMetricFamily(
            build_fqname(NAMESPACE, "", "status"),
            "Status of TSM, 1=online 0=failure",
            labels=["servername", "reason"],
        )
        status.add_metric([metric.server_name, metric.reason], metric.status)
        return [status]
