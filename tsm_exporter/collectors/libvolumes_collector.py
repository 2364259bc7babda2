"""Library volume (tape inventory) collector."""

from dataclasses import dataclass
from typing import List

from prometheus_client.core import GaugeMetricFamily
from prometheus_client.metrics_core import Metric

from ..config.models import Target
from ..utils.metrics import NAMESPACE, build_fqname
from ..utils.parsing import get_records, parse_float
from .base import BaseCollector


@dataclass
class LibVolumeMetric:
    mediatype: str
    status: str
    count: float


def build_libvolumes_query(target: Target) -> str:
    query = "SELECT mediatype,status,COUNT(*) FROM libvolumes"
    if target.library_name:
        query += f" WHERE library_name='{target.library_name}'"
    query += " GROUP BY mediatype,status"
    return query


def libvolumes_parse(out: str) -> List[LibVolumeMetric]:
    """
    Parse grouped libvolumes counts.

    Raises:
        ParseError: On malformed CSV or an unparseable count
    """
    metrics = []
    for record in get_records(out):
        if len(record) != 3:
            continue
        metrics.append(LibVolumeMetric(
            mediatype=record[0],
            status=record[1].lower(),
            count=parse_float(record[2]),
        ))
    return metrics


class LibVolumesCollector(BaseCollector):
    """Collects tape counts per media type and status."""

    name = "libvolumes"

    async def collect_metrics(self) -> List[Metric]:
        records = libvolumes_parse(await self.query(build_libvolumes_query(self.target)))

        media = GaugeMetricFamily(
            build_fqname(NAMESPACE, "libvolume", "media"),
            "Number of tapes",
            labels=["mediatype", "status"],
        )
        scratch = GaugeMetricFamily(
            build_fqname(NAMESPACE, "libvolume", "scratch"),
            "Number of scratch tapes",
        )
        scratch_total = 0.0
        for record in records:
            media.add_metric([record.mediatype, record.status], record.count)
            if record.status == "scratch":
                scratch_total += record.count
        scratch.add_metric([], scratch_total)
        return [media, scratch]
