"""Storage volume collector."""

from dataclasses import dataclass
from typing import List, Optional, Pattern
import logging
import math

from prometheus_client.core import GaugeMetricFamily
from prometheus_client.metrics_core import Metric

from ..utils.fields import BYTES_PER_MB
from ..utils.metrics import NAMESPACE, build_fqname
from ..utils.parsing import get_records, parse_float
from .base import BaseCollector

VOLUME_STATUSES = ["EMPTY", "FILLING", "FULL"]

VOLUMES_QUERY = (
    "SELECT access,est_capacity_mb,pct_utilized,devclass_name,volume_name,"
    "stgpool_name,status,times_mounted,write_pass FROM volumes"
)


@dataclass
class VolumeMetric:
    name: str
    classname: str
    access: str
    stgpool: str
    status: str
    capacity: float
    utilized: float
    times_mounted: float
    write_pass: float


def volumes_parse(
    out: str,
    classname_exclude: Optional[Pattern] = None,
    logger: Optional[logging.Logger] = None
) -> List[VolumeMetric]:
    """
    Parse volumes query output.

    Args:
        out: dsmadmc output
        classname_exclude: Device classes matching this pattern are skipped
        logger: Logger for skipped volumes

    Returns:
        List[VolumeMetric]: One record per volume kept

    Raises:
        ParseError: On malformed CSV or an unparseable number
    """
    metrics = []
    for record in get_records(out):
        if len(record) != 9:
            continue
        name = record[4]
        classname = record[3]
        if classname_exclude is not None and classname_exclude.search(classname):
            if logger:
                logger.debug(f"Skipping volume {name} due to classname exclude {classname}")
            continue
        metrics.append(VolumeMetric(
            name=name,
            classname=classname,
            access=record[0],
            stgpool=record[5],
            status=record[6],
            capacity=parse_float(record[1]) * BYTES_PER_MB,
            utilized=parse_float(record[2]) / 100,
            times_mounted=parse_float(record[7]),
            write_pass=parse_float(record[8]),
        ))
    return metrics


class VolumesCollector(BaseCollector):
    """Collects per-volume capacity, utilization and status."""

    name = "volumes"

    @property
    def classname_exclude(self) -> Optional[Pattern]:
        pattern = self.target.volumes_classname_exclude or self.options.volumes_classname_exclude
        return self.compile_optional(pattern)

    async def collect_metrics(self) -> List[Metric]:
        out = await self.query(VOLUMES_QUERY)
        records = volumes_parse(out, self.classname_exclude, self.logger)

        labels = ["volume", "classname"]
        unavailable = GaugeMetricFamily(
            build_fqname(NAMESPACE, "volumes", "unavailable"), "Number of unavailable volumes"
        )
        readonly = GaugeMetricFamily(
            build_fqname(NAMESPACE, "volumes", "readonly"), "Number of readonly volumes"
        )
        utilized = GaugeMetricFamily(
            build_fqname(NAMESPACE, "volume", "utilized_ratio"),
            "Volume utilized ratio, 0.0-1.0",
            labels=labels,
        )
        capacity = GaugeMetricFamily(
            build_fqname(NAMESPACE, "volume", "estimated_capacity_bytes"),
            "Volume estimated capacity",
            labels=labels,
        )
        stgpool = GaugeMetricFamily(
            build_fqname(NAMESPACE, "volume", "storage_pool_info"),
            "Volume storage pool information",
            labels=labels + ["stgpool"],
        )
        status = GaugeMetricFamily(
            build_fqname(NAMESPACE, "volume", "status_info"),
            "Volume status information",
            labels=labels + ["status"],
        )
        times_mounted = GaugeMetricFamily(
            build_fqname(NAMESPACE, "volume", "times_mounted"),
            "Volume times mounted",
            labels=labels,
        )
        write_pass = GaugeMetricFamily(
            build_fqname(NAMESPACE, "volume", "write_pass"),
            "Volume write pass",
            labels=labels,
        )

        unavailable_count = 0.0
        readonly_count = 0.0
        for record in records:
            if record.access == "UNAVAILABLE":
                unavailable_count += 1
            elif record.access == "READONLY":
                readonly_count += 1
            key = [record.name, record.classname]
            if not math.isnan(record.utilized):
                utilized.add_metric(key, record.utilized)
            if not math.isnan(record.capacity):
                capacity.add_metric(key, record.capacity)
            stgpool.add_metric(key + [record.stgpool], 1.0)
            for s in VOLUME_STATUSES:
                status.add_metric(key + [s], 1.0 if s == record.status else 0.0)
            if not math.isnan(record.times_mounted):
                times_mounted.add_metric(key, record.times_mounted)
            if not math.isnan(record.write_pass):
                write_pass.add_metric(key, record.write_pass)
        unavailable.add_metric([], unavailable_count)
        readonly.add_metric([], readonly_count)

        return [unavailable, readonly, utilized, capacity, stgpool, status, times_mounted, write_pass]
