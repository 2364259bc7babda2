"""Node replication collector."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from prometheus_client.core import GaugeMetricFamily
from prometheus_client.metrics_core import Metric

from ..config.models import Target
from ..utils.metrics import NAMESPACE, build_fqname
from ..utils.parsing import DATE_FORMAT, build_in_filter, duration, get_records, parse_float, parse_time, timestamp
from .base import BaseCollector


@dataclass
class ReplicationViewMetric:
    node_name: str
    fs_name: str
    not_completed: float = 0.0
    start_timestamp: float = 0.0
    end_timestamp: float = 0.0
    duration: float = 0.0
    replicated_bytes: float = 0.0
    replicated_files: float = 0.0


def _node_filter(target: Target) -> str:
    if target.replication_node_names is None:
        return ""
    return f" NODE_NAME IN ({build_in_filter(target.replication_node_names)}) AND"


def build_replicationview_completed_query(target: Target) -> str:
    query = (
        "SELECT NODE_NAME, FSNAME, START_TIME, END_TIME, TOTFILES_REPLICATED, TOTBYTES_REPLICATED"
        " FROM replicationview WHERE"
    )
    query += _node_filter(target)
    query += " COMP_STATE = 'COMPLETE' ORDER BY END_TIME DESC"
    return query


def build_replicationview_not_completed_query(target: Target, now: datetime) -> str:
    today = now.strftime(DATE_FORMAT)
    yesterday = (now - timedelta(days=1)).strftime(DATE_FORMAT)
    query = "SELECT NODE_NAME, FSNAME FROM replicationview WHERE"
    query += _node_filter(target)
    query += f" COMP_STATE <> 'COMPLETE' AND DATE(START_TIME) BETWEEN '{yesterday}' AND '{today}'"
    return query


def replicationview_parse(
    completed_out: str,
    not_completed_out: str,
    timezone: Optional[str] = None
) -> Dict[str, ReplicationViewMetric]:
    """
    Join completed and not completed replication rows on node and filespace.

    The first completed row per key is the most recent replication. Keys
    only present among not completed rows keep zero values.

    Raises:
        ParseError: On malformed CSV, numbers or timestamps
    """
    completed_records = get_records(completed_out)
    not_completed_records = get_records(not_completed_out)

    metrics: Dict[str, ReplicationViewMetric] = {}
    for record in completed_records:
        if len(record) != 6:
            continue
        key = f"{record[0]}-{record[1]}"
        if key in metrics:
            continue
        start = parse_time(record[2], timezone)
        end = parse_time(record[3], timezone)
        metric = ReplicationViewMetric(
            node_name=record[0],
            fs_name=record[1],
            start_timestamp=timestamp(start),
            replicated_files=parse_float(record[4]),
            replicated_bytes=parse_float(record[5]),
        )
        if end >= start:
            metric.end_timestamp = timestamp(end)
            metric.duration = duration(start, end)
        metrics[key] = metric

    for record in not_completed_records:
        if len(record) != 2:
            continue
        key = f"{record[0]}-{record[1]}"
        metric = metrics.setdefault(key, ReplicationViewMetric(node_name=record[0], fs_name=record[1]))
        metric.not_completed += 1

    return metrics


class ReplicationViewCollector(BaseCollector):
    """Collects the most recent replication per node filespace."""

    name = "replicationview"

    async def collect_metrics(self) -> List[Metric]:
        completed_out, not_completed_out = await self.query_pair(
            build_replicationview_completed_query(self.target),
            build_replicationview_not_completed_query(self.target, self.now()),
        )
        metrics = replicationview_parse(completed_out, not_completed_out, self.timezone)

        labels = ["nodename", "fsname"]
        families = {
            "not_completed": GaugeMetricFamily(
                build_fqname(NAMESPACE, "replication", "not_completed"),
                "Number of replications not completed for today",
                labels=labels,
            ),
            "start_timestamp": GaugeMetricFamily(
                build_fqname(NAMESPACE, "replication", "start_timestamp_seconds"),
                "Start time of replication",
                labels=labels,
            ),
            "end_timestamp": GaugeMetricFamily(
                build_fqname(NAMESPACE, "replication", "end_timestamp_seconds"),
                "End time of replication",
                labels=labels,
            ),
            "duration": GaugeMetricFamily(
                build_fqname(NAMESPACE, "replication", "duration_seconds"),
                "Amount of time taken to complete the most recent replication",
                labels=labels,
            ),
            "replicated_bytes": GaugeMetricFamily(
                build_fqname(NAMESPACE, "replication", "replicated_bytes"),
                "Amount of data replicated in bytes",
                labels=labels,
            ),
            "replicated_files": GaugeMetricFamily(
                build_fqname(NAMESPACE, "replication", "replicated_files"),
                "Number of files replicated",
                labels=labels,
            ),
        }
        for m in metrics.values():
            for attribute, family in families.items():
                family.add_metric([m.node_name, m.fs_name], getattr(m, attribute))
        return list(families.values())
