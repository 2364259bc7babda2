"""Tape drive collector."""

from dataclasses import dataclass
from typing import List

from prometheus_client.core import GaugeMetricFamily
from prometheus_client.metrics_core import Metric

from ..config.models import Target
from ..utils.metrics import NAMESPACE, build_fqname
from ..utils.parsing import get_records
from .base import BaseCollector

DRIVE_STATES = ["empty", "loaded", "reserved", "unavailable", "unloaded", "unknown"]


@dataclass
class DriveMetric:
    library: str
    name: str
    online: bool
    state: str
    volume: str


def build_drives_query(target: Target) -> str:
    query = "SELECT library_name,drive_name,online,drive_state,volume_name FROM drives"
    if target.library_name:
        query += f" WHERE library_name='{target.library_name}'"
    return query


def drive_state(value: str) -> str:
    """Bucket a drive_state value into one of DRIVE_STATES."""
    state = value.lower()
    if state not in DRIVE_STATES:
        return "unknown"
    return state


def drives_parse(out: str) -> List[DriveMetric]:
    """
    Parse drives query output.

    Raises:
        ParseError: On malformed CSV
    """
    metrics = []
    for record in get_records(out):
        if len(record) != 5:
            continue
        metrics.append(DriveMetric(
            library=record[0],
            name=record[1],
            online=record[2] == "YES",
            state=drive_state(record[3]),
            volume=record[4],
        ))
    return metrics


class DrivesCollector(BaseCollector):
    """Collects drive online status, state and mounted volume."""

    name = "drives"

    async def collect_metrics(self) -> List[Metric]:
        records = drives_parse(await self.query(build_drives_query(self.target)))

        online = GaugeMetricFamily(
            build_fqname(NAMESPACE, "drive", "online"),
            "Inidicates if the drive is online, 1=online, 0=offline",
            labels=["library", "drive"],
        )
        state_info = GaugeMetricFamily(
            build_fqname(NAMESPACE, "drive", "state_info"),
            "Current state of the drive",
            labels=["library", "drive", "state"],
        )
        volume_info = GaugeMetricFamily(
            build_fqname(NAMESPACE, "drive", "volume_info"),
            "Current volume of the drive",
            labels=["library", "drive", "volume"],
        )

        for record in records:
            online.add_metric([record.library, record.name], 1.0 if record.online else 0.0)
            for state in DRIVE_STATES:
                state_info.add_metric(
                    [record.library, record.name, state], 1.0 if state == record.state else 0.0
                )
            volume_info.add_metric([record.library, record.name, record.volume], 1.0)

        return [online, state_info, volume_info]
