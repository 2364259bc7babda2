"""Activity summary and tape mount collector."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

from prometheus_client.core import GaugeMetricFamily
from prometheus_client.metrics_core import Metric

from ..config.models import Target
from ..utils.metrics import NAMESPACE, build_fqname
from ..utils.parsing import TIME_FORMAT, build_in_filter, get_records, parse_float, parse_time, timestamp
from .base import BaseCollector

TAPE_MOUNT = "TAPE MOUNT"
EXCLUDED_ACTIVITIES = ["TAPE MOUNT", "EXPIRATION", "PROCESS_START", "PROCESS_END"]


@dataclass
class SummaryMetric:
    activity: str
    start_time: float
    end_time: float
    entity: str = ""
    schedule: str = ""
    bytes: float = 0.0
    volume: str = ""
    drive: str = ""


def build_summary_query(target: Target) -> str:
    query = "SELECT ACTIVITY,ENTITY,SCHEDULE_NAME,SUM(BYTES),MIN(START_TIME),MAX(END_TIME) FROM SUMMARY_EXTENDED"
    if target.summary_activities is not None:
        query += f" WHERE ACTIVITY IN ({build_in_filter(target.summary_activities)})"
    else:
        query += f" WHERE ACTIVITY NOT IN ({build_in_filter(EXCLUDED_ACTIVITIES)}) AND ACTIVITY NOT LIKE 'SUR_%'"
    query += " GROUP BY ACTIVITY,ENTITY,SCHEDULE_NAME,DATE(START_TIME),DATE(END_TIME) ORDER BY DATE(END_TIME) DESC"
    return query


def build_tape_mount_query(now: datetime) -> str:
    """Tape mounts that ended within the hour before now."""
    past = now - timedelta(hours=1)
    query = "SELECT ACTIVITY,VOLUME_NAME,DRIVE_NAME,START_TIME,END_TIME FROM SUMMARY_EXTENDED"
    query += f" WHERE ACTIVITY IN ('{TAPE_MOUNT}')"
    query += f" AND END_TIME BETWEEN '{past.strftime(TIME_FORMAT)}' AND '{now.strftime(TIME_FORMAT)}'"
    query += " ORDER BY END_TIME DESC"
    return query


def _times(record: List[str], timezone: Optional[str]) -> Tuple[float, float]:
    start = parse_time(record[-2], timezone)
    end = parse_time(record[-1], timezone)
    return timestamp(start), timestamp(end)


def summary_parse(summary_out: str, tape_mount_out: str, timezone: Optional[str] = None) -> Dict[str, SummaryMetric]:
    """
    Parse activity summary and tape mount rows.

    Rows are ordered newest first, so the first row per
    activity-entity-schedule and per drive-volume is kept.

    Raises:
        ParseError: On malformed CSV, numbers or timestamps
    """
    summary_records = get_records(summary_out)
    tape_mount_records = get_records(tape_mount_out)

    metrics: Dict[str, SummaryMetric] = {}
    for record in summary_records:
        if len(record) != 6:
            continue
        activity, entity, schedule = record[0], record[1], record[2]
        key = f"{activity}-{entity}-{schedule}"
        if key in metrics:
            continue
        bytes_ = parse_float(record[3])
        start, end = _times(record, timezone)
        metrics[key] = SummaryMetric(
            activity=activity,
            entity=entity,
            schedule=schedule,
            bytes=bytes_,
            start_time=start,
            end_time=end,
        )

    for record in tape_mount_records:
        if len(record) != 5:
            continue
        volume = record[1]
        # "TAPE10 (/dev/lin_tape/by-id/IBMtape10)"
        drive = record[2].split(" ")[0]
        key = f"{drive}-{volume}"
        if key in metrics:
            continue
        start, end = _times(record, timezone)
        metrics[key] = SummaryMetric(
            activity=record[0],
            volume=volume,
            drive=drive,
            start_time=start,
            end_time=end,
        )

    return metrics


class SummaryCollector(BaseCollector):
    """Collects recent activity summaries and tape mounts."""

    name = "summary"

    async def collect_metrics(self) -> List[Metric]:
        summary_out, tape_mount_out = await self.query_pair(
            build_summary_query(self.target),
            build_tape_mount_query(self.now()),
        )
        metrics = summary_parse(summary_out, tape_mount_out, self.timezone)

        labels = ["activity", "entity", "schedule"]
        tape_mount_labels = ["volume", "drive"]
        start_time = GaugeMetricFamily(
            build_fqname(NAMESPACE, "summary", "start_timestamp_seconds"), "Start time of activity", labels=labels
        )
        end_time = GaugeMetricFamily(
            build_fqname(NAMESPACE, "summary", "end_timestamp_seconds"), "End time of activity", labels=labels
        )
        summary_bytes = GaugeMetricFamily(
            build_fqname(NAMESPACE, "summary", "bytes"),
            "Amount of data for activity, in last 24 hours",
            labels=labels,
        )
        tape_mount_start = GaugeMetricFamily(
            build_fqname(NAMESPACE, "tape_mount", "start_timestamp_seconds"),
            "Start time of activity",
            labels=tape_mount_labels,
        )
        tape_mount_end = GaugeMetricFamily(
            build_fqname(NAMESPACE, "tape_mount", "end_timestamp_seconds"),
            "End time of activity",
            labels=tape_mount_labels,
        )

        for m in metrics.values():
            if m.activity == TAPE_MOUNT:
                tape_mount_start.add_metric([m.volume, m.drive], m.start_time)
                tape_mount_end.add_metric([m.volume, m.drive], m.end_time)
            else:
                key = [m.activity, m.entity, m.schedule]
                start_time.add_metric(key, m.start_time)
                end_time.add_metric(key, m.end_time)
                summary_bytes.add_metric(key, m.bytes)

        return [start_time, end_time, summary_bytes, tape_mount_start, tape_mount_end]
