"""Scheduled event collector."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, List, Optional
import logging

from prometheus_client.core import GaugeMetricFamily
from prometheus_client.metrics_core import Metric

from ..config.models import Target
from ..exceptions import ParseError
from ..utils.metrics import NAMESPACE, build_fqname
from ..utils.parsing import DATE_FORMAT, build_in_filter, duration, get_records, parse_time, timestamp
from .base import BaseCollector

# Statuses that do not count against a schedule
STATUS_OK = ["Completed", "Future", "Started", "In Progress", "Pending"]


@dataclass
class EventMetric:
    name: str
    not_completed: float = 0.0
    duration: float = 0.0
    start: float = 0.0
    completed: float = 0.0


def build_events_completed_query(target: Target) -> str:
    query = "SELECT schedule_name, actual_start, completed FROM events WHERE"
    if target.schedules is not None:
        query += f" schedule_name IN ({build_in_filter(target.schedules)}) AND"
    query += " status = 'Completed' ORDER BY completed DESC"
    return query


def build_events_not_completed_query(target: Target, now: datetime) -> str:
    today = now.strftime(DATE_FORMAT)
    yesterday = (now - timedelta(days=1)).strftime(DATE_FORMAT)
    query = "SELECT schedule_name,status FROM events WHERE"
    if target.schedules is not None:
        query += f" schedule_name IN ({build_in_filter(target.schedules)}) AND"
    query += f" DATE(scheduled_start) BETWEEN '{yesterday}' AND '{today}'"
    return query


def events_parse(
    completed_out: str,
    not_completed_out: str,
    timezone: Optional[str] = None,
    logger: Optional[logging.Logger] = None
) -> Dict[str, EventMetric]:
    """
    Join completed and not completed event rows by schedule name.

    The most recent completed event per schedule supplies duration and
    timestamps; every event from yesterday or today outside STATUS_OK
    counts as not completed.

    Args:
        completed_out: Output of the completed events query
        not_completed_out: Output of the recent events query
        timezone: Zone the server reports timestamps in
        logger: Logger for parse failures

    Returns:
        Dict[str, EventMetric]: Records keyed by schedule name

    Raises:
        ParseError: On malformed CSV or an unparseable timestamp
    """
    logger = logger or logging.getLogger(__name__)
    completed_records = get_records(completed_out)
    not_completed_records = get_records(not_completed_out)

    metrics: Dict[str, EventMetric] = {}
    for record in completed_records:
        if len(record) != 3:
            continue
        schedule = record[0]
        if schedule in metrics:
            continue
        try:
            start = parse_time(record[1], timezone)
            completed = parse_time(record[2], timezone)
        except ParseError:
            logger.error(f"Failed to parse event times for {schedule}: {','.join(record)}")
            raise
        metrics[schedule] = EventMetric(
            name=schedule,
            duration=duration(start, completed),
            start=timestamp(start),
            completed=timestamp(completed),
        )

    for record in not_completed_records:
        if len(record) != 2:
            continue
        schedule, status = record
        metric = metrics.setdefault(schedule, EventMetric(name=schedule))
        if status not in STATUS_OK:
            metric.not_completed += 1

    return metrics


class EventsCollector(BaseCollector):
    """Collects completion state of client schedules."""

    name = "events"

    async def collect_metrics(self) -> List[Metric]:
        completed_out, not_completed_out = await self.query_pair(
            build_events_completed_query(self.target),
            build_events_not_completed_query(self.target, self.now()),
        )
        metrics = events_parse(completed_out, not_completed_out, self.timezone, self.logger)

        labels = ["schedule"]
        not_completed = GaugeMetricFamily(
            build_fqname(NAMESPACE, "schedule", "not_completed"),
            "Number of scheduled events not completed for today",
            labels=labels,
        )
        schedule_duration = GaugeMetricFamily(
            build_fqname(NAMESPACE, "schedule", "duration_seconds"),
            "Amount of time taken to complete the most recent completed scheduled event",
            labels=labels,
        )
        start = GaugeMetricFamily(
            build_fqname(NAMESPACE, "schedule", "start_timestamp_seconds"),
            "Start time of the most recent completed scheduled event",
            labels=labels,
        )
        completed = GaugeMetricFamily(
            build_fqname(NAMESPACE, "schedule", "completed_timestamp_seconds"),
            "Completed time of the most recent completed scheduled event",
            labels=labels,
        )

        for schedule, m in metrics.items():
            not_completed.add_metric([schedule], m.not_completed)
            schedule_duration.add_metric([schedule], m.duration)
            if m.start > 0:
                start.add_metric([schedule], m.start)
            if m.completed > 0:
                completed.add_metric([schedule], m.completed)

        return [not_completed, schedule_duration, start, completed]
