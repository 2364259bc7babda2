"""Database space and buffer pool collector."""

from dataclasses import dataclass
from typing import List
import math

from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily
from prometheus_client.metrics_core import Metric

from ..utils.fields import FieldMap
from ..utils.metrics import NAMESPACE, build_fqname
from ..utils.parsing import get_records, timestamp
from .base import BaseCollector


@dataclass
class DBMetric:
    name: str
    total_space: float
    used_space: float
    free_space: float
    total_pages: float
    usable_pages: float
    used_pages: float
    free_pages: float
    buff_hit_ratio: float
    total_buff_req: float
    sort_overflow: float
    pkg_hit_ratio: float
    last_backup: str


DB_FIELDS: FieldMap[DBMetric] = FieldMap.from_mapping(
    DBMetric,
    {
        "DATABASE_NAME": "name",
        "TOT_FILE_SYSTEM_MB": "total_space",
        "USED_DB_SPACE_MB": "used_space",
        "FREE_SPACE_MB": "free_space",
        "TOTAL_PAGES": "total_pages",
        "USABLE_PAGES": "usable_pages",
        "USED_PAGES": "used_pages",
        "FREE_PAGES": "free_pages",
        "BUFF_HIT_RATIO": "buff_hit_ratio",
        "TOTAL_BUFF_REQ": "total_buff_req",
        "SORT_OVERFLOW": "sort_overflow",
        "PKG_HIT_RATIO": "pkg_hit_ratio",
        "LAST_BACKUP_DATE": "last_backup",
    },
    labels=("DATABASE_NAME", "LAST_BACKUP_DATE"),
)

# attribute, metric name, help
DB_GAUGES = [
    ("total_space", "space_total_bytes", "DB total space in bytes"),
    ("used_space", "space_used_bytes", "DB used space in bytes"),
    ("free_space", "space_free_bytes", "DB free space in bytes"),
    ("total_pages", "pages_total", "DB total pages"),
    ("usable_pages", "pages_usable", "DB usable pages"),
    ("used_pages", "pages_used", "DB used pages"),
    ("free_pages", "pages_free", "DB free pages"),
    ("buff_hit_ratio", "buffer_hit_ratio", "DB buffer hit ratio (0.0-1.0)"),
    ("sort_overflow", "sort_overflow", "DB sort overflow"),
    ("pkg_hit_ratio", "pkg_hit_ratio", "DB pkg hit ratio (0.0-1.0)"),
]


def build_db_query() -> str:
    return f"SELECT {','.join(DB_FIELDS.columns)} FROM db"


def db_parse(out: str) -> List[DBMetric]:
    """
    Parse db query output.

    Raises:
        ParseError: On malformed CSV or an unparseable number
    """
    return [DB_FIELDS.build(record) for record in get_records(out) if DB_FIELDS.matches(record)]


class DBCollector(BaseCollector):
    """Collects database space, page and buffer pool statistics."""

    name = "db"

    async def collect_metrics(self) -> List[Metric]:
        out = await self.query(build_db_query())
        records = db_parse(out)

        labels = ["dbname"]
        gauges = {
            attribute: GaugeMetricFamily(build_fqname(NAMESPACE, "db", metric), help_text, labels=labels)
            for attribute, metric, help_text in DB_GAUGES
        }
        buffer_requests = CounterMetricFamily(
            build_fqname(NAMESPACE, "db", "buffer_requests_total"),
            "DB total buffer requests",
            labels=labels,
        )
        last_backup = GaugeMetricFamily(
            build_fqname(NAMESPACE, "db", "last_backup_timestamp_seconds"),
            "Time since last backup in epoch",
            labels=labels,
        )

        for record in records:
            for attribute, family in gauges.items():
                value = getattr(record, attribute)
                if not math.isnan(value):
                    family.add_metric([record.name], value)
            if not math.isnan(record.total_buff_req):
                buffer_requests.add_metric([record.name], record.total_buff_req)
            # Never backed up leaves the column empty
            if record.last_backup:
                last_backup.add_metric([record.name], timestamp(self.parse_time(record.last_backup)))

        return list(gauges.values()) + [buffer_requests, last_backup]
