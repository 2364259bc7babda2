"""Tests for the database collector."""

import pytest

from tsm_exporter.collectors.db_collector import DBCollector, build_db_query, db_parse
from tsm_exporter.config.models import CollectorOptions, Target
from tsm_exporter.exceptions import QueryTimeoutError


MOCK_DB_STDOUT = """
Data,to,ignore
88.6,TSMDB1,3092796,1453663,2020-05-22 08:10:00.000000,98.3,0,11607707032,28836868,2096672,28836092,642976,25743296
"""

MOCK_DB_STDOUT_COMMA = """
"99,8",TSMDB1,14716,52426,2020-11-26 06:55:13.000000,"99,5",0,104779659176,11102498,221184,11095514,168693,11080798
"""

MOCK_DB_STDOUT_NO_BACKUP = """
88.6,TSMDB1,3092796,1453663,,98.3,0,11607707032,28836868,2096672,28836092,642976,25743296
"""


@pytest.fixture
def utc_target():
    return Target(name="test", servername="test", id="admin", password="secret", timezone="UTC")


def test_build_db_query():
    """Test db query text."""
    assert build_db_query() == (
        "SELECT BUFF_HIT_RATIO,DATABASE_NAME,FREE_PAGES,FREE_SPACE_MB,LAST_BACKUP_DATE,PKG_HIT_RATIO,"
        "SORT_OVERFLOW,TOTAL_BUFF_REQ,TOTAL_PAGES,TOT_FILE_SYSTEM_MB,USABLE_PAGES,USED_DB_SPACE_MB,"
        "USED_PAGES FROM db"
    )


class TestDBParse:
    """Test suite for db_parse."""

    def test_parse(self):
        """Test db output parsing."""
        metrics = db_parse(MOCK_DB_STDOUT)
        assert len(metrics) == 1
        assert metrics[0].name == "TSMDB1"
        assert metrics[0].buff_hit_ratio == pytest.approx(0.886)
        assert metrics[0].last_backup == "2020-05-22 08:10:00.000000"

    def test_parse_decimal_comma(self):
        """Test db output with decimal commas."""
        metrics = db_parse(MOCK_DB_STDOUT_COMMA)
        assert len(metrics) == 1
        assert metrics[0].buff_hit_ratio == pytest.approx(0.998)
        assert metrics[0].pkg_hit_ratio == pytest.approx(0.995)


class TestDBCollector:
    """Test suite for DBCollector."""

    @pytest.mark.asyncio
    async def test_collect(self, utc_target, executor_factory, sample_map, logger):
        """Test db metrics."""
        executor = executor_factory({build_db_query(): MOCK_DB_STDOUT})
        result = await DBCollector(utc_target, executor, CollectorOptions(), logger).collect()

        samples = sample_map(result.to_metrics())
        assert samples.value("tsm_db_buffer_hit_ratio", dbname="TSMDB1") == pytest.approx(0.886)
        assert samples.value("tsm_db_pkg_hit_ratio", dbname="TSMDB1") == pytest.approx(0.983)
        assert samples.value("tsm_db_buffer_requests_total", dbname="TSMDB1") == 11607707032
        assert samples.value("tsm_db_space_total_bytes", dbname="TSMDB1") == 2198519939072
        assert samples.value("tsm_db_space_used_bytes", dbname="TSMDB1") == 674209202176
        assert samples.value("tsm_db_space_free_bytes", dbname="TSMDB1") == 1524276133888
        assert samples.value("tsm_db_pages_total", dbname="TSMDB1") == 28836868
        assert samples.value("tsm_db_pages_usable", dbname="TSMDB1") == 28836092
        assert samples.value("tsm_db_pages_used", dbname="TSMDB1") == 25743296
        assert samples.value("tsm_db_pages_free", dbname="TSMDB1") == 3092796
        assert samples.value("tsm_db_sort_overflow", dbname="TSMDB1") == 0
        assert samples.value("tsm_db_last_backup_timestamp_seconds", dbname="TSMDB1") == 1590135000
        assert samples.value("tsm_exporter_collect_error", collector="db") == 0
        assert samples.value("tsm_exporter_collect_timeout", collector="db") == 0

    @pytest.mark.asyncio
    async def test_collect_never_backed_up(self, utc_target, executor_factory, sample_map, logger):
        """Test last backup timestamp when never backed up."""
        executor = executor_factory({build_db_query(): MOCK_DB_STDOUT_NO_BACKUP})
        result = await DBCollector(utc_target, executor, CollectorOptions(), logger).collect()

        samples = sample_map(result.to_metrics())
        assert "tsm_db_last_backup_timestamp_seconds" not in samples.names()
        assert samples.value("tsm_exporter_collect_error", collector="db") == 0

    @pytest.mark.asyncio
    async def test_collect_timeout(self, utc_target, executor_factory, sample_map, logger):
        """Test db collector timeout."""
        executor = executor_factory(default=QueryTimeoutError("timed out"))
        result = await DBCollector(utc_target, executor, CollectorOptions(), logger).collect()

        samples = sample_map(result.to_metrics())
        assert samples.value("tsm_exporter_collect_timeout", collector="db") == 1
        assert samples.value("tsm_exporter_collect_error", collector="db") == 0
        assert not any(name.startswith("tsm_db_") for name in samples.names())

    @pytest.mark.asyncio
    async def test_collect_parse_error(self, utc_target, executor_factory, sample_map, logger):
        """Test db collector with unparseable output."""
        bad = "foo,TSMDB1,3092796,1453663,,98.3,0,1,2,3,4,5,6\n"
        executor = executor_factory({build_db_query(): bad})
        result = await DBCollector(utc_target, executor, CollectorOptions(), logger).collect()

        samples = sample_map(result.to_metrics())
        assert samples.value("tsm_exporter_collect_error", collector="db") == 1
        assert not any(name.startswith("tsm_db_") for name in samples.names())
