"""Tests for the replication view collector."""

import pytest

from tsm_exporter.collectors.replicationview_collector import (
    ReplicationViewCollector,
    build_replicationview_completed_query,
    build_replicationview_not_completed_query,
    replicationview_parse,
)
from tsm_exporter.config.models import Target
from tsm_exporter.exceptions import QueryError


MOCK_COMPLETED_STDOUT = """
TEST2DB2,/TEST2CONF,2020-03-23 00:45:29.000000,2020-03-23 06:06:45.000000,2,167543418
TEST2DB2,/TEST4,2020-03-23 00:45:29.000000,2020-03-23 06:06:45.000000,2,1052637876956
TEST2DB2,/TEST4,2020-03-22 00:45:29.000000,2020-03-22 06:06:45.000000,2,1052637876956
"""

MOCK_NOT_COMPLETED_STDOUT = """
FOO,/BAR
BAR,/BAZ
"""


def test_build_completed_query(target):
    """Test completed replication query text."""
    assert build_replicationview_completed_query(target) == (
        "SELECT NODE_NAME, FSNAME, START_TIME, END_TIME, TOTFILES_REPLICATED, TOTBYTES_REPLICATED"
        " FROM replicationview WHERE COMP_STATE = 'COMPLETE' ORDER BY END_TIME DESC"
    )
    with_nodes = Target(name="test", id="admin", password="secret", replication_node_names=["FOO", "BAR"])
    assert build_replicationview_completed_query(with_nodes) == (
        "SELECT NODE_NAME, FSNAME, START_TIME, END_TIME, TOTFILES_REPLICATED, TOTBYTES_REPLICATED"
        " FROM replicationview WHERE NODE_NAME IN ('FOO','BAR') AND COMP_STATE = 'COMPLETE' ORDER BY END_TIME DESC"
    )


def test_build_not_completed_query(target, options):
    """Test not completed replication query text."""
    assert build_replicationview_not_completed_query(target, options.clock()) == (
        "SELECT NODE_NAME, FSNAME FROM replicationview WHERE COMP_STATE <> 'COMPLETE'"
        " AND DATE(START_TIME) BETWEEN '2020-07-01' AND '2020-07-02'"
    )


class TestReplicationViewParse:
    """Test suite for replicationview_parse."""

    def test_parse(self):
        """Test replication join of completed and not completed rows."""
        metrics = replicationview_parse(MOCK_COMPLETED_STDOUT, MOCK_NOT_COMPLETED_STDOUT, "America/New_York")
        assert len(metrics) == 4
        conf = metrics["TEST2DB2-/TEST2CONF"]
        assert conf.duration == 19276
        assert conf.start_timestamp == 1584938729
        assert conf.end_timestamp == 1584958005
        assert conf.replicated_bytes == 167543418
        assert conf.replicated_files == 2
        assert conf.not_completed == 0

    def test_one_sided_key_has_zero_fields(self):
        """Test not completed only key has zero values."""
        metrics = replicationview_parse(MOCK_COMPLETED_STDOUT, MOCK_NOT_COMPLETED_STDOUT, "America/New_York")
        foo = metrics["FOO-/BAR"]
        assert foo.not_completed == 1
        assert foo.duration == 0
        assert foo.start_timestamp == 0
        assert foo.replicated_bytes == 0

    def test_end_before_start(self):
        """Test end before start gives zero duration."""
        out = "NODE,/FS,2020-03-23 06:06:45.000000,2020-03-23 00:45:29.000000,2,100\n"
        metrics = replicationview_parse(out, "", "UTC")
        assert metrics["NODE-/FS"].duration == 0
        assert metrics["NODE-/FS"].end_timestamp == 0
        assert metrics["NODE-/FS"].start_timestamp > 0


class TestReplicationViewCollector:
    """Test suite for ReplicationViewCollector."""

    @pytest.mark.asyncio
    async def test_collect(self, target, options, executor_factory, sample_map, logger):
        """Test replication metrics."""
        executor = executor_factory({
            build_replicationview_completed_query(target): MOCK_COMPLETED_STDOUT,
            build_replicationview_not_completed_query(target, options.clock()): MOCK_NOT_COMPLETED_STDOUT,
        })
        result = await ReplicationViewCollector(target, executor, options, logger).collect()

        samples = sample_map(result.to_metrics())
        assert samples.value("tsm_replication_duration_seconds", nodename="TEST2DB2", fsname="/TEST2CONF") == 19276
        assert samples.value("tsm_replication_replicated_bytes", nodename="TEST2DB2", fsname="/TEST4") == 1052637876956
        assert samples.value("tsm_replication_replicated_files", nodename="TEST2DB2", fsname="/TEST4") == 2
        assert samples.value("tsm_replication_not_completed", nodename="FOO", fsname="/BAR") == 1
        assert samples.value("tsm_replication_not_completed", nodename="BAR", fsname="/BAZ") == 1
        assert samples.value("tsm_replication_end_timestamp_seconds", nodename="FOO", fsname="/BAR") == 0
        assert samples.value("tsm_exporter_collect_error", collector="replicationview") == 0

    @pytest.mark.asyncio
    async def test_collect_one_query_fails(self, target, options, executor_factory, sample_map, logger):
        """Test failure of one replication query fails the collector."""
        executor = executor_factory({
            build_replicationview_completed_query(target): MOCK_COMPLETED_STDOUT,
            build_replicationview_not_completed_query(target, options.clock()): QueryError("failed"),
        })
        result = await ReplicationViewCollector(target, executor, options, logger).collect()

        samples = sample_map(result.to_metrics())
        assert samples.value("tsm_exporter_collect_error", collector="replicationview") == 1
        assert "tsm_replication_duration_seconds" not in samples.names()
