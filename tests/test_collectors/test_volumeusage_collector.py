"""Tests for the volume usage collector."""

import re

import pytest

from tsm_exporter.collectors.volumeusage_collector import (
    VOLUMEUSAGE_QUERY,
    VolumeUsageCollector,
    classify_volume,
    volumeusage_parse,
)
from tsm_exporter.config.models import Target


MOCK_VOLUMEUSAGE_STDOUT = """
F00665L7,NETAPPUSER2
F00666L7,NETAPPUSER2
F00667L7,NETAPPUSER2
E00665L7,NETAPPUSER2
E00168L6,ESS2_ENC
E00170L6,ESS2_ENC
/fs/diskpool/sp02/ess/vol51,ESS2_ENC
"""

VOLUMEUSAGE_MAP = {"LTO6": "^E", "LTO7": "^F"}


def test_classify_volume():
    """Test volume classification by usage map."""
    patterns = {"B": re.compile("^F"), "A": re.compile("L7$")}
    assert classify_volume("F00665L7", patterns) == "A"
    assert classify_volume("F00665L6", patterns) == "B"
    assert classify_volume("E00665L6", patterns) is None
    assert classify_volume("E00665L6", {}) == "all"


def test_volumeusage_parse_with_map():
    """Test volume usage parsing with a usage map."""
    metrics = {m.nodename: m.volumecounts for m in volumeusage_parse(MOCK_VOLUMEUSAGE_STDOUT, VOLUMEUSAGE_MAP)}
    assert metrics == {
        "NETAPPUSER2": {"LTO7": 3, "LTO6": 1},
        "ESS2_ENC": {"LTO6": 2},
    }


def test_volumeusage_parse_without_map():
    """Test volume usage parsing without a usage map."""
    metrics = {m.nodename: m.volumecounts for m in volumeusage_parse(MOCK_VOLUMEUSAGE_STDOUT)}
    assert metrics == {"NETAPPUSER2": {"all": 4}, "ESS2_ENC": {"all": 3}}


@pytest.mark.asyncio
async def test_volumeusage_collector(options, executor_factory, sample_map, logger):
    """Test volume usage metrics."""
    target = Target(name="test", id="admin", password="secret", volumeusage_map=VOLUMEUSAGE_MAP)
    executor = executor_factory({VOLUMEUSAGE_QUERY: MOCK_VOLUMEUSAGE_STDOUT})
    result = await VolumeUsageCollector(target, executor, options, logger).collect()

    samples = sample_map(result.to_metrics())
    assert samples.value("tsm_volume_usage", nodename="ESS2_ENC", volumename="LTO6") == 2
    assert samples.value("tsm_volume_usage", nodename="NETAPPUSER2", volumename="LTO6") == 1
    assert samples.value("tsm_volume_usage", nodename="NETAPPUSER2", volumename="LTO7") == 3
    assert samples.value("tsm_exporter_collect_error", collector="volumeusage") == 0
