"""Tests for the HTTP endpoints."""

import pytest
from fastapi.testclient import TestClient
from prometheus_client.parser import text_string_to_metric_families

from tsm_exporter.api import create_app
from tsm_exporter.collectors.db_collector import build_db_query
from tsm_exporter.config.loader import ConfigLoader
from tsm_exporter.config.models import CollectorOptions
from tsm_exporter.exceptions import QueryTimeoutError


MOCK_DB_STDOUT = """
88.6,TSMDB1,3092796,1453663,2020-05-22 08:10:00.000000,98.3,0,11607707032,28836868,2096672,28836092,642976,25743296
"""


def parse_exposition(text):
    """Map (sample name, sorted labels) to value for an exposition body."""
    samples = {}
    for family in text_string_to_metric_families(text):
        for sample in family.samples:
            samples[(sample.name, tuple(sorted(sample.labels.items())))] = sample.value
    return samples


@pytest.fixture
def config():
    return ConfigLoader.load_from_dict({
        "targets": {
            "test": {"id": "admin", "password": "secret", "collectors": ["db"], "timezone": "UTC"},
        }
    })


def make_client(config, executor, logger):
    return TestClient(create_app(config, executor, options=CollectorOptions(), logger=logger))


class TestTSMEndpoint:
    """Test suite for /tsm."""

    def test_missing_target(self, config, executor_factory, logger):
        """Test scrape without target parameter returns 400."""
        response = make_client(config, executor_factory(), logger).get("/tsm")
        assert response.status_code == 400
        assert response.text == "'target' parameter must be specified"

    def test_unknown_target(self, config, executor_factory, logger):
        """Test scrape of an unconfigured target returns 404."""
        response = make_client(config, executor_factory(), logger).get("/tsm", params={"target": "dne"})
        assert response.status_code == 404
        assert response.text == "Unknown target dne"

    def test_db_scrape(self, config, executor_factory, logger):
        """Test scrape with only the db collector enabled."""
        executor = executor_factory({build_db_query(): MOCK_DB_STDOUT})
        response = make_client(config, executor, logger).get("/tsm", params={"target": "test"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        samples = parse_exposition(response.text)
        assert samples[("tsm_db_buffer_hit_ratio", (("dbname", "TSMDB1"),))] == pytest.approx(0.886)
        assert samples[("tsm_db_pkg_hit_ratio", (("dbname", "TSMDB1"),))] == pytest.approx(0.983)
        assert samples[("tsm_exporter_collect_error", (("collector", "db"),))] == 0
        assert samples[("tsm_exporter_collect_timeout", (("collector", "db"),))] == 0
        assert executor.queries == [build_db_query()]

    def test_timeout_scrape(self, config, executor_factory, logger):
        """Test a timed out collector reports only its outcome gauges."""
        executor = executor_factory(default=QueryTimeoutError("timed out"))
        response = make_client(config, executor, logger).get("/tsm", params={"target": "test"})

        assert response.status_code == 200
        samples = parse_exposition(response.text)
        assert samples[("tsm_exporter_collect_timeout", (("collector", "db"),))] == 1
        assert samples[("tsm_exporter_collect_error", (("collector", "db"),))] == 0
        assert not any(name.startswith("tsm_db_") for name, _ in samples)

    def test_all_default_collectors(self, executor_factory, logger):
        """Test scrape runs every default collector."""
        config = ConfigLoader.load_from_dict({"targets": {"test": {"id": "admin", "password": "secret"}}})
        response = make_client(config, executor_factory(), logger).get("/tsm", params={"target": "test"})

        assert response.status_code == 200
        samples = parse_exposition(response.text)
        collectors = {dict(labels)["collector"] for name, labels in samples if name == "tsm_exporter_collect_error"}
        assert len(collectors) == 12
        assert all(
            value == 0 for (name, _), value in samples.items() if name == "tsm_exporter_collect_error"
        )

    def test_repeated_collector_runs_once(self, executor_factory, logger):
        """Test a collector listed twice for a target is scraped once."""
        config = ConfigLoader.load_from_dict({
            "targets": {"test": {"id": "admin", "password": "secret", "collectors": ["log", "log"]}}
        })
        executor = executor_factory()
        response = make_client(config, executor, logger).get("/tsm", params={"target": "test"})

        assert response.status_code == 200
        lines = [line for line in response.text.splitlines() if line.startswith("tsm_exporter_collect_error{")]
        assert lines == ['tsm_exporter_collect_error{collector="log"} 0.0']
        assert len(executor.queries) == 1


def test_landing_page(config, executor_factory, logger):
    """Test landing page links to the metrics path."""
    response = make_client(config, executor_factory(), logger).get("/")
    assert response.status_code == 200
    assert '<a href="/tsm">' in response.text
    assert '<a href="/metrics">' in response.text


def test_exporter_metrics(config, executor_factory, logger):
    """Test exporter's own metrics endpoint."""
    response = make_client(config, executor_factory(), logger).get("/metrics")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
