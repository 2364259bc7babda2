"""Shared pytest configuration and fixtures."""

from datetime import datetime

import pytest

from tsm_exporter.config.models import CollectorOptions, Target
from tsm_exporter.utils.logger import setup_logger


MOCK_NOW = datetime(2020, 7, 2, 13, 0, 0)


class FakeExecutor:
    """Query executor returning canned output keyed by query text."""

    def __init__(self, outputs=None, default=""):
        self.outputs = outputs or {}
        self.default = default
        self.queries = []

    async def query(self, target, query, timeout):
        self.queries.append(query)
        result = self.outputs.get(query, self.default)
        if isinstance(result, BaseException):
            raise result
        return result


class Samples(dict):
    """Samples of metric families keyed by (sample name, sorted labels)."""

    def __init__(self, families):
        super().__init__()
        for family in families:
            for sample in family.samples:
                self[(sample.name, tuple(sorted(sample.labels.items())))] = sample.value

    def value(self, name, **labels):
        return self.get((name, tuple(sorted(labels.items()))))

    def names(self):
        return {name for name, _ in self}


@pytest.fixture
def logger():
    """Create logger for tests."""
    return setup_logger("test", "DEBUG")


@pytest.fixture
def target():
    """A target with no optional settings."""
    return Target(name="test", servername="test", id="admin", password="secret")


@pytest.fixture
def options():
    """Collector options with a fixed clock and server time zone."""
    return CollectorOptions(clock=lambda: MOCK_NOW, timezone="America/New_York")


@pytest.fixture
def sample_map():
    return Samples


@pytest.fixture
def executor_factory():
    """Build a FakeExecutor from a query -> output mapping."""
    return FakeExecutor
