"""Base collector abstract class for all TSM collectors."""

from abc import ABC, abstractmethod
from datetime import datetime
from functools import wraps
from typing import List, Optional, Protocol
import asyncio
import logging
import re
import time

from prometheus_client.metrics_core import Metric

from ..config.models import CollectorOptions, Target
from ..exceptions import QueryTimeoutError, TSMExporterError
from ..utils.metrics import CollectorResult
from ..utils.parsing import parse_time
from ..utils.status import CollectionOutcome


class QueryExecutor(Protocol):
    """Anything able to run a dsmadmc query for a target."""

    async def query(self, target: Target, query: str, timeout: float) -> str:
        ...


def safe_collect(func):
    """
    Decorator turning a metrics coroutine into a CollectorResult.

    Timeouts become a TIMEOUT outcome, query and parse failures an ERROR
    outcome. Failed runs carry no domain metrics.

    Args:
        func: Collector coroutine returning a list of metric families

    Returns:
        Wrapped coroutine returning CollectorResult
    """
    @wraps(func)
    async def wrapper(self, *args, **kwargs) -> CollectorResult:
        self.logger.debug("Collecting metrics", extra=self.log_context())
        start = time.monotonic()
        outcome = CollectionOutcome.SUCCESS
        metrics: List[Metric] = []
        error = None
        try:
            metrics = await func(self, *args, **kwargs)
        except QueryTimeoutError as e:
            self.logger.error("Timeout executing dsmadmc", extra=self.log_context())
            outcome = CollectionOutcome.TIMEOUT
            error = str(e)
        except TSMExporterError as e:
            self.logger.error(f"Collection failed: {e}", extra=self.log_context())
            outcome = CollectionOutcome.ERROR
            error = str(e)
        except Exception as e:
            self.logger.error(f"Collection failed: {e}", exc_info=True, extra=self.log_context())
            outcome = CollectionOutcome.ERROR
            error = str(e)
        return CollectorResult(
            collector_name=self.name,
            target_name=self.target.name,
            outcome=outcome,
            metrics=metrics,
            duration=time.monotonic() - start,
            error=error
        )
    return wrapper


class BaseCollector(ABC):
    """Abstract base class for all collectors."""

    name: str = ""

    def __init__(
        self,
        target: Target,
        executor: QueryExecutor,
        options: Optional[CollectorOptions] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize base collector.

        Args:
            target: Target being collected
            executor: Query executor used for dsmadmc calls
            options: Process-wide collector options
            logger: Logger instance
        """
        self.target = target
        self.executor = executor
        self.options = options or CollectorOptions()
        logger = logger or logging.getLogger("tsm_exporter")
        self.logger = logger.getChild(self.__class__.__name__)

    @safe_collect
    async def collect(self) -> List[Metric]:
        """Run collect_metrics and wrap it in a CollectorResult."""
        return await self.collect_metrics()

    @abstractmethod
    async def collect_metrics(self) -> List[Metric]:
        """
        Query the target and build this collector's metric families.

        Returns:
            List[Metric]: Domain metric families

        Raises:
            QueryTimeoutError: A dsmadmc call exceeded its deadline
            QueryError: A dsmadmc call failed
            ParseError: Output could not be decoded or parsed
        """

    @property
    def timeout(self) -> float:
        return self.options.timeout_for(self.name)

    @property
    def timezone(self) -> Optional[str]:
        """Time zone for naive server timestamps: target, then process default."""
        return self.target.timezone or self.options.timezone

    def now(self) -> datetime:
        return self.options.clock()

    async def query(self, query: str) -> str:
        """Run one dsmadmc query against this collector's target."""
        return await self.executor.query(self.target, query, self.timeout)

    async def query_pair(self, first: str, second: str) -> List[str]:
        """
        Run two independent queries concurrently.

        Both must succeed; the first failure is raised once both finish.
        """
        results = await asyncio.gather(self.query(first), self.query(second), return_exceptions=True)
        for result in results:
            if isinstance(result, BaseException):
                raise result
        return list(results)

    def parse_time(self, value: str) -> datetime:
        return parse_time(value, self.timezone)

    @staticmethod
    def compile_optional(pattern: Optional[str]) -> Optional[re.Pattern]:
        return re.compile(pattern) if pattern else None

    def log_context(self) -> dict:
        return {"collector": self.name, "target": self.target.name}
