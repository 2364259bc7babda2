"""Collection outcome enumeration."""

from enum import Enum


class CollectionOutcome(Enum):
    """Result classification of one collector run."""

    SUCCESS = "success"
    ERROR = "error"
    TIMEOUT = "timeout"

    @property
    def error_value(self) -> float:
        """Value of the collect_error gauge for this outcome."""
        return 1.0 if self is CollectionOutcome.ERROR else 0.0

    @property
    def timeout_value(self) -> float:
        """Value of the collect_timeout gauge for this outcome."""
        return 1.0 if self is CollectionOutcome.TIMEOUT else 0.0
