"""Exception hierarchy for the TSM exporter."""


class TSMExporterError(Exception):
    """Base class for all exporter errors."""


class QueryError(TSMExporterError):
    """dsmadmc could not be executed or exited with a failure."""

    def __init__(self, message: str, returncode: int = None, stderr: str = "", stdout: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr
        self.stdout = stdout


class QueryTimeoutError(QueryError):
    """dsmadmc did not finish before its deadline."""


class ParseError(TSMExporterError):
    """Query output could not be decoded or a value could not be parsed."""


class ConfigError(TSMExporterError):
    """Configuration file is missing or invalid."""
