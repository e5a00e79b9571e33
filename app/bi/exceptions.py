"""Errors raised by the BI report engine."""

from typing import Optional


class ReportEngineError(Exception):
    """Base class for report engine errors."""


class ReportConfigurationError(ReportEngineError):
    """The report cannot run as configured; no fetch was attempted."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field


class ReportFetchError(ReportEngineError):
    """A table fetch failed; the whole run is reported as failed."""

    def __init__(self, table: str, cause: Optional[BaseException] = None):
        message = f"Failed to fetch rows from table '{table}'"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.table = table
        self.cause = cause


class UnknownTableError(ReportEngineError, KeyError):
    """A selected field references a table missing from the catalog."""

    def __init__(self, table: str):
        super().__init__(f"Table '{table}' is not in the field catalog")
        self.table = table

    def __str__(self) -> str:
        return self.args[0]
