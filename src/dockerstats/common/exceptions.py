"""
Custom exceptions for the dockerstats collector.

This module defines the errors raised outside the Docker handler itself:
- Stats documents that cannot be turned into an entry
- Collection cycles that cannot start

All exceptions follow the pattern from docker_handler.exceptions with
message and optional details dict for structured error information.
"""

from typing import Any


class DockerStatsError(Exception):
    """
    Base exception for all dockerstats errors.

    Parameters
    ----------
    message : str
        Human-readable error message
    details : dict[str, Any], optional
        Structured error details for logging/debugging

    Examples
    --------
    >>> error = DockerStatsError("Collector error", details={"component": "exporter"})
    >>> error.message
    'Collector error'
    >>> error.details["component"]
    'exporter'
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class StatsParseError(DockerStatsError):
    """
    Raised when a raw stats document cannot be converted.

    Examples include:
    - Missing or non-numeric counters
    - A body that is not a JSON object
    """

    pass
