"""Custom exceptions for the Docker runtime handle."""

from typing import Any


class DockerHandlerError(Exception):
    """Base exception for all Docker handler errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


# Container operation errors
class ContainerError(DockerHandlerError):
    """Base exception for container-related errors."""

    pass


# Configuration errors
class ConfigurationError(DockerHandlerError):
    """Raised when the daemon cannot be reached with the given settings."""

    pass


class ContainerNotFoundError(ContainerError):
    """Raised when a container cannot be found."""

    pass


class EventStreamError(DockerHandlerError):
    """Raised when the daemon event stream fails before it is drained."""

    pass


class EventStreamClosedError(EventStreamError):
    """Raised when the daemon closes the event stream mid-read."""

    pass
