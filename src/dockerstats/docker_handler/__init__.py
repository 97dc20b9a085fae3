"""Docker runtime handle with connection management and error handling."""

from .client import DockerRuntime, RuntimeHandle
from .exceptions import (
    ConfigurationError,
    ContainerError,
    ContainerNotFoundError,
    DockerHandlerError,
    EventStreamClosedError,
    EventStreamError,
)

__all__ = [
    "DockerRuntime",
    "RuntimeHandle",
    "DockerHandlerError",
    "ContainerError",
    "ContainerNotFoundError",
    "ConfigurationError",
    "EventStreamError",
    "EventStreamClosedError",
]
