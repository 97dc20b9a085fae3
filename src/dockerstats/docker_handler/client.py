"""
Async Docker runtime handle for dockerstats.

This module provides the connection to the Docker daemon used by the
collection engine. It exposes:
- A thin async wrapper over aiodocker for the four daemon calls the
  collector needs (list, stats, inspect, events)
- A process-wide handle that swaps the wrapper wholesale when the
  connection has to be rebuilt

Readers always go through ``RuntimeHandle.current`` and never keep a
runtime across collection cycles.
"""

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Callable
from typing import Any

import aiodocker
from aiodocker.exceptions import DockerError
from aiohttp import ClientError, ClientPayloadError, ClientTimeout, ServerDisconnectedError

from .exceptions import (
    ConfigurationError,
    ContainerError,
    ContainerNotFoundError,
    EventStreamClosedError,
    EventStreamError,
)

logger = logging.getLogger(__name__)

DEFAULT_DOCKER_URL = "unix:///var/run/docker.sock"
DEFAULT_API_VERSION = "1.39"

CONTAINER_EVENTS_FILTER = {"type": ["container"]}


class DockerRuntime:
    """
    Async wrapper around aiodocker for stats collection.

    Parameters
    ----------
    docker_url : str, optional
        Docker daemon URL (default: unix:///var/run/docker.sock)
    api_version : str, optional
        Docker API version to pin (default: 1.39)
    timeout : float, optional
        Timeout for request/response calls in seconds (default: 10).
        The event stream is never subject to it.

    Examples
    --------
    >>> async def example():
    ...     runtime = DockerRuntime()
    ...     containers = await runtime.list_running_containers()
    ...     await runtime.close()
    ...     return len(containers)
    >>> asyncio.run(example())
    3
    """

    def __init__(
        self,
        docker_url: str = DEFAULT_DOCKER_URL,
        api_version: str = DEFAULT_API_VERSION,
        timeout: float = 10.0,
    ):
        self.docker_url = docker_url
        self.api_version = api_version
        self.timeout = timeout
        try:
            self._client: aiodocker.Docker | None = aiodocker.Docker(
                url=docker_url, api_version=_versioned(api_version)
            )
        except (ValueError, OSError, DockerError) as e:
            logger.error(f"Failed to create Docker client for {docker_url}: {e}")
            raise ConfigurationError(
                f"Cannot create Docker client for {docker_url}",
                details={"url": docker_url, "error": str(e)},
            ) from e
        logger.debug(f"Created Docker runtime for {docker_url} (API {api_version})")

    @property
    def client(self) -> aiodocker.Docker:
        """
        Get the underlying aiodocker client.

        Raises
        ------
        ConfigurationError
            If the runtime has been closed
        """
        if self._client is None:
            raise ConfigurationError(
                "Docker runtime is closed",
                details={"url": self.docker_url},
            )
        return self._client

    @property
    def closed(self) -> bool:
        return self._client is None

    async def close(self) -> None:
        """Close the daemon session. Safe to call more than once."""
        if self._client:
            client, self._client = self._client, None
            await client.close()
            logger.debug(f"Closed Docker runtime for {self.docker_url}")

    async def list_running_containers(self) -> list[dict[str, Any]]:
        """
        List running containers.

        Returns
        -------
        list[dict[str, Any]]
            Raw listing entries (``Id``, ``Names``, ...)

        Raises
        ------
        ContainerError
            If the daemon cannot be queried
        """
        try:
            # GET /containers/json only reports running containers by default
            return await self.client._query_json(
                "containers/json", method="GET", timeout=self._request_timeout()
            )
        except (DockerError, ClientError, asyncio.TimeoutError) as e:
            raise ContainerError(
                "Failed to list containers",
                details={"error": str(e)},
            ) from e

    async def get_stats(self, container_id: str) -> tuple[dict[str, Any], str]:
        """
        Get one non-streaming stats snapshot for a container.

        Parameters
        ----------
        container_id : str
            Container ID or name

        Returns
        -------
        tuple[dict[str, Any], str]
            Raw stats document and the daemon's reported OS type

        Raises
        ------
        ContainerNotFoundError
            If the container doesn't exist
        ContainerError
            If the stats call fails
        """
        try:
            # The OS type only travels in the response headers
            async with self.client._query(
                f"containers/{container_id}/stats",
                method="GET",
                params={"stream": "false"},
                timeout=self._request_timeout(),
            ) as response:
                os_type = response.headers.get("Ostype", "")
                stats = await response.json()
            return stats, os_type
        except DockerError as e:
            if e.status == 404:
                raise ContainerNotFoundError(
                    f"Container not found: {container_id}",
                    details={"container_id": container_id},
                ) from e
            raise ContainerError(
                f"Failed to get stats for container: {container_id}",
                details={"container_id": container_id, "error": str(e)},
            ) from e
        except (ClientError, asyncio.TimeoutError, ValueError) as e:
            raise ContainerError(
                f"Failed to get stats for container: {container_id}",
                details={"container_id": container_id, "error": str(e)},
            ) from e

    async def inspect(self, container_id: str) -> dict[str, Any]:
        """
        Inspect a container.

        Raises
        ------
        ContainerNotFoundError
            If the container doesn't exist
        ContainerError
            If the inspect call fails
        """
        try:
            return await self.client._query_json(
                f"containers/{container_id}/json",
                method="GET",
                timeout=self._request_timeout(),
            )
        except DockerError as e:
            if e.status == 404:
                raise ContainerNotFoundError(
                    f"Container not found: {container_id}",
                    details={"container_id": container_id},
                ) from e
            raise ContainerError(
                f"Failed to inspect container: {container_id}",
                details={"container_id": container_id, "error": str(e)},
            ) from e
        except (ClientError, asyncio.TimeoutError) as e:
            raise ContainerError(
                f"Failed to inspect container: {container_id}",
                details={"container_id": container_id, "error": str(e)},
            ) from e

    async def subscribe_events(
        self, filters: dict[str, list[str]] | None = None
    ) -> AsyncIterator[dict[str, Any]]:
        """
        Subscribe to the daemon event stream.

        Parameters
        ----------
        filters : dict[str, list[str]], optional
            Event filters (default: container events only)

        Yields
        ------
        dict[str, Any]
            Decoded events

        Raises
        ------
        EventStreamClosedError
            If the connection drops mid-stream
        EventStreamError
            If the subscription cannot be established
        """
        params = {"filters": json.dumps(filters or CONTAINER_EVENTS_FILTER)}
        try:
            async with self.client._query(
                "events",
                method="GET",
                params=params,
                timeout=ClientTimeout(total=None, sock_read=None),
            ) as response:
                async for line in response.content:
                    line = line.strip()
                    if line:
                        yield json.loads(line)
        except (ClientPayloadError, ServerDisconnectedError, asyncio.IncompleteReadError) as e:
            raise EventStreamClosedError(
                "Docker event stream closed unexpectedly",
                details={"url": self.docker_url, "error": str(e)},
            ) from e
        except (DockerError, ClientError, ValueError) as e:
            raise EventStreamError(
                "Docker event stream failed",
                details={"url": self.docker_url, "error": str(e)},
            ) from e

    def _request_timeout(self) -> ClientTimeout:
        return ClientTimeout(total=self.timeout)


def _versioned(api_version: str) -> str:
    if api_version == "auto" or api_version.startswith("v"):
        return api_version
    return f"v{api_version}"


class RuntimeHandle:
    """
    Process-wide reference to the current Docker runtime.

    The reference is replaced wholesale on reconnect; it is never mutated in
    place. Retired runtimes are closed after a grace period so collections
    that already hold them can finish.

    Parameters
    ----------
    factory : Callable[[], DockerRuntime]
        Builds a fresh runtime; called once here and once per reconnect
    close_grace_seconds : float, optional
        Delay before a retired runtime is closed (default: 5.0)
    """

    def __init__(
        self,
        factory: Callable[[], DockerRuntime],
        close_grace_seconds: float = 5.0,
    ):
        self._factory = factory
        self.close_grace_seconds = close_grace_seconds
        self._runtime = factory()
        self._generation = 0
        self._retired: dict[DockerRuntime, asyncio.Task] = {}

    @property
    def current(self) -> DockerRuntime:
        """Get the runtime readers should use right now."""
        return self._runtime

    @property
    def generation(self) -> int:
        """Number of reconnects performed so far."""
        return self._generation

    def reconnect(self, failed: DockerRuntime | None = None) -> DockerRuntime:
        """
        Replace the current runtime with a freshly built one.

        Parameters
        ----------
        failed : DockerRuntime, optional
            The runtime the caller saw fail. When another caller has already
            replaced it, the current runtime is returned unchanged.

        Returns
        -------
        DockerRuntime
            The runtime now in place
        """
        if failed is not None and failed is not self._runtime:
            return self._runtime

        new_runtime = self._factory()
        old_runtime, self._runtime = self._runtime, new_runtime
        self._generation += 1
        logger.info(f"Rebuilt Docker runtime (generation {self._generation})")

        self._retired[old_runtime] = asyncio.get_running_loop().create_task(
            self._close_later(old_runtime)
        )
        return new_runtime

    async def _close_later(self, runtime: DockerRuntime) -> None:
        try:
            await asyncio.sleep(self.close_grace_seconds)
            await runtime.close()
        except (DockerError, ClientError, OSError) as e:
            logger.warning(f"Error closing retired Docker runtime: {e}")
        finally:
            self._retired.pop(runtime, None)

    async def close(self) -> None:
        """Close the current runtime and any retired ones still pending."""
        for runtime, task in list(self._retired.items()):
            task.cancel()
            await runtime.close()
        self._retired.clear()
        await self._runtime.close()
