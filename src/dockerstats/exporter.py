"""Collection engine for live Docker container stats.

Each ``Exporter.list()`` call fans out one task per running container,
fetches a single stats snapshot, derives the metrics, attaches Kubernetes
labels and gathers the entries into one batch.
"""

import asyncio
import logging
from contextlib import AbstractAsyncContextManager, nullcontext
from typing import Any

from dockerstats.common.config import Settings
from dockerstats.common.exceptions import StatsParseError
from dockerstats.docker_handler import DockerHandlerError, DockerRuntime, RuntimeHandle
from dockerstats.labels import LabelEnricher
from dockerstats.metrics import parse_stats
from dockerstats.models import StatsEntry
from dockerstats.watcher import Watcher

logger = logging.getLogger(__name__)


class Exporter:
    """Collects stats for every running container.

    Must be constructed inside a running event loop: the Docker runtime is
    created eagerly.

    Parameters
    ----------
    settings : Settings, optional
        Collector configuration (default: loaded from the environment).
    handle : RuntimeHandle, optional
        Pre-built runtime handle; built from ``settings`` when omitted.

    Examples
    --------
    >>> async def example():
    ...     exporter = Exporter()
    ...     entries = await exporter.list()
    ...     await exporter.close()
    ...     return len(entries)
    >>> asyncio.run(example())
    3
    """

    def __init__(self, settings: Settings | None = None, handle: RuntimeHandle | None = None):
        self.settings = settings or Settings()
        collector = self.settings.collector

        self.handle = handle or RuntimeHandle(
            self._new_runtime,
            close_grace_seconds=collector.handle_close_grace_seconds,
        )
        self.labels = LabelEnricher(
            self.handle, retry_delay_seconds=collector.label_retry_delay_seconds
        )
        self.watcher = Watcher(
            self.handle,
            backoff_seconds=collector.reconnect_backoff_seconds,
            resubscribe_delay_seconds=collector.resubscribe_delay_seconds,
        )
        self.max_concurrency = collector.max_concurrency

    def _new_runtime(self) -> DockerRuntime:
        docker = self.settings.docker
        return DockerRuntime(
            docker_url=docker.docker_host,
            api_version=docker.docker_api_version,
            timeout=docker.docker_timeout_seconds,
        )

    async def list(self) -> list[StatsEntry]:
        """Collect one stats entry per running container.

        Returns
        -------
        list[StatsEntry]
            One entry per container listed at the start of the call, in
            completion order. Containers whose stats could not be fetched or
            parsed are represented by a placeholder entry.

        Raises
        ------
        ContainerError
            If the running containers cannot be listed.
        """
        containers = await self.handle.current.list_running_containers()
        if not containers:
            return []

        stats: list[StatsEntry] = []
        limiter = self._limiter()

        async def collect(container: dict[str, Any]) -> None:
            async with limiter:
                stats.append(await self._collect_one(container["Id"]))

        await asyncio.gather(*(collect(container) for container in containers))
        return stats

    def _limiter(self) -> AbstractAsyncContextManager[Any]:
        if self.max_concurrency:
            return asyncio.Semaphore(self.max_concurrency)
        return nullcontext()

    async def _collect_one(self, container_id: str) -> StatsEntry:
        try:
            raw, os_type = await self.handle.current.get_stats(container_id)
            entry = parse_stats(raw, os_type)
        except (DockerHandlerError, StatsParseError) as e:
            logger.warning(f"Failed to get stats for {container_id[:12]}: {e}")
            return StatsEntry.placeholder()

        entry.kubernetes_labels = await self.labels.get_labels(entry.container_id or container_id)
        return entry

    async def watch(self) -> None:
        """Run the reconnection watcher; returns only once it is stopped."""
        await self.watcher.run()

    async def close(self) -> None:
        self.watcher.stop()
        await self.handle.close()
