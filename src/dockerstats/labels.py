"""Kubernetes label enrichment for stats entries.

Kubernetes (through dockershim or cri-dockerd) stamps pod identity onto the
Docker containers it creates. Only those labels are kept, under stable names.
"""

import asyncio
import logging
from collections.abc import Mapping

from dockerstats.docker_handler import DockerHandlerError, RuntimeHandle

logger = logging.getLogger(__name__)

KUBERNETES_LABELS: dict[str, str] = {
    "io.kubernetes.pod.namespace": "kubernetes_pod_namespace",
    "io.kubernetes.pod.name": "kubernetes_pod_name",
    "io.kubernetes.container.name": "kubernetes_container_name",
}


def project_labels(labels: Mapping[str, str] | None) -> dict[str, str]:
    """Keep recognised Kubernetes labels under their output names; drop the rest."""
    if not labels:
        return {}
    return {
        KUBERNETES_LABELS[key]: value for key, value in labels.items() if key in KUBERNETES_LABELS
    }


class LabelEnricher:
    """Fetches container labels through the shared runtime handle.

    Parameters
    ----------
    handle : RuntimeHandle
        Shared Docker runtime handle.
    retry_delay_seconds : float
        Pause after rebuilding the runtime on a failed inspect (default: 0.2).
    """

    def __init__(self, handle: RuntimeHandle, retry_delay_seconds: float = 0.2):
        self.handle = handle
        self.retry_delay = retry_delay_seconds

    async def get_labels(self, container_id: str) -> dict[str, str]:
        """Return the projected Kubernetes labels of a container.

        An inspect failure rebuilds the runtime handle and yields no labels;
        it is never raised to the caller.
        """
        runtime = self.handle.current
        try:
            info = await runtime.inspect(container_id)
        except DockerHandlerError as e:
            try:
                self.handle.reconnect(failed=runtime)
            except DockerHandlerError as rebuild_error:
                logger.warning(f"Failed to rebuild Docker runtime: {rebuild_error}")
            await asyncio.sleep(self.retry_delay)
            logger.warning(f"Failed to inspect container {container_id[:12]}: {e}")
            return {}

        config = info.get("Config") or {}
        return project_labels(config.get("Labels"))
