"""Pydantic models for dockerstats output.

Provides the per-container stats entry produced by each collection cycle and
the response envelope served over HTTP.
"""

from typing import Any

from pydantic import BaseModel, Field, SerializerFunctionWrapHandler, model_serializer


class StatsEntry(BaseModel):
    """Resource usage of a single container in one collection cycle.

    Parameters
    ----------
    container_id : str
        Docker container ID.
    container_name : str
        Container name as reported by the daemon.
    cpu_usage_percentage : float
        CPU utilization scaled by online CPUs (may exceed 100).
    memory_usage_in_bytes : float
        Memory usage excluding page cache.
    memory_usage_percentage : float
        Memory usage relative to limit, 0 when there is no limit.
    memory_limit_in_bytes : float
        Memory limit.
    network_rx_in_bytes : float
        Bytes received, summed over all interfaces.
    network_tx_in_bytes : float
        Bytes transmitted, summed over all interfaces.
    block_read_in_bytes : float
        Bytes read from block devices.
    block_write_in_bytes : float
        Bytes written to block devices.
    kubernetes_labels : dict[str, str]
        Kubernetes pod labels; omitted from output when empty.
    """

    container_id: str = ""
    container_name: str = ""
    cpu_usage_percentage: float = 0.0
    memory_usage_in_bytes: float = 0.0
    memory_usage_percentage: float = 0.0
    memory_limit_in_bytes: float = 0.0
    network_rx_in_bytes: float = 0.0
    network_tx_in_bytes: float = 0.0
    block_read_in_bytes: float = 0.0
    block_write_in_bytes: float = 0.0
    kubernetes_labels: dict[str, str] = Field(default_factory=dict)

    @model_serializer(mode="wrap")
    def _omit_empty_labels(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        data = handler(self)
        if not data.get("kubernetes_labels"):
            data.pop("kubernetes_labels", None)
        return data

    @classmethod
    def placeholder(cls) -> "StatsEntry":
        """Return the all-zero entry emitted for a container whose fetch failed."""
        return cls()


class StatsResponse(BaseModel):
    """Body of the ``/stats`` endpoint.

    Parameters
    ----------
    stats : list[StatsEntry] or None
        Collected entries, null when the collection failed.
    msg : str
        Error message, empty on success.
    """

    stats: list[StatsEntry] | None = None
    msg: str = ""
