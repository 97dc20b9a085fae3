"""Metric derivation for raw Docker stats documents.

Every function here is pure: it reads one stats document as returned by
``GET /containers/{id}/stats?stream=false`` (which carries both the current
and the previous CPU sample) and returns plain numbers.
"""

from typing import Any

from dockerstats.common.exceptions import StatsParseError
from dockerstats.models import StatsEntry

WINDOWS_OS_TYPE = "windows"


def calculate_cpu_percent(stats: dict[str, Any]) -> float:
    """Calculate CPU percentage from Docker stats.

    Uses the formula from Docker CLI:
    cpu_percent = (delta_container / delta_system) * online_cpus * 100

    The result is 0 unless both deltas are strictly positive, which is the
    case on a first sample or when counters stall. It is not capped at 100.
    """
    cpu_stats = stats.get("cpu_stats") or {}
    precpu_stats = stats.get("precpu_stats") or {}

    cpu_usage = cpu_stats.get("cpu_usage") or {}
    precpu_usage = precpu_stats.get("cpu_usage") or {}

    cpu_delta = float(cpu_usage.get("total_usage", 0)) - float(
        precpu_usage.get("total_usage", 0)
    )
    system_delta = float(cpu_stats.get("system_cpu_usage", 0)) - float(
        precpu_stats.get("system_cpu_usage", 0)
    )

    online_cpus = float(cpu_stats.get("online_cpus") or 0)
    if online_cpus == 0.0:
        online_cpus = float(len(cpu_usage.get("percpu_usage") or []))

    if system_delta > 0.0 and cpu_delta > 0.0:
        return (cpu_delta / system_delta) * online_cpus * 100.0
    return 0.0


def calculate_block_io(stats: dict[str, Any]) -> tuple[float, float]:
    """Sum block I/O service bytes into (read, write).

    Entries are classified by the first letter of their ``op``; entries with
    an empty op are skipped.
    """
    blkio = stats.get("blkio_stats") or {}
    entries = blkio.get("io_service_bytes_recursive") or []

    read_bytes = 0
    write_bytes = 0
    for entry in entries:
        op = entry.get("op") or ""
        if not op:
            continue
        if op[0] in ("r", "R"):
            read_bytes += entry.get("value", 0)
        elif op[0] in ("w", "W"):
            write_bytes += entry.get("value", 0)

    return float(read_bytes), float(write_bytes)


def calculate_network(stats: dict[str, Any]) -> tuple[float, float]:
    """Calculate total network bytes (rx, tx) from all interfaces."""
    networks = stats.get("networks") or {}
    rx_bytes = 0.0
    tx_bytes = 0.0

    for iface_stats in networks.values():
        rx_bytes += float(iface_stats.get("rx_bytes", 0))
        tx_bytes += float(iface_stats.get("tx_bytes", 0))

    return rx_bytes, tx_bytes


def calculate_memory_usage_no_cache(stats: dict[str, Any]) -> float:
    """Memory usage minus page cache; cache counts as 0 when not reported."""
    memory_stats = stats.get("memory_stats") or {}
    usage = memory_stats.get("usage", 0)
    cache = (memory_stats.get("stats") or {}).get("cache", 0)
    return float(usage - cache)


def calculate_memory_percent(limit: float, used_no_cache: float) -> float:
    """Memory usage relative to limit; 0 when the limit is 0."""
    if limit != 0:
        return used_no_cache / limit * 100.0
    return 0.0


def parse_stats(stats: dict[str, Any], os_type: str = "") -> StatsEntry:
    """Build a stats entry from one raw stats document.

    Parameters
    ----------
    stats : dict
        Raw stats from the Docker API.
    os_type : str
        OS type reported by the daemon alongside the stats. CPU, memory and
        block I/O counters are left at 0 on Windows.

    Returns
    -------
    StatsEntry
        Derived entry without Kubernetes labels.

    Raises
    ------
    StatsParseError
        If the document is not a mapping or holds non-numeric counters.
    """
    if not isinstance(stats, dict):
        raise StatsParseError(
            "Stats document is not a JSON object",
            details={"type": type(stats).__name__},
        )

    try:
        cpu_percent = 0.0
        memory = 0.0
        memory_limit = 0.0
        memory_percent = 0.0
        block_read = 0.0
        block_write = 0.0

        if os_type.lower() != WINDOWS_OS_TYPE:
            cpu_percent = calculate_cpu_percent(stats)
            block_read, block_write = calculate_block_io(stats)
            memory = calculate_memory_usage_no_cache(stats)
            memory_limit = float((stats.get("memory_stats") or {}).get("limit", 0))
            memory_percent = calculate_memory_percent(memory_limit, memory)

        network_rx, network_tx = calculate_network(stats)

        return StatsEntry(
            container_id=stats.get("id") or "",
            container_name=stats.get("name") or "",
            cpu_usage_percentage=cpu_percent,
            memory_usage_in_bytes=memory,
            memory_usage_percentage=memory_percent,
            memory_limit_in_bytes=memory_limit,
            network_rx_in_bytes=network_rx,
            network_tx_in_bytes=network_tx,
            block_read_in_bytes=block_read,
            block_write_in_bytes=block_write,
        )
    except (AttributeError, TypeError, ValueError) as e:
        raise StatsParseError(
            f"Malformed stats document: {e}",
            details={"container_id": stats.get("id", ""), "error": str(e)},
        ) from e
