"""dockerstats - live Docker container resource usage over HTTP."""

from dockerstats.common.config import Settings, load_config
from dockerstats.exporter import Exporter
from dockerstats.labels import KUBERNETES_LABELS, LabelEnricher
from dockerstats.models import StatsEntry, StatsResponse
from dockerstats.watcher import Watcher

__version__ = "0.1.0"

__all__ = [
    # Config
    "Settings",
    "load_config",
    # Collection
    "Exporter",
    "LabelEnricher",
    "Watcher",
    "KUBERNETES_LABELS",
    # Models
    "StatsEntry",
    "StatsResponse",
]
