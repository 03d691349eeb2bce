#!filepath: virality/observability/metrics.py
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List

from virality import logs


@dataclass
class MetricRecorder:
    """
    Latest value per metric name, plus every value recorded under it.
    """

    enabled: bool = True
    metrics: Dict[str, Any] = field(default_factory=dict)
    series: Dict[str, List[Any]] = field(default_factory=dict)

    def __post_init__(self):
        self._lock = threading.Lock()

    def record(self, name: str, value: Any):
        if not self.enabled:
            return
        with self._lock:
            self.metrics[name] = value
            self.series.setdefault(name, []).append(value)
        logs.debug(f"[Metric] {name} = {value}")

    def latest(self, name: str, default: Any = None) -> Any:
        with self._lock:
            return self.metrics.get(name, default)
