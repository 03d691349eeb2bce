#!filepath: virality/observability/instrumentation.py
from __future__ import annotations

from dataclasses import dataclass
from contextlib import contextmanager
from collections import OrderedDict
from typing import Dict

from virality.observability.progress import ProgressReporter
from virality.observability.timer import Timer
from virality.observability.metrics import MetricRecorder
from virality import logs


@dataclass
class Instrumentation:
    """
    Instrumentation（Leaf-only accounting + Parent scope）

    Rules:
    1. timeline only records leaf timers (record=True)
    2. step / parent timers only bound wall-time (record=False)
    3. instrumentation never logs on the hot path
    """

    enabled: bool = True

    def __post_init__(self):
        self.progress = ProgressReporter(enabled=self.enabled)
        self._timer = Timer(enabled=self.enabled)
        self.metrics = MetricRecorder(enabled=self.enabled)

        # timeline: OrderedDict[leaf_name, elapsed_seconds]
        self.timeline: Dict[str, float] = OrderedDict()

    def timer(self, name: str, *, record: bool = True):
        """
        Context-manager timer.

        record=True  : leaf node, written to timeline
        record=False : parent scope, no side effects
        """
        inst = self

        @contextmanager
        def _ctx():
            if not inst.enabled:
                yield
                return

            inst._timer.start(name)
            try:
                yield
            finally:
                elapsed = inst._timer.end(name)
                if record:
                    inst.timeline[name] = elapsed

        return _ctx()

    def report_timeline(self, title: str) -> None:
        if not self.timeline:
            return
        total = sum(self.timeline.values())
        logs.info(f"[Timeline] {title} total={total:.3f}s")
        for name, elapsed in self.timeline.items():
            share = (elapsed / total * 100.0) if total > 0 else 0.0
            logs.info(f"[Timeline]   {name:<32} {elapsed:8.3f}s  {share:5.1f}%")


class NoOpInstrumentation:
    """Instrumentation disabled 时使用。"""

    def __init__(self):
        self.progress = ProgressReporter(enabled=False)
        self.metrics = MetricRecorder(enabled=False)
        self.timeline: Dict[str, float] = OrderedDict()

    def timer(self, name: str, *, record: bool = True):
        return _NoOpTimer()

    def report_timeline(self, title: str) -> None:
        return None


class _NoOpTimer:
    def __enter__(self):
        pass

    def __exit__(self, exc_type, exc, tb):
        pass
