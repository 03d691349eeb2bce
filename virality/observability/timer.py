#!filepath: virality/observability/timer.py
import threading
import time
from typing import Dict


class Timer:
    """
    线程安全计时器（per-thread start table）

    - start(name)
    - end(name) → elapsed seconds, 0.0 when name was never started

    Worker threads of one extract_many call may time the same name
    concurrently without clobbering each other.
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._local = threading.local()

    def _starts(self) -> Dict[str, float]:
        starts = getattr(self._local, "starts", None)
        if starts is None:
            starts = self._local.starts = {}
        return starts

    def start(self, name: str) -> None:
        if self.enabled:
            self._starts()[name] = time.perf_counter()

    def end(self, name: str) -> float:
        if not self.enabled:
            return 0.0
        t0 = self._starts().pop(name, None)
        return 0.0 if t0 is None else time.perf_counter() - t0
