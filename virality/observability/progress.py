#!filepath: virality/observability/progress.py
import time
from typing import Dict

from virality import logs


class ProgressReporter:
    """
    Epoch / batch progress via logs (no Rich/TQDM on the training path).

    update() logs at most every `every` steps plus the final step, with
    throughput and a naive ETA.
    """

    def __init__(self, enabled: bool = True, every: int = 1):
        self.enabled = enabled
        self.every = max(1, every)
        self._t0: Dict[str, float] = {}

    def start(self, task: str, total: int, unit: str = ""):
        if not self.enabled:
            return
        self._t0[task] = time.perf_counter()
        logs.info(f"[Progress] {task} started total={total} {unit}")

    def update(self, task: str, current: int, total: int, unit: str = ""):
        if not self.enabled:
            return
        if current % self.every and current != total:
            return

        elapsed = time.perf_counter() - self._t0.get(task, time.perf_counter())
        rate = current / elapsed if elapsed > 0 else 0.0
        eta = (total - current) / rate if rate > 0 else 0.0
        logs.info(f"[Progress] {task}: {current}/{total} {unit} ({rate:.2f}/s, eta {eta:.1f}s)")

    def done(self, task: str):
        if not self.enabled:
            return
        elapsed = time.perf_counter() - self._t0.pop(task, time.perf_counter())
        logs.info(f"[Progress] {task} done in {elapsed:.2f}s")
