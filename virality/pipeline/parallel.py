# virality/pipeline/parallel.py
from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Sequence, TypeVar

from virality import logs

T = TypeVar("T")
R = TypeVar("R")


class ParallelExecutor:
    """
    ParallelExecutor（MVP）

    - ThreadPoolExecutor wrapper; handlers are expected to be stateless
      (feature extraction spends its time in ffmpeg subprocesses)
    - results keep input order
    - the first handler exception propagates to the caller
    """

    @staticmethod
    def run(
            *,
            items: Sequence[T],
            handler: Callable[[T], R],
            max_workers: int | None = None,
    ) -> List[R]:
        items = list(items)
        if not items:
            logs.info("[ParallelExecutor] no items to process")
            return []

        workers = ParallelExecutor._resolve_workers(items, max_workers)
        logs.info(f"[ParallelExecutor] start total={len(items)} workers={workers}")

        if workers == 1:
            return [handler(item) for item in items]

        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(handler, items))

    @staticmethod
    def _resolve_workers(items: list, max_workers: int | None) -> int:
        cpu = os.cpu_count() or 1
        if max_workers is None:
            return min(cpu, len(items))
        return max(1, min(max_workers, len(items)))
