from __future__ import annotations

from virality import logs
from virality.pipeline.step import PipelineStep
from virality.training.context import TrainingContext
from virality.training.engines.history_report_engine import HistoryReportEngine


class HistoryReportStep(PipelineStep):
    """
    HistoryReportStep（FINAL / FROZEN）

    Responsibility:
    - Persist per-epoch history (CSV) + loss / metric charts (PNG)

    Contract:
    - consumes ctx.result.history
    - does NOT mutate ctx.result
    """

    stage = "history_report"

    def __init__(self, inst=None, engine: HistoryReportEngine | None = None):
        super().__init__(inst)
        self.engine = engine or HistoryReportEngine()

    def run(self, ctx: TrainingContext) -> TrainingContext:
        if ctx.result is None or len(ctx.result.history) == 0:
            logs.warning("[HistoryReport] no history found, skip report")
            return ctx

        out_dir = ctx.model_dir / "reports"
        with self.timed():
            with self.inst.timer("history_report"):
                paths = self.engine.write_all(
                    ctx.result.history.to_frame(), out_dir, ctx.cfg.task_type
                )

        ctx.reports.extend(paths)
        for path in paths:
            logs.info(f"[HistoryReport] saved {path}")
        return ctx
