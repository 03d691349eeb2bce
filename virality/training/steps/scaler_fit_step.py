from __future__ import annotations

from virality import logs
from virality.pipeline.step import PipelineStep
from virality.training.context import TrainingContext
from virality.training.engines.trainer import Trainer


class ScalerFitStep(PipelineStep):
    """
    ScalerFitStep（FINAL）

    Contract:
    - consumes ctx.dataset
    - produces ctx.stats / ctx.label_transform (fit exactly once per run)
    """

    stage = "scaler_fit"

    def run(self, ctx: TrainingContext) -> TrainingContext:
        if ctx.dataset is None:
            raise RuntimeError("ScalerFitStep requires ctx.dataset")

        with self.timed():
            ctx.stats, ctx.label_transform = Trainer(ctx.cfg).fit_stats(ctx.dataset)

        logs.info(
            f"[ScalerFitStep] kind={ctx.stats.kind} "
            f"label_transform={'log10' if ctx.label_transform is not None else 'none'}"
        )
        return ctx
