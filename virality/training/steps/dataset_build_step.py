from __future__ import annotations

from virality import logs
from virality.pipeline.step import PipelineStep
from virality.training.context import TrainingContext
from virality.training.engines.dataset_build_engine import DatasetBuildEngine


class DatasetBuildStep(PipelineStep):
    """
    DatasetBuildStep（FINAL）

    Contract:
    - consumes ctx.dataset_path
    - produces ctx.dataset
    """

    stage = "dataset_build"

    def run(self, ctx: TrainingContext) -> TrainingContext:
        cfg = ctx.cfg.dataset
        engine = DatasetBuildEngine(
            feature_columns=cfg.feature_columns,
            label_column=cfg.label_column,
            delimiter=cfg.delimiter,
        )

        with self.timed():
            with self.inst.timer("dataset_parse"):
                ctx.dataset = engine.load(ctx.dataset_path)

        logs.info(
            f"[DatasetBuildStep] rows={len(ctx.dataset)} "
            f"features={len(ctx.dataset.feature_names)} label={ctx.dataset.label_name}"
        )
        return ctx
