from __future__ import annotations

from virality import __version__, logs
from virality.pipeline.model_artifact import ModelArtifact
from virality.pipeline.model_handle import ModelHandle
from virality.pipeline.step import PipelineStep
from virality.training.context import TrainingContext
from virality.training.engines.train_result import TrainResult
from virality.training.engines.trainer import Trainer


class ModelTrainStep(PipelineStep):
    """
    ModelTrainStep（FINAL）

    Contract:
    - consumes ctx.dataset / ctx.stats / ctx.label_transform
    - trains through ctx.handle (single owner); a private handle is used
      when the caller did not supply one
    - produces ctx.result / ctx.model_artifact / ctx.metrics
    """

    stage = "model_train"

    def __init__(self, inst=None, on_epoch=None):
        super().__init__(inst)
        self.on_epoch = on_epoch

    def run(self, ctx: TrainingContext) -> TrainingContext:
        if ctx.dataset is None or ctx.stats is None:
            raise RuntimeError("ModelTrainStep requires ctx.dataset and ctx.stats")

        if ctx.handle is None:
            ctx.handle = ModelHandle()

        trainer = Trainer(ctx.cfg, inst=self.inst)

        def _train(stop_event):
            return trainer.fit(
                ctx.dataset,
                stats=ctx.stats,
                label_transform=ctx.label_transform,
                stop_event=stop_event,
                on_epoch=self.on_epoch,
            )

        def _publish(result: TrainResult) -> ModelArtifact:
            ctx.model_artifact = ModelArtifact.from_result(
                result=result,
                run_id=ctx.run_id,
                task=ctx.cfg.task_type,
                version=__version__,
                feature_names=list(ctx.dataset.feature_names),
                label_name=ctx.dataset.label_name,
                features=ctx.features,
            )
            return ctx.model_artifact

        with self.timed():
            ctx.result = ctx.handle.fit(_train, _publish)

        ctx.metrics.update(ctx.result.metrics)
        for name, value in ctx.result.metrics.items():
            self.inst.metrics.record(name, value)

        logs.info(
            f"[ModelTrainStep] status={ctx.result.status} epochs={len(ctx.result.history)} "
            f"params={ctx.result.weights.param_count}"
        )
        return ctx
