from __future__ import annotations

from pathlib import Path

from virality import logs
from virality.pipeline.step import PipelineStep
from virality.training.context import TrainingContext


class ArtifactPersistStep(PipelineStep):
    """
    ArtifactPersistStep（FINAL / FROZEN）

    Semantics:
    - Persist the run's ModelArtifact (artifact.json + model.joblib)
    - weights never leave without their scaler stats
    - a run stopped before its first epoch has nothing to persist: skip, not an error
    """

    stage = "training_finalize"

    def run(self, ctx: TrainingContext) -> TrainingContext:
        artifact = ctx.model_artifact
        if artifact is None:
            logs.warning(f"[ArtifactPersistStep] run_id={ctx.run_id} has no completed epoch, skip persist")
            return ctx

        with self.timed():
            artifact.save(Path(ctx.model_dir))

        logs.info(f"[ArtifactPersistStep] run_id={ctx.run_id} metrics={artifact.meta.metrics}")
        return ctx
