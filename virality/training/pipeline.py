# virality/training/pipeline.py
from __future__ import annotations

import uuid
from datetime import datetime
from pathlib import Path
from typing import List

from virality import logs
from virality.config.feature_config import FeatureConfig
from virality.config.training_config import TrainingConfig
from virality.observability.instrumentation import Instrumentation, NoOpInstrumentation
from virality.pipeline.step import PipelineStep
from virality.training.context import TrainingContext


class TrainingPipeline:
    """
    TrainingPipeline（FINAL / FROZEN）

    Semantics:
    - Pipeline owns step order
    - Steps execute semantics
    - one run() == one TrainingContext == one model directory
    """

    def __init__(
            self,
            *,
            steps: List[PipelineStep],
            cfg: TrainingConfig,
            features: FeatureConfig,
            inst: Instrumentation | None = None,
    ):
        self.steps = steps
        self.cfg = cfg
        self.features = features
        self.inst = inst if inst is not None else NoOpInstrumentation()

    def run(
            self,
            dataset_path: Path,
            *,
            handle=None,
            run_id: str | None = None,
            model_dir: Path | None = None,
    ) -> TrainingContext:
        if run_id is None:
            run_id = f"{datetime.now():%Y%m%d_%H%M%S}_{uuid.uuid4().hex[:6]}"

        logs.info(f"[TrainingPipeline] START run_id={run_id} dataset={dataset_path}")

        ctx = TrainingContext(
            run_id=run_id,
            cfg=self.cfg,
            features=self.features,
            inst=self.inst,
            model_dir=Path(model_dir) if model_dir is not None else Path(self.cfg.model_dir),
            dataset_path=Path(dataset_path),
            handle=handle,
        )

        for step in self.steps:
            ctx = step.run(ctx)

        self.inst.report_timeline(f"train {run_id}")
        logs.info(f"[TrainingPipeline] DONE run_id={run_id} metrics={ctx.metrics}")
        return ctx
