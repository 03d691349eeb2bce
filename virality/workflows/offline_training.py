# virality/workflows/offline_training.py
from __future__ import annotations

from virality.config.app_config import AppConfig
from virality.observability.instrumentation import Instrumentation
from virality.training.pipeline import TrainingPipeline
from virality.training.steps.artifact_persist_step import ArtifactPersistStep
from virality.training.steps.dataset_build_step import DatasetBuildStep
from virality.training.steps.history_report_step import HistoryReportStep
from virality.training.steps.model_train_step import ModelTrainStep
from virality.training.steps.scaler_fit_step import ScalerFitStep


def build_offline_training(cfg: AppConfig | None = None, *, inst=None, on_epoch=None) -> TrainingPipeline:
    """
    Offline Training Workflow (FINAL / FROZEN)

    DatasetBuild -> ScalerFit -> ModelTrain -> HistoryReport -> ArtifactPersist
    """

    if cfg is None:
        cfg = AppConfig.load()
    if inst is None:
        inst = Instrumentation()

    return TrainingPipeline(
        steps=[
            DatasetBuildStep(inst),
            ScalerFitStep(inst),
            ModelTrainStep(inst, on_epoch=on_epoch),
            HistoryReportStep(inst),
            ArtifactPersistStep(inst),
        ],
        cfg=cfg.training,
        features=cfg.features,
        inst=inst,
    )
