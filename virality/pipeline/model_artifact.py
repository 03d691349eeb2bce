# virality/pipeline/model_artifact.py
from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import joblib
from pydantic import BaseModel, ConfigDict, ValidationError, model_validator

from virality import logs
from virality.config.feature_config import FeatureConfig
from virality.training.engines.label_transform import LabelTransform
from virality.training.engines.network import NetworkWeights
from virality.training.engines.scaler_engine import ScalerStats
from virality.training.engines.train_result import TrainResult
from virality.utils.errors import ModelArtifactError

META_FILE = "artifact.json"
WEIGHTS_FILE = "model.joblib"


# ============================================================
# Model Spec (FROZEN)
# ============================================================
class ModelSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    family: Literal["mlp"] = "mlp"
    task: Literal["regression", "classification"]
    version: str


# ============================================================
# Artifact metadata (artifact.json)
# ============================================================
class ArtifactMeta(BaseModel):
    """
    Typed content of artifact.json.

    scaler is required: there is no default normalization to fall back on.
    """

    model_config = ConfigDict(frozen=True)

    spec: ModelSpec
    run_id: str
    created_at: datetime
    feature_names: List[str]
    label_name: str
    scaler: ScalerStats
    label_transform: Optional[LabelTransform] = None
    features: FeatureConfig
    metrics: Dict[str, float] = {}
    history: List[Dict[str, Any]] = []
    summary: Dict[str, Any] = {}
    status: Literal["completed", "stopped"] = "completed"

    @model_validator(mode="after")
    def _check_consistency(self) -> "ArtifactMeta":
        if list(self.scaler.feature_names) != list(self.feature_names):
            raise ValueError(
                f"scaler stats cover {list(self.scaler.feature_names)}, "
                f"model expects {self.feature_names}"
            )
        if self.label_transform is not None and self.spec.task != "regression":
            raise ValueError("label_transform is only valid for a regression model")
        return self


# ============================================================
# Model Artifact (weights + metadata, loaded together)
# ============================================================
@dataclass(frozen=True)
class ModelArtifact:
    """
    ModelArtifact（FINAL / FROZEN）

    Semantics:
    - weights and scaler stats (and the label transform) travel together
    - a directory holds exactly: artifact.json + model.joblib
    - constructed only through from_result / load; both validate
    """

    meta: ArtifactMeta
    weights: NetworkWeights

    def __post_init__(self):
        expected = len(self.meta.feature_names)
        if self.weights.input_dim != expected:
            raise ModelArtifactError(
                f"weights expect {self.weights.input_dim} inputs, "
                f"artifact declares {expected} features"
            )
        activation = "sigmoid" if self.meta.spec.task == "classification" else "linear"
        if self.weights.output_activation != activation:
            raise ModelArtifactError(
                f"{self.meta.spec.task} model must end in {activation}, "
                f"weights end in {self.weights.output_activation}"
            )

    # ---------- views ----------
    @property
    def task(self) -> str:
        return self.meta.spec.task

    @property
    def feature_names(self) -> List[str]:
        return list(self.meta.feature_names)

    @property
    def stats(self) -> ScalerStats:
        return self.meta.scaler

    @property
    def label_transform(self) -> Optional[LabelTransform]:
        return self.meta.label_transform

    # ---------- construction ----------
    @classmethod
    def from_result(
            cls,
            *,
            result: TrainResult,
            run_id: str,
            task: str,
            version: str,
            feature_names: List[str],
            label_name: str,
            features: FeatureConfig,
    ) -> "ModelArtifact":
        try:
            meta = ArtifactMeta(
                spec=ModelSpec(task=task, version=version),
                run_id=run_id,
                created_at=datetime.now(timezone.utc),
                feature_names=list(feature_names),
                label_name=label_name,
                scaler=result.stats,
                label_transform=result.label_transform,
                features=features,
                metrics=dict(result.metrics),
                history=result.history.to_list(),
                summary=result.weights.summary(),
                status=result.status,
            )
        except ValidationError as e:
            raise ModelArtifactError(f"inconsistent training result: {e}") from e
        return cls(meta=meta, weights=result.weights)

    # ---------- persistence ----------
    def save(self, artifact_dir: Path) -> Path:
        artifact_dir = Path(artifact_dir)
        artifact_dir.mkdir(parents=True, exist_ok=True)

        joblib.dump(self.weights.to_state(), artifact_dir / WEIGHTS_FILE)
        (artifact_dir / META_FILE).write_text(
            json.dumps(self.meta.model_dump(mode="json"), indent=2, ensure_ascii=False),
            encoding="utf-8",
        )

        logs.info(f"[ModelArtifact] saved run_id={self.meta.run_id} -> {artifact_dir}")
        return artifact_dir

    @classmethod
    def load(cls, artifact_dir: Path) -> "ModelArtifact":
        """
        Load a persisted artifact.

        Hard rules:
        - artifact.json and model.joblib must both exist
        - missing scaler stats / malformed metadata -> ModelArtifactError
        - weights must match the declared feature count and task
        """
        artifact_dir = Path(artifact_dir)
        meta_path = artifact_dir / META_FILE
        weights_path = artifact_dir / WEIGHTS_FILE

        if not meta_path.exists():
            raise ModelArtifactError(f"[ModelArtifact] {META_FILE} not found in {artifact_dir}")
        if not weights_path.exists():
            raise ModelArtifactError(f"[ModelArtifact] {WEIGHTS_FILE} not found in {artifact_dir}")

        try:
            meta = ArtifactMeta.model_validate_json(meta_path.read_text(encoding="utf-8"))
        except ValidationError as e:
            raise ModelArtifactError(f"[ModelArtifact] invalid {META_FILE}: {e}") from e

        try:
            weights = NetworkWeights.from_state(joblib.load(weights_path))
        except (ValueError, KeyError, TypeError) as e:
            raise ModelArtifactError(f"[ModelArtifact] invalid {WEIGHTS_FILE}: {e}") from e

        artifact = cls(meta=meta, weights=weights)
        logs.info(
            f"[ModelArtifact] loaded run_id={meta.run_id} task={meta.spec.task} "
            f"features={len(meta.feature_names)} params={weights.param_count}"
        )
        return artifact
