# virality/inference/predictor.py
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Sequence

import numpy as np

from virality import logs
from virality.features.feature_extractor import FeatureExtractor
from virality.features.feature_vector import FEATURE_NAMES, FeatureVector
from virality.pipeline.model_artifact import ModelArtifact
from virality.pipeline.model_handle import ModelHandle
from virality.training.engines.metrics_engine import DECISION_THRESHOLD
from virality.training.engines.network import evaluate
from virality.training.engines.scaler_engine import Scaler
from virality.utils.errors import (
    InvalidFeatureError,
    ModelArtifactError,
    ModelNotLoadedError,
)

# |normalized value| beyond this counts as far outside the training range
OUTLIER_SCALE = 3.0


@dataclass(frozen=True)
class Prediction:
    """
    classification : value = probability in [0, 1], label = value > 0.5
    regression     : value = prediction in original target units, label = None
    """

    value: float
    label: Optional[int]
    task: str
    features: Dict[str, float]

    def as_dict(self) -> Dict[str, object]:
        return {
            "task": self.task,
            "value": self.value,
            "label": self.label,
            "features": dict(self.features),
        }


class Predictor:
    """
    Predictor（FINAL）

    extraction -> Scaler.apply(persisted stats) -> evaluate -> (regression) inverse label transform

    Guards:
    - no model -> ModelNotLoadedError, checked BEFORE any media is decoded
    - non-finite normalized input -> InvalidFeatureError
    - regression output that overflows in original units -> InvalidFeatureError
    - the artifact is read once per call; a concurrent replace() does not
      mix weights of two models inside one prediction
    """

    def __init__(
            self,
            handle: ModelHandle | None = None,
            extractor: FeatureExtractor | None = None,
    ):
        self.handle = handle
        self.extractor = extractor

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def predict(
            self,
            video_bytes: bytes,
            title: str,
            description: str,
            artifact: ModelArtifact | None = None,
    ) -> Prediction:
        artifact = self._resolve(artifact)
        if artifact.feature_names != list(FEATURE_NAMES):
            raise ModelArtifactError(
                f"model expects features {artifact.feature_names}, "
                f"media extraction produces {list(FEATURE_NAMES)}"
            )

        extractor = self.extractor or FeatureExtractor(artifact.meta.features)
        vector = extractor.extract(video_bytes, title, description)
        return self._predict_vector(artifact, vector.to_list(), vector.as_dict())

    def predict_features(
            self,
            values: Sequence[float] | Mapping[str, float] | FeatureVector,
            artifact: ModelArtifact | None = None,
    ) -> Prediction:
        """
        Predict from an already-built raw feature vector (model order, or by name).
        """
        artifact = self._resolve(artifact)
        names = artifact.feature_names

        if isinstance(values, FeatureVector):
            values = values.as_dict()
        if isinstance(values, Mapping):
            missing = [n for n in names if n not in values]
            if missing:
                raise InvalidFeatureError(
                    f"missing features: {', '.join(missing)}", fields=missing
                )
            row = [values[n] for n in names]
        else:
            row = list(values)
            if len(row) != len(names):
                raise InvalidFeatureError(
                    f"expected {len(names)} features, got {len(row)}", fields=names
                )

        try:
            row = [float(v) for v in row]
        except (TypeError, ValueError) as e:
            raise InvalidFeatureError(f"non-numeric feature value: {e}", fields=names) from e

        bad = [n for n, v in zip(names, row) if not math.isfinite(v)]
        if bad:
            raise InvalidFeatureError(f"non-finite features: {', '.join(bad)}", fields=bad)

        return self._predict_vector(artifact, row, dict(zip(names, row)))

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------
    def _resolve(self, artifact: ModelArtifact | None) -> ModelArtifact:
        if artifact is not None:
            return artifact
        if self.handle is None:
            raise ModelNotLoadedError("no model handle and no artifact given")
        return self.handle.artifact

    def _predict_vector(
            self,
            artifact: ModelArtifact,
            row: list,
            features: Dict[str, float],
    ) -> Prediction:
        x = Scaler.apply(artifact.stats, np.asarray(row, dtype=np.float64))
        bad = [n for n, v in zip(artifact.feature_names, x) if not np.isfinite(v)]
        if bad:
            raise InvalidFeatureError(
                f"non-finite normalized features: {', '.join(bad)}", fields=bad
            )

        output = evaluate(artifact.weights, x)

        if artifact.task == "classification":
            label = 1 if output > DECISION_THRESHOLD else 0
            prediction = Prediction(value=output, label=label, task=artifact.task, features=features)
        else:
            value = output
            if artifact.label_transform is not None:
                with np.errstate(over="ignore"):
                    value = float(artifact.label_transform.inverse(output))
            if not math.isfinite(value):
                far = [n for n, v in zip(artifact.feature_names, x) if abs(v) > OUTLIER_SCALE]
                far = far or list(artifact.feature_names)
                raise InvalidFeatureError(
                    f"prediction overflowed (model output={output!r}); "
                    f"inputs far outside the training range: {', '.join(far)}",
                    fields=far,
                )
            prediction = Prediction(value=value, label=None, task=artifact.task, features=features)

        logs.info(f"[Predictor] task={prediction.task} value={prediction.value:.6f} label={prediction.label}")
        return prediction
