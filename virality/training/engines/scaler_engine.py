# virality/training/engines/scaler_engine.py
from __future__ import annotations

from typing import Literal, Sequence, Tuple

import numpy as np
from pydantic import BaseModel, ConfigDict, model_validator

from virality.utils.errors import InvalidFeatureError

ScalerKind = Literal["zscore", "minmax"]

# scale below this is treated as a constant column
SCALE_EPSILON = 1e-12


class ScalerStats(BaseModel):
    """
    ScalerStats（FROZEN after fit）

    zscore : location = mean, scale = population std
    minmax : location = min,  scale = max - min
    A scale of 0 (constant column) is stored as 1.
    """

    model_config = ConfigDict(frozen=True)

    kind: ScalerKind
    feature_names: Tuple[str, ...]
    location: Tuple[float, ...]
    scale: Tuple[float, ...]

    @model_validator(mode="after")
    def _check_shape(self) -> "ScalerStats":
        n = len(self.feature_names)
        if len(self.location) != n or len(self.scale) != n:
            raise ValueError(
                f"scaler stats shape mismatch: names={n} "
                f"location={len(self.location)} scale={len(self.scale)}"
            )
        if any(not np.isfinite(v) for v in self.location + self.scale):
            raise ValueError("scaler stats must be finite")
        if any(s <= 0.0 for s in self.scale):
            raise ValueError("scaler scale must be positive")
        return self

    def __len__(self) -> int:
        return len(self.feature_names)


class Scaler:
    """
    Scaler

    - fit   : training rows -> ScalerStats (once per model)
    - apply : pure, identical at training and inference
    """

    def __init__(self, kind: ScalerKind = "zscore"):
        self.kind = kind

    def fit(self, rows, feature_names: Sequence[str] | None = None) -> ScalerStats:
        X = np.asarray(rows, dtype=np.float64)
        if X.ndim != 2 or X.shape[0] == 0:
            raise ValueError(f"scaler fit needs a non-empty 2D table, got shape {X.shape}")

        if feature_names is None:
            feature_names = [f"f{i}" for i in range(X.shape[1])]

        if self.kind == "zscore":
            location = X.mean(axis=0)
            scale = X.std(axis=0, ddof=0)
        else:
            location = X.min(axis=0)
            scale = X.max(axis=0) - location

        scale = np.where(scale > SCALE_EPSILON, scale, 1.0)

        return ScalerStats(
            kind=self.kind,
            feature_names=tuple(feature_names),
            location=tuple(float(v) for v in location),
            scale=tuple(float(v) for v in scale),
        )

    @staticmethod
    def apply(stats: ScalerStats, row) -> np.ndarray:
        """
        Normalize one row (1D) or a batch (2D); returns a new float64 array.
        """
        X = _check_width(stats, row)
        return (X - np.asarray(stats.location)) / np.asarray(stats.scale)

    @staticmethod
    def inverse(stats: ScalerStats, row) -> np.ndarray:
        X = _check_width(stats, row)
        return X * np.asarray(stats.scale) + np.asarray(stats.location)


def _check_width(stats: ScalerStats, row) -> np.ndarray:
    X = np.asarray(row, dtype=np.float64)
    if X.shape[-1] != len(stats):
        raise InvalidFeatureError(
            f"expected {len(stats)} features, got {X.shape[-1]}",
            fields=stats.feature_names,
        )
    return X
