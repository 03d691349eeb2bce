# virality/features/feature_vector.py
from __future__ import annotations

import math
from dataclasses import dataclass, asdict
from typing import Dict, List, Mapping

from virality import logs
from virality.utils.errors import InvalidFeatureError

# Order is part of the model contract: extraction, scaler stats and the
# network input layer are all indexed by it.
FEATURE_NAMES: tuple[str, ...] = (
    "title_length",
    "description_length",
    "edge_intensity",
    "color_histogram",
    "spectral_entropy",
    "audio_intensity",
)

MEDIA_FEATURES: tuple[str, ...] = FEATURE_NAMES[2:]


@dataclass(frozen=True)
class FeatureVector:
    """
    FeatureVector（FROZEN order）

    Every field is finite once constructed through `from_raw`.
    """

    title_length: float
    description_length: float
    edge_intensity: float
    color_histogram: float
    spectral_entropy: float
    audio_intensity: float

    @classmethod
    def from_raw(cls, values: Mapping[str, float]) -> "FeatureVector":
        return cls(**sanitize_features(values))

    def to_list(self) -> List[float]:
        return [float(getattr(self, name)) for name in FEATURE_NAMES]

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


def sanitize_features(values: Mapping[str, float]) -> Dict[str, float]:
    """
    Replace non-finite fields with 0 and log a data-quality warning.

    Fails when every media-derived field is unusable: in that case the
    vector carries no information beyond text lengths.
    """
    missing = [name for name in FEATURE_NAMES if name not in values]
    if missing:
        raise InvalidFeatureError(
            f"feature vector missing fields: {', '.join(missing)}", fields=missing
        )

    bad: List[str] = []
    out: Dict[str, float] = {}
    for name in FEATURE_NAMES:
        try:
            value = float(values[name])
        except (TypeError, ValueError):
            value = math.nan
        if not math.isfinite(value):
            bad.append(name)
            value = 0.0
        out[name] = value

    if bad and all(name in bad for name in MEDIA_FEATURES):
        raise InvalidFeatureError(
            f"all media features are non-finite: {', '.join(bad)}", fields=bad
        )

    for name in bad:
        logs.warning(f"[FeatureVector] non-finite {name} clamped to 0")

    return out
