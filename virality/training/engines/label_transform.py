# virality/training/engines/label_transform.py
from __future__ import annotations

import numpy as np
from pydantic import BaseModel, ConfigDict

from virality.utils.errors import SchemaError


class LabelTransform(BaseModel):
    """
    LabelTransform（regression only）

    forward : y -> log10(y + 1) -> min-max to [0, 1]
    inverse : p -> p * (max - min) + min -> 10**v - 1

    original_min / original_max are kept for reporting only.
    """

    model_config = ConfigDict(frozen=True)

    log10: bool = True
    min: float
    max: float
    original_min: float
    original_max: float

    @classmethod
    def fit(cls, y, *, log10: bool = True, label_name: str = "target") -> "LabelTransform":
        y = np.asarray(y, dtype=np.float64).ravel()
        if y.size == 0:
            raise ValueError("label transform fit needs at least one value")
        if log10 and np.any(y <= -1.0):
            raise SchemaError(
                f"{label_name} must be > -1 for log10(x + 1)", columns=[label_name]
            )

        t = np.log10(y + 1.0) if log10 else y
        return cls(
            log10=log10,
            min=float(t.min()),
            max=float(t.max()),
            original_min=float(y.min()),
            original_max=float(y.max()),
        )

    @property
    def span(self) -> float:
        span = self.max - self.min
        return span if span > 1e-12 else 1.0

    def forward(self, y) -> np.ndarray:
        y = np.asarray(y, dtype=np.float64)
        t = np.log10(y + 1.0) if self.log10 else y
        return (t - self.min) / self.span

    def inverse(self, p) -> np.ndarray:
        p = np.asarray(p, dtype=np.float64)
        t = p * self.span + self.min
        return np.power(10.0, t) - 1.0 if self.log10 else t
