from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterator, List, Literal, Optional

import pandas as pd

from virality.training.engines.label_transform import LabelTransform
from virality.training.engines.network import NetworkWeights
from virality.training.engines.scaler_engine import ScalerStats

TrainStatus = Literal["completed", "stopped"]


@dataclass(frozen=True)
class EpochRecord:
    """
    One epoch snapshot. Fields that do not apply to the task stay None.
    """

    epoch: int
    loss: float
    val_loss: float
    accuracy: Optional[float] = None
    val_accuracy: Optional[float] = None
    auc: Optional[float] = None
    mae: Optional[float] = None
    val_mae: Optional[float] = None
    r2: Optional[float] = None
    seconds: float = 0.0

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


class TrainingHistory:
    """
    Append-only during training, read-only afterwards.
    """

    def __init__(self, records: List[EpochRecord] | None = None):
        self._records: List[EpochRecord] = list(records or [])

    def append(self, record: EpochRecord) -> None:
        if self._records and record.epoch <= self._records[-1].epoch:
            raise ValueError(
                f"epoch {record.epoch} after {self._records[-1].epoch}: history is append-only"
            )
        self._records.append(record)

    @property
    def records(self) -> tuple[EpochRecord, ...]:
        return tuple(self._records)

    @property
    def last(self) -> Optional[EpochRecord]:
        return self._records[-1] if self._records else None

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[EpochRecord]:
        return iter(tuple(self._records))

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame([r.as_dict() for r in self._records])

    def to_list(self) -> List[Dict[str, Any]]:
        return [r.as_dict() for r in self._records]

    @classmethod
    def from_list(cls, items: List[Dict[str, Any]]) -> "TrainingHistory":
        return cls([EpochRecord(**item) for item in items])


@dataclass(frozen=True)
class TrainResult:
    """
    TrainResult（FINAL / FROZEN）

    一次完整训练的纯内存态结果，不包含任何 I/O 语义
    """

    weights: NetworkWeights
    stats: ScalerStats
    label_transform: Optional[LabelTransform]
    history: TrainingHistory
    status: TrainStatus
    metrics: Dict[str, float]

    @property
    def stopped(self) -> bool:
        return self.status == "stopped"
