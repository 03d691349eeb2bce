# virality/training/context.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from virality.config.feature_config import FeatureConfig
from virality.config.training_config import TrainingConfig
from virality.training.engines.dataset_build_engine import Dataset
from virality.training.engines.label_transform import LabelTransform
from virality.training.engines.scaler_engine import ScalerStats
from virality.training.engines.train_result import TrainResult


@dataclass
class TrainingContext:
    """
    TrainingContext（FINAL / FROZEN）

    Semantics:
    - One context == one training run
    - run_id is immutable and mandatory
    """

    # -------------------------
    # Identity (FROZEN)
    # -------------------------
    run_id: str

    # -------------------------
    # Static bindings
    # -------------------------
    cfg: TrainingConfig
    features: FeatureConfig
    inst: Any
    model_dir: Path
    dataset_path: Path
    handle: Any = None  # ModelHandle; may be None for a standalone run

    # -------------------------
    # Run state
    # -------------------------
    dataset: Optional[Dataset] = None
    stats: Optional[ScalerStats] = None
    label_transform: Optional[LabelTransform] = None
    result: Optional[TrainResult] = None

    model_artifact: Any = None
    metrics: Dict[str, Any] = field(default_factory=dict)
    reports: List[Path] = field(default_factory=list)
