# virality/config/training_config.py
from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, Field, model_validator

from virality.features.feature_vector import FEATURE_NAMES


class FeatureLabelConfig(BaseModel):
    feature_columns: List[str] = Field(default_factory=lambda: list(FEATURE_NAMES))
    label_column: str = "virality"
    delimiter: str = ","


class NetworkConfig(BaseModel):
    """
    Fixed-topology MLP: dense(relu) [+ dropout] ... -> dense(1)
    """

    hidden_units: List[int] = Field(default_factory=lambda: [128, 64, 32])
    dropout_rates: List[float] = Field(default_factory=lambda: [0.3, 0.2, 0.0])
    l2: List[float] = Field(default_factory=lambda: [0.001, 0.001, 0.0])

    @model_validator(mode="after")
    def _check_lengths(self) -> "NetworkConfig":
        n = len(self.hidden_units)
        if n == 0:
            raise ValueError("network needs at least one hidden layer")
        if len(self.dropout_rates) != n or len(self.l2) != n:
            raise ValueError(
                "hidden_units, dropout_rates and l2 must have the same length"
            )
        for rate in self.dropout_rates:
            if not 0.0 <= rate < 1.0:
                raise ValueError(f"dropout rate out of range: {rate}")
        return self


class TrainingConfig(BaseModel):
    """
    TrainingConfig（ONE config == ONE model）
    """

    # experiment
    name: str = "virality"

    # dataset
    dataset: FeatureLabelConfig = Field(default_factory=FeatureLabelConfig)

    # task
    task_type: Literal["classification", "regression"] = "classification"
    scaler: Literal["zscore", "minmax"] = "zscore"
    log_target: bool = False

    # model
    network: NetworkConfig = Field(default_factory=NetworkConfig)

    # optimisation
    epochs: int = Field(default=50, gt=0)
    batch_size: int = Field(default=32, gt=0)
    learning_rate: float = Field(default=0.001, gt=0.0)
    validation_split: float = Field(default=0.2, gt=0.0, lt=1.0)
    shuffle_split: bool = False
    seed: int = 42

    # artifact
    model_dir: str = "models/virality"

    @model_validator(mode="after")
    def _check_task(self) -> "TrainingConfig":
        if self.log_target and self.task_type != "regression":
            raise ValueError("log_target is only valid for regression")
        return self

    @property
    def output_activation(self) -> str:
        return "sigmoid" if self.task_type == "classification" else "linear"


def regression_preset(**overrides) -> TrainingConfig:
    """
    8-feature view-count regression preset (minmax scaler + log10 target).
    """
    base = dict(
        name="views_total",
        dataset=FeatureLabelConfig(
            feature_columns=[
                "duration_sec",
                "hook_strength_score",
                "niche",
                "views_first_hour",
                "retention_rate",
                "first_3_sec_engagement",
                "music_type",
                "upload_month",
            ],
            label_column="views_total",
        ),
        task_type="regression",
        scaler="minmax",
        log_target=True,
        network=NetworkConfig(
            hidden_units=[64, 32, 16],
            dropout_rates=[0.2, 0.0, 0.0],
            l2=[0.0, 0.0, 0.0],
        ),
        epochs=100,
        shuffle_split=True,
    )
    base.update(overrides)
    return TrainingConfig(**base)
