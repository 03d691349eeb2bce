# tests/conftest.py
from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
from loguru import logger

from virality.config.training_config import (
    FeatureLabelConfig,
    NetworkConfig,
    TrainingConfig,
)
from virality.features.feature_vector import FEATURE_NAMES


@pytest.fixture(autouse=True)
def disable_file_logger():
    logger.remove()
    logger.add(lambda msg: None)  # or sys.stderr
    yield


# ============================================================
# Tables
# ============================================================
THREE_ROW_TABLE = (
    "title_length,description_length,edge_intensity,color_histogram,"
    "spectral_entropy,audio_intensity,virality\n"
    "10,100,0.5,0.5,0.5,0.5,1\n"
    "50,500,0.1,0.9,0.2,0.8,0\n"
    "30,300,0.3,0.3,0.3,0.3,1\n"
)


def make_table(n: int = 60, seed: int = 0, *, regression: bool = False) -> str:
    """
    Synthetic 6-feature table; the label depends on edge + audio intensity.
    """
    rng = np.random.default_rng(seed)
    title = rng.integers(5, 80, size=n)
    desc = rng.integers(0, 600, size=n)
    media = rng.random((n, 4))
    score = media[:, 0] + media[:, 3]

    if regression:
        target = np.round(10 ** (2 + 3 * score / 2.0))
        label_name = "views_total"
    else:
        target = (score > 1.0).astype(int)
        label_name = "virality"

    lines = [",".join(list(FEATURE_NAMES) + [label_name])]
    for i in range(n):
        cells = [str(title[i]), str(desc[i])] + [f"{v:.6f}" for v in media[i]] + [str(target[i])]
        lines.append(",".join(cells))
    return "\n".join(lines) + "\n"


@pytest.fixture
def three_row_table() -> str:
    return THREE_ROW_TABLE


@pytest.fixture
def table_path(tmp_path: Path) -> Path:
    p = tmp_path / "videos.csv"
    p.write_text(make_table(), encoding="utf-8")
    return p


@pytest.fixture
def regression_table_path(tmp_path: Path) -> Path:
    p = tmp_path / "views.csv"
    p.write_text(make_table(regression=True), encoding="utf-8")
    return p


# ============================================================
# Configs
# ============================================================
@pytest.fixture
def small_cfg(tmp_path: Path) -> TrainingConfig:
    return TrainingConfig(
        name="test",
        network=NetworkConfig(hidden_units=[8, 4], dropout_rates=[0.1, 0.0], l2=[0.001, 0.0]),
        epochs=4,
        batch_size=8,
        learning_rate=0.01,
        model_dir=str(tmp_path / "model"),
    )


@pytest.fixture
def small_regression_cfg(tmp_path: Path) -> TrainingConfig:
    return TrainingConfig(
        name="test_views",
        dataset=FeatureLabelConfig(label_column="views_total"),
        task_type="regression",
        scaler="minmax",
        log_target=True,
        network=NetworkConfig(hidden_units=[8, 4], dropout_rates=[0.0, 0.0], l2=[0.0, 0.0]),
        epochs=4,
        batch_size=8,
        learning_rate=0.01,
        shuffle_split=True,
        model_dir=str(tmp_path / "model_reg"),
    )


@pytest.fixture
def table_factory():
    return make_table
