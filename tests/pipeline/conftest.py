from __future__ import annotations

import pytest

from virality.config.feature_config import FeatureConfig
from virality.features.feature_vector import FEATURE_NAMES
from virality.pipeline.model_artifact import ModelArtifact
from virality.training.engines.dataset_build_engine import DatasetBuildEngine
from virality.training.engines.trainer import Trainer


@pytest.fixture
def dataset(table_factory):
    return DatasetBuildEngine(feature_columns=FEATURE_NAMES, label_column="virality").parse(
        table_factory(n=40)
    )


@pytest.fixture
def make_artifact(small_cfg):
    def _make(result, run_id="run-1"):
        return ModelArtifact.from_result(
            result=result,
            run_id=run_id,
            task=small_cfg.task_type,
            version="0.1.0",
            feature_names=list(FEATURE_NAMES),
            label_name="virality",
            features=FeatureConfig(),
        )

    return _make


@pytest.fixture
def trained_artifact(small_cfg, dataset, make_artifact):
    return make_artifact(Trainer(small_cfg).fit(dataset))
