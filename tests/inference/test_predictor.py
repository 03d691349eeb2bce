from __future__ import annotations

import math

import numpy as np
import pytest

from virality.config.feature_config import FeatureConfig
from virality.features.feature_vector import FEATURE_NAMES, FeatureVector
from virality.inference import predictor as predictor_mod
from virality.inference.predictor import Predictor
from virality.pipeline.model_artifact import ModelArtifact
from virality.pipeline.model_handle import ModelHandle
from virality.training.engines.dataset_build_engine import DatasetBuildEngine
from virality.training.engines.network import evaluate
from virality.training.engines.scaler_engine import Scaler
from virality.training.engines.trainer import Trainer
from virality.utils.errors import (
    InvalidFeatureError,
    ModelArtifactError,
    ModelNotLoadedError,
)

RAW = [25.0, 180.0, 0.4, 0.6, 0.7, 0.3]


class RecordingExtractor:
    def __init__(self, values=RAW):
        self.values = values
        self.calls = 0

    def extract(self, video_bytes, title, description):
        self.calls += 1
        return FeatureVector.from_raw(dict(zip(FEATURE_NAMES, self.values)))


def _train(cfg, text, label, feature_names=FEATURE_NAMES):
    ds = DatasetBuildEngine(feature_columns=feature_names, label_column=label).parse(text)
    result = Trainer(cfg).fit(ds)
    return ModelArtifact.from_result(
        result=result,
        run_id="predict-test",
        task=cfg.task_type,
        version="0.1.0",
        feature_names=list(feature_names),
        label_name=label,
        features=FeatureConfig(),
    )


@pytest.fixture
def classifier(small_cfg, table_factory):
    return _train(small_cfg, table_factory(n=40), "virality")


@pytest.fixture
def regressor(small_regression_cfg, table_factory):
    return _train(small_regression_cfg, table_factory(n=40, regression=True), "views_total")


def test_no_model_fails_before_extraction():
    extractor = RecordingExtractor()
    predictor = Predictor(ModelHandle(), extractor=extractor)

    with pytest.raises(ModelNotLoadedError):
        predictor.predict(b"video", "title", "desc")

    assert extractor.calls == 0


def test_no_handle_and_no_artifact():
    with pytest.raises(ModelNotLoadedError):
        Predictor().predict_features(RAW)


def test_classification_probability_and_label(classifier):
    predictor = Predictor(ModelHandle(classifier), extractor=RecordingExtractor())

    p = predictor.predict(b"video", "title", "desc")

    assert p.task == "classification"
    assert 0.0 <= p.value <= 1.0
    assert p.label == (1 if p.value > 0.5 else 0)
    assert list(p.features) == list(FEATURE_NAMES)


def test_same_input_is_bit_identical(classifier):
    predictor = Predictor(ModelHandle(classifier), extractor=RecordingExtractor())

    a = predictor.predict(b"video", "title", "desc")
    b = predictor.predict(b"video", "title", "desc")

    assert np.float64(a.value).tobytes() == np.float64(b.value).tobytes()


def test_predict_matches_predict_features(classifier):
    predictor = Predictor(ModelHandle(classifier), extractor=RecordingExtractor())

    from_media = predictor.predict(b"video", "title", "desc")
    from_values = predictor.predict_features(RAW)
    from_mapping = predictor.predict_features(dict(zip(FEATURE_NAMES, RAW)))

    assert from_media.value == from_values.value == from_mapping.value


def test_explicit_artifact_overrides_handle(classifier):
    p = Predictor().predict_features(RAW, artifact=classifier)
    assert 0.0 <= p.value <= 1.0


def test_non_finite_manual_features_rejected(classifier):
    predictor = Predictor(ModelHandle(classifier))

    with pytest.raises(InvalidFeatureError) as exc:
        predictor.predict_features(RAW[:2] + [math.nan] + RAW[3:])

    assert exc.value.fields == ["edge_intensity"]


def test_wrong_feature_count_rejected(classifier):
    with pytest.raises(InvalidFeatureError):
        Predictor(ModelHandle(classifier)).predict_features(RAW[:5])


def test_regression_returns_original_units(regressor):
    p = Predictor(ModelHandle(regressor), extractor=RecordingExtractor()).predict(b"v", "t", "d")

    assert p.task == "regression"
    assert p.label is None
    raw = evaluate(regressor.weights, Scaler.apply(regressor.stats, np.asarray(RAW)))
    assert p.value == pytest.approx(float(regressor.label_transform.inverse(raw)))
    assert p.value > -1.0


def test_media_prediction_requires_media_feature_set(small_regression_cfg, table_factory):
    eight = [
        "duration_sec", "hook_strength_score", "niche", "views_first_hour",
        "retention_rate", "first_3_sec_engagement", "music_type", "upload_month",
    ]
    rng = np.random.default_rng(1)
    rows = [",".join(eight + ["views_total"])]
    for _ in range(30):
        rows.append(",".join(f"{v:.4f}" for v in rng.random(8)) + f",{rng.integers(10, 10000)}")
    artifact = _train(small_regression_cfg, "\n".join(rows) + "\n", "views_total", feature_names=eight)
    predictor = Predictor(ModelHandle(artifact), extractor=RecordingExtractor())

    with pytest.raises(ModelArtifactError):
        predictor.predict(b"v", "t", "d")

    assert math.isfinite(predictor.predict_features(list(rng.random(8))).value)


def test_regression_overflow_is_rejected(regressor, monkeypatch):
    # linear head far beyond the fitted log range: 10 ** t overflows
    monkeypatch.setattr(predictor_mod, "evaluate", lambda weights, x: 1e6)
    far = [1e9, 1e9, 1e6, 1e6, 1e6, 1e6]

    with pytest.raises(InvalidFeatureError) as exc:
        Predictor(ModelHandle(regressor)).predict_features(far)

    assert exc.value.fields
    assert set(exc.value.fields) <= set(FEATURE_NAMES)


def test_regression_in_range_stays_finite(regressor):
    p = Predictor(ModelHandle(regressor)).predict_features(RAW)

    assert math.isfinite(p.value)
