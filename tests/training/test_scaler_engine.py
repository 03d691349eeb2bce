import numpy as np
import pytest
from pydantic import ValidationError

from virality.features.feature_vector import FEATURE_NAMES
from virality.training.engines.dataset_build_engine import DatasetBuildEngine
from virality.training.engines.scaler_engine import Scaler, ScalerStats
from virality.utils.errors import InvalidFeatureError


def test_zscore_three_row_scenario(three_row_table):
    ds = DatasetBuildEngine(feature_columns=FEATURE_NAMES, label_column="virality").parse(three_row_table)

    stats = Scaler("zscore").fit(ds.features(), ds.feature_names)
    z = Scaler.apply(stats, ds.features()[0])

    assert stats.location[0] == pytest.approx(30.0)
    assert stats.scale[0] == pytest.approx(16.3299, rel=1e-4)
    assert z[0] == pytest.approx(-1.2247, abs=1e-4)


def test_zscore_round_trip():
    rows = np.random.default_rng(3).normal(5.0, 2.0, size=(50, 6))
    stats = Scaler("zscore").fit(rows)

    back = Scaler.inverse(stats, Scaler.apply(stats, rows))

    np.testing.assert_allclose(back, rows, rtol=1e-12, atol=1e-12)


def test_minmax_maps_to_unit_interval():
    rows = np.array([[0.0, 10.0], [5.0, 20.0], [10.0, 30.0]])
    stats = Scaler("minmax").fit(rows, ["a", "b"])

    out = Scaler.apply(stats, rows)

    np.testing.assert_allclose(out[:, 0], [0.0, 0.5, 1.0])
    np.testing.assert_allclose(out[:, 1], [0.0, 0.5, 1.0])


def test_constant_column_uses_unit_scale():
    rows = np.array([[1.0, 7.0], [2.0, 7.0], [3.0, 7.0]])

    for kind in ("zscore", "minmax"):
        stats = Scaler(kind).fit(rows)
        assert stats.scale[1] == 1.0
        assert np.all(np.isfinite(Scaler.apply(stats, rows)))


def test_apply_is_pure():
    rows = np.array([[1.0, 2.0], [3.0, 4.0]])
    stats = Scaler().fit(rows)
    row = np.array([1.0, 2.0])

    first = Scaler.apply(stats, row)
    second = Scaler.apply(stats, row)

    assert row.tolist() == [1.0, 2.0]
    assert first.tobytes() == second.tobytes()


def test_width_mismatch_rejected():
    stats = Scaler().fit(np.ones((3, 6)))

    with pytest.raises(InvalidFeatureError):
        Scaler.apply(stats, [1.0, 2.0])


def test_stats_are_frozen_and_validated():
    stats = Scaler().fit(np.ones((3, 2)))

    with pytest.raises(ValidationError):
        stats.location = (0.0, 0.0)

    with pytest.raises(ValidationError):
        ScalerStats(kind="zscore", feature_names=("a",), location=(0.0,), scale=(0.0,))
