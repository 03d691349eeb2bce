import pytest

from virality.training.engines.metrics_engine import MetricsEngine


def test_regression_perfect_fit():
    m = MetricsEngine.regression([1.0, 2.0, 3.0], [1.0, 2.0, 3.0])

    assert m == {"mse": 0.0, "mae": 0.0, "r2": 1.0}


def test_regression_values():
    m = MetricsEngine.regression([1.0, 2.0, 3.0], [2.0, 2.0, 2.0])

    assert m["mse"] == pytest.approx(2 / 3)
    assert m["mae"] == pytest.approx(2 / 3)
    assert m["r2"] == pytest.approx(0.0)


def test_regression_single_sample_has_zero_r2():
    assert MetricsEngine.regression([5.0], [4.0])["r2"] == 0.0


def test_classification_single_threshold_auc():
    m = MetricsEngine.classification([1, 0, 1, 0], [0.9, 0.1, 0.4, 0.6])

    assert m["accuracy"] == pytest.approx(0.5)
    assert m["auc"] == pytest.approx(0.5)


def test_classification_perfect():
    m = MetricsEngine.classification([1, 0, 1, 0], [0.9, 0.1, 0.8, 0.2])

    assert m["accuracy"] == 1.0
    assert m["auc"] == 1.0
    assert m["loss"] > 0.0


def test_threshold_is_strictly_greater():
    m = MetricsEngine.classification([0], [0.5])
    assert m["accuracy"] == 1.0


def test_single_class_validation_does_not_divide_by_zero():
    m = MetricsEngine.classification([1, 1], [0.9, 0.7])
    assert m["auc"] == pytest.approx(1.0)


def test_empty_rejected():
    with pytest.raises(ValueError):
        MetricsEngine.regression([], [])
