import numpy as np
import pytest

from virality.training.engines.network import (
    Network,
    NetworkWeights,
    bce_loss,
    evaluate,
    evaluate_batch,
    mse_loss,
)


def _network(**overrides):
    kwargs = dict(
        input_dim=6,
        hidden_units=[8, 4],
        dropout_rates=[0.3, 0.0],
        l2=[0.001, 0.0],
        output_activation="sigmoid",
        learning_rate=0.01,
        seed=1,
    )
    kwargs.update(overrides)
    return Network(**kwargs)


def test_topology_and_summary():
    weights = _network().freeze()

    assert weights.input_dim == 6
    assert weights.output_activation == "sigmoid"
    assert weights.summary()["units"] == [8, 4, 1]
    assert weights.param_count == (6 * 8 + 8) + (8 * 4 + 4) + (4 * 1 + 1)


def test_same_seed_same_training():
    X = np.random.default_rng(0).normal(size=(16, 6))
    y = (X[:, 0] > 0).astype(float)

    a, b = _network(), _network()
    for _ in range(3):
        loss_a, _ = a.train_batch(X, y)
        loss_b, _ = b.train_batch(X, y)
        assert loss_a == loss_b

    for la, lb in zip(a.freeze().layers, b.freeze().layers):
        assert np.array_equal(la.W, lb.W)


def test_inference_ignores_dropout():
    weights = _network(dropout_rates=[0.5, 0.5]).freeze()
    x = np.linspace(-1, 1, 6)

    assert evaluate(weights, x) == evaluate(weights, x)
    assert evaluate(weights, x) == evaluate_batch(weights, x.reshape(1, -1))[0]


def test_sigmoid_output_in_unit_interval():
    weights = _network().freeze()
    out = evaluate_batch(weights, np.random.default_rng(2).normal(scale=50.0, size=(32, 6)))

    assert np.all((out >= 0.0) & (out <= 1.0))


def test_training_reduces_loss():
    rng = np.random.default_rng(4)
    X = rng.normal(size=(64, 6))
    y = X[:, 0] * 0.5 - X[:, 1] * 0.25
    net = _network(output_activation="linear", dropout_rates=[0.0, 0.0], l2=[0.0, 0.0])

    first, _ = net.train_batch(X, y)
    for _ in range(200):
        last, _ = net.train_batch(X, y)

    assert last < first


def test_frozen_weights_are_read_only():
    weights = _network().freeze()

    with pytest.raises(ValueError):
        weights.layers[0].W[0, 0] = 1.0


def test_state_round_trip():
    weights = _network().freeze()
    restored = NetworkWeights.from_state(weights.to_state())
    x = np.arange(6, dtype=float)

    assert evaluate(restored, x) == evaluate(weights, x)


def test_from_state_rejects_bad_topology():
    state = _network().freeze().to_state()
    state[-1]["W"] = np.zeros((4, 2))
    state[-1]["b"] = np.zeros(2)

    with pytest.raises(ValueError):
        NetworkWeights.from_state(state)

    with pytest.raises(ValueError):
        NetworkWeights.from_state([])


def test_input_width_checked():
    with pytest.raises(ValueError):
        evaluate(_network().freeze(), [1.0, 2.0])


def test_losses():
    assert mse_loss([1.0, 3.0], [1.0, 1.0]) == pytest.approx(2.0)
    # clipping keeps log(0) out
    assert np.isfinite(bce_loss([0.0, 1.0], [1.0, 0.0]))
    assert bce_loss([0.5], [1.0]) == pytest.approx(np.log(2.0))


def test_unknown_output_activation_rejected():
    with pytest.raises(ValueError):
        _network(output_activation="relu")
