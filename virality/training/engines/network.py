# virality/training/engines/network.py
"""
Fixed-topology feed-forward network.

    [input] -> Dense(relu) [-> Dropout] ... -> Dense(1, sigmoid | linear)

Two faces:
- `NetworkWeights` + `evaluate` / `evaluate_batch`: frozen, pure
  matrix-vector arithmetic used at inference. Dropout does not exist here.
- `Network`: trainable parameters + Adam state, owned by one Trainer run.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Sequence, Tuple

import numpy as np

Activation = Literal["relu", "sigmoid", "linear"]

PROB_EPSILON = 1e-7


# ============================================================
# Activations / losses
# ============================================================
def _activate(z: np.ndarray, kind: str) -> np.ndarray:
    if kind == "relu":
        return np.maximum(z, 0.0)
    if kind == "sigmoid":
        return 0.5 * (1.0 + np.tanh(0.5 * z))
    if kind == "linear":
        return z
    raise ValueError(f"unknown activation: {kind}")


def mse_loss(pred: np.ndarray, target: np.ndarray) -> float:
    pred = np.asarray(pred, dtype=np.float64).ravel()
    target = np.asarray(target, dtype=np.float64).ravel()
    return float(np.mean((pred - target) ** 2))


def bce_loss(prob: np.ndarray, target: np.ndarray) -> float:
    """Binary cross-entropy with probabilities clipped to [1e-7, 1 - 1e-7]."""
    p = np.clip(np.asarray(prob, dtype=np.float64).ravel(), PROB_EPSILON, 1.0 - PROB_EPSILON)
    t = np.asarray(target, dtype=np.float64).ravel()
    return float(-np.mean(t * np.log(p) + (1.0 - t) * np.log(1.0 - p)))


# ============================================================
# Frozen weights (inference)
# ============================================================
@dataclass(frozen=True)
class LayerWeights:
    W: np.ndarray  # (in, out)
    b: np.ndarray  # (out,)
    activation: Activation
    dropout: float = 0.0  # training-time only, recorded for the summary
    l2: float = 0.0

    @property
    def param_count(self) -> int:
        return int(self.W.size + self.b.size)


@dataclass(frozen=True)
class NetworkWeights:
    layers: Tuple[LayerWeights, ...]

    @property
    def input_dim(self) -> int:
        return int(self.layers[0].W.shape[0])

    @property
    def output_activation(self) -> str:
        return self.layers[-1].activation

    @property
    def param_count(self) -> int:
        return sum(layer.param_count for layer in self.layers)

    def summary(self) -> Dict[str, Any]:
        return {
            "layers": len(self.layers),
            "units": [int(layer.W.shape[1]) for layer in self.layers],
            "activations": [layer.activation for layer in self.layers],
            "total_params": self.param_count,
            "trainable_params": self.param_count,
        }

    # ---------- persistence (plain dicts of arrays, joblib-friendly) ----------
    def to_state(self) -> List[Dict[str, Any]]:
        return [
            {
                "W": layer.W,
                "b": layer.b,
                "activation": layer.activation,
                "dropout": layer.dropout,
                "l2": layer.l2,
            }
            for layer in self.layers
        ]

    @classmethod
    def from_state(cls, state: Sequence[Dict[str, Any]]) -> "NetworkWeights":
        if not state:
            raise ValueError("empty network state")

        layers = []
        prev_out = None
        for i, item in enumerate(state):
            W = _readonly(np.asarray(item["W"], dtype=np.float64))
            b = _readonly(np.asarray(item["b"], dtype=np.float64).ravel())
            if W.ndim != 2 or b.shape != (W.shape[1],):
                raise ValueError(f"layer {i}: bad shapes W={W.shape} b={b.shape}")
            if prev_out is not None and W.shape[0] != prev_out:
                raise ValueError(f"layer {i}: expects {W.shape[0]} inputs, previous emits {prev_out}")
            layers.append(
                LayerWeights(
                    W=W,
                    b=b,
                    activation=item["activation"],
                    dropout=float(item.get("dropout", 0.0)),
                    l2=float(item.get("l2", 0.0)),
                )
            )
            prev_out = W.shape[1]

        if prev_out != 1:
            raise ValueError(f"output layer must have 1 unit, has {prev_out}")
        return cls(layers=tuple(layers))


def evaluate_batch(weights: NetworkWeights, X) -> np.ndarray:
    """(n, d) -> (n,) network outputs. Pure; no dropout."""
    a = np.asarray(X, dtype=np.float64)
    if a.ndim == 1:
        a = a.reshape(1, -1)
    if a.shape[1] != weights.input_dim:
        raise ValueError(f"network expects {weights.input_dim} inputs, got {a.shape[1]}")
    for layer in weights.layers:
        a = _activate(a @ layer.W + layer.b, layer.activation)
    return a[:, 0]


def evaluate(weights: NetworkWeights, x) -> float:
    """Single input vector -> scalar output."""
    return float(evaluate_batch(weights, np.asarray(x, dtype=np.float64).reshape(1, -1))[0])


# ============================================================
# Trainable network
# ============================================================
class _DenseParams:
    def __init__(self, W: np.ndarray, activation: str, dropout: float, l2: float):
        self.W = W
        self.b = np.zeros(W.shape[1], dtype=np.float64)
        self.activation = activation
        self.dropout = dropout
        self.l2 = l2

        # Adam moments
        self.mW = np.zeros_like(self.W)
        self.vW = np.zeros_like(self.W)
        self.mb = np.zeros_like(self.b)
        self.vb = np.zeros_like(self.b)


class Network:
    """
    Trainable MLP (Adam, L2 on kernels, inverted dropout).

    Owned by exactly one Trainer run; `freeze()` hands out an independent
    read-only copy.
    """

    def __init__(
            self,
            *,
            input_dim: int,
            hidden_units: Sequence[int],
            dropout_rates: Sequence[float],
            l2: Sequence[float],
            output_activation: Activation,
            learning_rate: float = 1e-3,
            seed: int = 42,
            beta1: float = 0.9,
            beta2: float = 0.999,
            eps: float = 1e-7,
    ):
        if output_activation not in ("sigmoid", "linear"):
            raise ValueError(f"output activation must be sigmoid or linear, got {output_activation}")

        self.rng = np.random.default_rng(seed)
        self.lr = learning_rate
        self.beta1 = beta1
        self.beta2 = beta2
        self.eps = eps
        self.t = 0

        dims = [input_dim, *hidden_units, 1]
        acts = ["relu"] * len(hidden_units) + [output_activation]
        drops = list(dropout_rates) + [0.0]
        l2s = list(l2) + [0.0]

        self.layers: List[_DenseParams] = []
        for fan_in, fan_out, act, rate, reg in zip(dims[:-1], dims[1:], acts, drops, l2s):
            # Glorot uniform
            limit = math.sqrt(6.0 / (fan_in + fan_out))
            W = self.rng.uniform(-limit, limit, size=(fan_in, fan_out))
            self.layers.append(_DenseParams(W, act, rate, reg))

    @property
    def output_activation(self) -> str:
        return self.layers[-1].activation

    # ------------------------------------------------------------------
    # Training step
    # ------------------------------------------------------------------
    def train_batch(self, X: np.ndarray, y: np.ndarray) -> Tuple[float, np.ndarray]:
        """
        One forward + backward + Adam update on a mini-batch.

        Returns (loss incl. L2 penalty, batch outputs). Activations and masks
        live only for the duration of this call.
        """
        X = np.asarray(X, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64).reshape(-1, 1)
        n = X.shape[0]

        inputs: List[np.ndarray] = []
        outputs: List[np.ndarray] = []
        masks: List[np.ndarray | None] = []
        try:
            a = X
            for layer in self.layers:
                inputs.append(a)
                a = _activate(a @ layer.W + layer.b, layer.activation)
                mask = None
                if layer.dropout > 0.0:
                    mask = (self.rng.random(a.shape) >= layer.dropout) / (1.0 - layer.dropout)
                    a = a * mask
                outputs.append(a)
                masks.append(mask)

            pred = a
            if self.output_activation == "sigmoid":
                loss = bce_loss(pred, y)
                # d(BCE)/dz for a sigmoid output
                grad = (pred - y) / n
            else:
                loss = mse_loss(pred, y)
                grad = 2.0 * (pred - y) / n
            loss += sum(layer.l2 * float(np.sum(layer.W ** 2)) for layer in self.layers)

            grads = []
            for i in range(len(self.layers) - 1, -1, -1):
                layer = self.layers[i]
                if masks[i] is not None:
                    grad = grad * masks[i]
                if layer.activation == "relu":
                    grad = grad * (outputs[i] > 0.0)
                dW = inputs[i].T @ grad + 2.0 * layer.l2 * layer.W
                db = grad.sum(axis=0)
                grads.append((layer, dW, db))
                if i > 0:
                    grad = grad @ layer.W.T

            self._adam_step(grads)
            return float(loss), pred[:, 0].copy()
        finally:
            inputs.clear()
            outputs.clear()
            masks.clear()

    def predict(self, X) -> np.ndarray:
        """Inference-mode outputs of the current parameters (no dropout)."""
        return evaluate_batch(self.freeze(), X)

    def freeze(self) -> NetworkWeights:
        return NetworkWeights(
            layers=tuple(
                LayerWeights(
                    W=_readonly(layer.W.copy()),
                    b=_readonly(layer.b.copy()),
                    activation=layer.activation,
                    dropout=layer.dropout,
                    l2=layer.l2,
                )
                for layer in self.layers
            )
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------
    def _adam_step(self, grads) -> None:
        self.t += 1
        c1 = 1.0 - self.beta1 ** self.t
        c2 = 1.0 - self.beta2 ** self.t
        for layer, dW, db in grads:
            layer.mW = self.beta1 * layer.mW + (1.0 - self.beta1) * dW
            layer.vW = self.beta2 * layer.vW + (1.0 - self.beta2) * dW ** 2
            layer.mb = self.beta1 * layer.mb + (1.0 - self.beta1) * db
            layer.vb = self.beta2 * layer.vb + (1.0 - self.beta2) * db ** 2

            layer.W = layer.W - self.lr * (layer.mW / c1) / (np.sqrt(layer.vW / c2) + self.eps)
            layer.b = layer.b - self.lr * (layer.mb / c1) / (np.sqrt(layer.vb / c2) + self.eps)


def _readonly(a: np.ndarray) -> np.ndarray:
    a.setflags(write=False)
    return a
