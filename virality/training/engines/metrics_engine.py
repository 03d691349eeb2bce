# virality/training/engines/metrics_engine.py
from __future__ import annotations

from typing import Dict

import numpy as np
from sklearn.metrics import (
    accuracy_score,
    confusion_matrix,
    mean_absolute_error,
    mean_squared_error,
    r2_score,
)

from virality.training.engines.network import bce_loss

DECISION_THRESHOLD = 0.5


class MetricsEngine:
    """
    MetricsEngine（FINAL / FROZEN）

    Responsibility:
    - validation metrics, computed independently of the optimizer loss
    - return pure metrics dict (no side effects)
    """

    @staticmethod
    def regression(y_true, y_pred) -> Dict[str, float]:
        """
        MSE, MAE, R² = 1 - SS_res / SS_tot.

        A constant y_true (SS_tot == 0) yields R² = 1.0 for a perfect fit
        and 0.0 otherwise, never NaN.
        """
        y_true = np.asarray(y_true, dtype=np.float64).ravel()
        y_pred = np.asarray(y_pred, dtype=np.float64).ravel()
        if y_true.size == 0:
            raise ValueError("[MetricsEngine] empty eval dataset")

        r2 = r2_score(y_true, y_pred) if y_true.size > 1 else 0.0
        return {
            "mse": float(mean_squared_error(y_true, y_pred)),
            "mae": float(mean_absolute_error(y_true, y_pred)),
            "r2": float(r2),
        }

    @staticmethod
    def classification(y_true, y_prob) -> Dict[str, float]:
        """
        BCE loss, accuracy at p > 0.5, and a single-threshold AUC estimate.

        auc = (1 + TPR - FPR) / 2 from one confusion matrix at 0.5. This is
        a coarse approximation (the area under a one-point ROC), not a
        ROC sweep.
        """
        y_true = np.asarray(y_true, dtype=np.float64).ravel()
        y_prob = np.asarray(y_prob, dtype=np.float64).ravel()
        if y_true.size == 0:
            raise ValueError("[MetricsEngine] empty eval dataset")

        labels = y_true.astype(int)
        preds = (y_prob > DECISION_THRESHOLD).astype(int)

        tn, fp, fn, tp = confusion_matrix(labels, preds, labels=[0, 1]).ravel()
        tpr = tp / ((tp + fn) or 1)
        fpr = fp / ((fp + tn) or 1)

        return {
            "loss": bce_loss(y_prob, y_true),
            "accuracy": float(accuracy_score(labels, preds)),
            "auc": float((1.0 + tpr - fpr) / 2.0),
        }
