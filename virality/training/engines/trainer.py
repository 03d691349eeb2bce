# virality/training/engines/trainer.py
from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

import numpy as np
from sklearn.model_selection import train_test_split

from virality import logs
from virality.config.training_config import TrainingConfig
from virality.observability.instrumentation import Instrumentation, NoOpInstrumentation
from virality.training.engines.dataset_build_engine import Dataset
from virality.training.engines.label_transform import LabelTransform
from virality.training.engines.metrics_engine import MetricsEngine
from virality.training.engines.network import Network, NetworkWeights, evaluate_batch
from virality.training.engines.scaler_engine import Scaler, ScalerStats
from virality.training.engines.train_result import EpochRecord, TrainingHistory, TrainResult
from virality.utils.errors import EmptyDatasetError, SchemaError, TrainingDivergedError

EpochCallback = Callable[[EpochRecord], None]


@dataclass
class PreparedData:
    X_train: np.ndarray
    y_train: np.ndarray
    X_val: np.ndarray
    y_val: np.ndarray


class Trainer:
    """
    Trainer（Day-Scoped Batch Training）

    Semantics:
    - one call to `fit` == one training run on a closed, finite Dataset
    - the run owns a fresh Network; nothing outside sees it until freeze()
    - stop_event is observed at epoch boundaries only; a stop keeps
      every completed epoch
    - non-finite loss / metric aborts with TrainingDivergedError
    """

    def __init__(self, cfg: TrainingConfig, inst: Instrumentation | None = None):
        self.cfg = cfg
        self.inst = inst if inst is not None else NoOpInstrumentation()
        self.metrics = MetricsEngine()

    # ======================================================================
    # Public API
    # ======================================================================
    def fit_stats(self, dataset: Dataset) -> tuple[ScalerStats, Optional[LabelTransform]]:
        """
        Normalization parameters for this dataset (scaler on all rows).
        """
        stats = Scaler(self.cfg.scaler).fit(dataset.features(), dataset.feature_names)

        label_transform = None
        if self.cfg.task_type == "regression" and self.cfg.log_target:
            label_transform = LabelTransform.fit(
                dataset.targets(), log10=True, label_name=dataset.label_name
            )
        return stats, label_transform

    def fit(
            self,
            dataset: Dataset,
            *,
            stats: ScalerStats | None = None,
            label_transform: LabelTransform | None = None,
            stop_event: threading.Event | None = None,
            on_epoch: EpochCallback | None = None,
    ) -> TrainResult:
        cfg = self.cfg

        if stats is None:
            stats, label_transform = self.fit_stats(dataset)
        elif label_transform is None and cfg.task_type == "regression" and cfg.log_target:
            raise SchemaError(
                "log_target is set but no label transform was given with the scaler stats",
                columns=[dataset.label_name],
            )
        if tuple(stats.feature_names) != tuple(dataset.feature_names):
            raise SchemaError(
                "scaler stats were fit on different features",
                columns=dataset.feature_names,
            )

        data = self._prepare(dataset, stats, label_transform)

        network = Network(
            input_dim=data.X_train.shape[1],
            hidden_units=cfg.network.hidden_units,
            dropout_rates=cfg.network.dropout_rates,
            l2=cfg.network.l2,
            output_activation=cfg.output_activation,
            learning_rate=cfg.learning_rate,
            seed=cfg.seed,
        )
        shuffle_rng = np.random.default_rng(cfg.seed)

        history = TrainingHistory()
        status = "completed"

        logs.info(
            f"[Trainer] START name={cfg.name} task={cfg.task_type} "
            f"train={len(data.y_train)} val={len(data.y_val)} epochs={cfg.epochs}"
        )
        self.inst.progress.start("train", cfg.epochs, "epochs")

        for epoch in range(1, cfg.epochs + 1):
            if stop_event is not None and stop_event.is_set():
                status = "stopped"
                logs.warning(f"[Trainer] stop requested, ending after {len(history)} epoch(s)")
                break

            with self.inst.timer(f"epoch_{epoch}"):
                record = self._run_epoch(epoch, network, data, shuffle_rng)

            history.append(record)
            self.inst.metrics.record("val_loss", record.val_loss)
            self._log_epoch(record)
            self.inst.progress.update("train", epoch, cfg.epochs, "epochs")

            if on_epoch is not None:
                on_epoch(record)

        self.inst.progress.done("train")

        weights = network.freeze()
        metrics = self._final_metrics(history, weights, data, label_transform)
        logs.info(f"[Trainer] DONE status={status} epochs={len(history)} metrics={metrics}")

        return TrainResult(
            weights=weights,
            stats=stats,
            label_transform=label_transform,
            history=history,
            status=status,
            metrics=metrics,
        )

    # ======================================================================
    # Internal
    # ======================================================================
    def _prepare(
            self,
            dataset: Dataset,
            stats: ScalerStats,
            label_transform: LabelTransform | None,
    ) -> PreparedData:
        if len(dataset) < 2:
            raise EmptyDatasetError(
                f"need at least 2 rows for a train/validation split, got {len(dataset)}"
            )

        X = Scaler.apply(stats, dataset.features())
        y = dataset.targets()

        if self.cfg.task_type == "classification":
            bad = sorted(set(np.unique(y)) - {0.0, 1.0})
            if bad:
                raise SchemaError(
                    f"{dataset.label_name} must be 0/1 for classification, found {bad[:5]}",
                    columns=[dataset.label_name],
                )
        elif label_transform is not None:
            y = label_transform.forward(y)

        X_train, X_val, y_train, y_val = train_test_split(
            X,
            y,
            test_size=self.cfg.validation_split,
            shuffle=self.cfg.shuffle_split,
            random_state=self.cfg.seed if self.cfg.shuffle_split else None,
        )
        return PreparedData(X_train=X_train, y_train=y_train, X_val=X_val, y_val=y_val)

    def _run_epoch(
            self,
            epoch: int,
            network: Network,
            data: PreparedData,
            rng: np.random.Generator,
    ) -> EpochRecord:
        start = time.perf_counter()
        n = len(data.y_train)
        order = rng.permutation(n)

        loss_sum = 0.0
        preds = np.empty(n, dtype=np.float64)
        for lo in range(0, n, self.cfg.batch_size):
            idx = order[lo:lo + self.cfg.batch_size]
            batch_loss, batch_pred = network.train_batch(data.X_train[idx], data.y_train[idx])
            if not math.isfinite(batch_loss):
                raise TrainingDivergedError(
                    f"non-finite training loss at epoch {epoch}", epoch=epoch
                )
            loss_sum += batch_loss * len(idx)
            preds[idx] = batch_pred

        loss = loss_sum / n
        val_pred = network.predict(data.X_val)
        y_train = data.y_train

        if self.cfg.task_type == "classification":
            val = self.metrics.classification(data.y_val, val_pred)
            train_acc = float(np.mean((preds > 0.5) == (y_train > 0.5)))
            record = EpochRecord(
                epoch=epoch,
                loss=loss,
                val_loss=val["loss"],
                accuracy=train_acc,
                val_accuracy=val["accuracy"],
                auc=val["auc"],
            )
        else:
            val = self.metrics.regression(data.y_val, val_pred)
            record = EpochRecord(
                epoch=epoch,
                loss=loss,
                val_loss=val["mse"],
                mae=float(np.mean(np.abs(preds - y_train))),
                val_mae=val["mae"],
                r2=val["r2"],
            )

        numbers = [v for k, v in record.as_dict().items() if isinstance(v, float) and k != "seconds"]
        if not all(math.isfinite(v) for v in numbers):
            raise TrainingDivergedError(f"non-finite metric at epoch {epoch}: {record}", epoch=epoch)

        return EpochRecord(**{**record.as_dict(), "seconds": time.perf_counter() - start})

    def _final_metrics(
            self,
            history: TrainingHistory,
            weights: NetworkWeights,
            data: PreparedData,
            label_transform: LabelTransform | None,
    ) -> Dict[str, float]:
        last = history.last
        if last is None:
            return {}

        if self.cfg.task_type == "classification":
            return {
                "loss": last.loss,
                "val_loss": last.val_loss,
                "accuracy": last.accuracy,
                "val_accuracy": last.val_accuracy,
                "auc": last.auc,
            }

        metrics = {"mse": last.val_loss, "mae": last.val_mae, "r2": last.r2}
        if label_transform is not None:
            pred = label_transform.inverse(evaluate_batch(weights, data.X_val))
            actual = label_transform.inverse(data.y_val)
            metrics["mae_original"] = float(np.mean(np.abs(pred - actual)))
        return metrics

    def _log_epoch(self, r: EpochRecord) -> None:
        if self.cfg.task_type == "classification":
            logs.info(
                f"[Trainer] epoch={r.epoch}/{self.cfg.epochs} loss={r.loss:.4f} "
                f"val_loss={r.val_loss:.4f} acc={r.accuracy:.4f} "
                f"val_acc={r.val_accuracy:.4f} auc={r.auc:.4f}"
            )
        else:
            logs.info(
                f"[Trainer] epoch={r.epoch}/{self.cfg.epochs} loss={r.loss:.6f} "
                f"val_loss={r.val_loss:.6f} mae={r.mae:.6f} val_mae={r.val_mae:.6f} r2={r.r2:.4f}"
            )
