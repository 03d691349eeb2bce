# virality/pipeline/model_handle.py
from __future__ import annotations

import threading
from pathlib import Path
from typing import Callable, Optional

from virality import logs
from virality.pipeline.model_artifact import ModelArtifact
from virality.training.engines.train_result import TrainResult
from virality.utils.errors import ModelNotLoadedError, TrainingInProgressError


class ModelHandle:
    """
    ModelHandle（caller-owned, explicit lifecycle）

    Lifecycle:
        empty --load/replace/fit--> loaded --dispose--> empty

    Rules:
    - at most one fit runs against a handle; a second one is rejected, not queued
    - readers get the artifact that was current when they asked; an in-flight
      fit never exposes half-trained weights
    - request_stop is advisory: the trainer observes it at the next epoch boundary
    """

    def __init__(self, artifact: ModelArtifact | None = None):
        self._artifact = artifact
        self._state_lock = threading.Lock()
        self._train_lock = threading.Lock()
        self._stop_event = threading.Event()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def loaded(self) -> bool:
        with self._state_lock:
            return self._artifact is not None

    @property
    def training(self) -> bool:
        return self._train_lock.locked()

    @property
    def artifact(self) -> ModelArtifact:
        with self._state_lock:
            artifact = self._artifact
        if artifact is None:
            raise ModelNotLoadedError("no model loaded: train or load an artifact first")
        return artifact

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def load(self, artifact_dir: Path) -> ModelArtifact:
        artifact = ModelArtifact.load(artifact_dir)
        self.replace(artifact)
        return artifact

    def replace(self, artifact: ModelArtifact) -> Optional[ModelArtifact]:
        """Swap in a new artifact; returns the one it superseded."""
        with self._state_lock:
            previous, self._artifact = self._artifact, artifact
        logs.info(f"[ModelHandle] replaced model run_id={artifact.meta.run_id}")
        return previous

    def dispose(self) -> None:
        with self._state_lock:
            self._artifact = None
        logs.info("[ModelHandle] disposed")

    # ------------------------------------------------------------------
    # Training ownership
    # ------------------------------------------------------------------
    def fit(
            self,
            train: Callable[[threading.Event], TrainResult],
            publish: Callable[[TrainResult], ModelArtifact],
    ) -> TrainResult:
        """
        Run `train(stop_event)` as the single owner of this handle.

        On return, `publish(result)` builds the artifact that replaces the
        current one, provided at least one epoch completed. A diverged or
        failed run leaves the current artifact untouched.
        """
        if not self._train_lock.acquire(blocking=False):
            raise TrainingInProgressError("a training run already owns this model handle")

        try:
            self._stop_event.clear()
            result = train(self._stop_event)

            if len(result.history) > 0:
                self.replace(publish(result))
            else:
                logs.warning("[ModelHandle] run ended before the first epoch, model kept")
            return result
        finally:
            self._stop_event.clear()
            self._train_lock.release()

    def request_stop(self) -> bool:
        """Ask the active run to stop; False when nothing is training."""
        if not self.training:
            return False
        self._stop_event.set()
        logs.info("[ModelHandle] stop requested")
        return True
