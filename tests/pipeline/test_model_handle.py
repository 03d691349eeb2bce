from __future__ import annotations

import threading

import numpy as np
import pytest

from virality.pipeline.model_handle import ModelHandle
from virality.training.engines.trainer import Trainer
from virality.utils.errors import ModelNotLoadedError, TrainingInProgressError


def test_empty_handle_has_no_artifact():
    handle = ModelHandle()

    assert not handle.loaded
    with pytest.raises(ModelNotLoadedError):
        _ = handle.artifact


def test_replace_and_dispose(trained_artifact):
    handle = ModelHandle()

    assert handle.replace(trained_artifact) is None
    assert handle.artifact is trained_artifact

    handle.dispose()
    assert not handle.loaded


def test_load_from_dir(tmp_path, trained_artifact):
    trained_artifact.save(tmp_path)
    handle = ModelHandle()

    handle.load(tmp_path)

    assert handle.artifact.meta.run_id == trained_artifact.meta.run_id


def test_second_fit_rejected_while_first_runs(small_cfg, dataset, make_artifact):
    handle = ModelHandle()
    started = threading.Event()
    release = threading.Event()
    outcome = {}

    def _slow_train(stop_event):
        started.set()
        release.wait(timeout=10)
        return Trainer(small_cfg).fit(dataset, stop_event=stop_event)

    def _first():
        outcome["result"] = handle.fit(_slow_train, make_artifact)

    worker = threading.Thread(target=_first)
    worker.start()
    assert started.wait(timeout=10)

    assert handle.training
    with pytest.raises(TrainingInProgressError):
        handle.fit(lambda ev: Trainer(small_cfg).fit(dataset, stop_event=ev), make_artifact)

    release.set()
    worker.join(timeout=60)

    # first run unaffected by the rejected call
    expected = Trainer(small_cfg).fit(dataset)
    for la, lb in zip(outcome["result"].weights.layers, expected.weights.layers):
        assert np.array_equal(la.W, lb.W)
    assert handle.loaded
    assert not handle.training


def test_request_stop_observed_between_epochs(small_cfg, dataset, make_artifact):
    handle = ModelHandle()
    small_cfg.epochs = 20

    def _on_epoch(record):
        if record.epoch == 3:
            assert handle.request_stop()

    result = handle.fit(
        lambda ev: Trainer(small_cfg).fit(dataset, stop_event=ev, on_epoch=_on_epoch),
        make_artifact,
    )

    assert result.status == "stopped"
    assert len(result.history) == 3
    assert handle.artifact.meta.status == "stopped"
    assert not handle.request_stop()


def test_run_without_epochs_keeps_current_model(small_cfg, dataset, make_artifact, trained_artifact):
    handle = ModelHandle(trained_artifact)

    def _stopped_immediately(stop_event):
        stop_event.set()
        return Trainer(small_cfg).fit(dataset, stop_event=stop_event)

    result = handle.fit(_stopped_immediately, make_artifact)

    assert len(result.history) == 0
    assert handle.artifact is trained_artifact


def test_failed_run_keeps_current_model_and_releases(small_cfg, dataset, make_artifact, trained_artifact):
    handle = ModelHandle(trained_artifact)

    def _boom(stop_event):
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        handle.fit(_boom, make_artifact)

    assert handle.artifact is trained_artifact
    assert not handle.training
