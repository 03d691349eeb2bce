import time

from loguru import logger

from virality.observability.instrumentation import Instrumentation, NoOpInstrumentation


def test_instrumentation_timer():
    inst = Instrumentation(enabled=True)

    with inst.timer("step_A"):
        time.sleep(0.01)

    assert "step_A" in inst.timeline
    assert inst.timeline["step_A"] > 0


def test_parent_timer_not_recorded():
    inst = Instrumentation(enabled=True)

    with inst.timer("parent", record=False):
        with inst.timer("leaf"):
            pass

    assert list(inst.timeline) == ["leaf"]


def test_instrumentation_metrics():
    inst = Instrumentation(enabled=True)
    inst.metrics.record("val_accuracy", 0.75)

    assert inst.metrics.metrics["val_accuracy"] == 0.75


def test_report_timeline():
    inst = Instrumentation(enabled=True)

    with inst.timer("epoch_1"):
        time.sleep(0.005)

    captured = []
    sink_id = logger.add(lambda msg: captured.append(str(msg)))
    inst.report_timeline("train run-1")
    logger.remove(sink_id)

    output = "\n".join(captured)
    assert "epoch_1" in output
    assert "train run-1" in output


def test_noop_instrumentation():
    inst = NoOpInstrumentation()

    with inst.timer("x"):
        pass
    inst.metrics.record("a", 1)
    inst.progress.start("t", 3)

    assert inst.timeline == {}
    assert inst.metrics.metrics == {}


def test_metric_series_keeps_every_value():
    inst = Instrumentation(enabled=True)
    for v in (0.9, 0.7, 0.6):
        inst.metrics.record("val_loss", v)

    assert inst.metrics.latest("val_loss") == 0.6
    assert inst.metrics.series["val_loss"] == [0.9, 0.7, 0.6]
