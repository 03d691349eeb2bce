import time

from virality.observability.timer import Timer


def test_timer_measures_elapsed():
    timer = Timer()
    timer.start("a")
    time.sleep(0.01)

    assert timer.end("a") >= 0.005


def test_unknown_or_disabled_timer_is_zero():
    assert Timer().end("never-started") == 0.0

    disabled = Timer(enabled=False)
    disabled.start("a")
    assert disabled.end("a") == 0.0


def test_same_name_in_two_threads():
    import threading

    timer = Timer()
    results = {}

    def work(key, delay):
        timer.start("decode")
        time.sleep(delay)
        results[key] = timer.end("decode")

    threads = [threading.Thread(target=work, args=(k, d)) for k, d in (("a", 0.02), ("b", 0.001))]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results["a"] >= 0.015
    assert results["b"] > 0.0
