import threading

import pytest

from orderbook.thread_pool import ThreadPool


def test_submit_returns_result():
    with ThreadPool(2) as pool:
        future = pool.submit(lambda a, b: a + b, 2, 3)
        assert future.result(timeout=5) == 5


def test_submit_passes_kwargs():
    with ThreadPool(1) as pool:
        future = pool.submit(lambda text, *, sep: sep.join(text), ["x", "y"], sep="-")
        assert future.result(timeout=5) == "x-y"


def test_exception_is_stored_in_future():
    def fail():
        raise KeyError("missing")

    with ThreadPool(1) as pool:
        future = pool.submit(fail)
        with pytest.raises(KeyError):
            future.result(timeout=5)


def test_many_jobs_all_run():
    results = []
    lock = threading.Lock()

    def record(i):
        with lock:
            results.append(i)
        return i * 2

    with ThreadPool(4) as pool:
        futures = [pool.submit(record, i) for i in range(200)]
        values = [f.result(timeout=10) for f in futures]
    assert values == [i * 2 for i in range(200)]
    assert sorted(results) == list(range(200))


def test_disabled_pool_holds_jobs_until_start():
    pool = ThreadPool(2, enabled=False)
    try:
        future = pool.submit(lambda: "ran")
        assert future.done() is False
        pool.start()
        assert future.result(timeout=5) == "ran"
    finally:
        pool.stop()


def test_stop_cancels_pending_jobs():
    pool = ThreadPool(2, enabled=False)
    future = pool.submit(lambda: "never")
    pool.stop()
    assert future.cancelled()


def test_stop_waits_for_running_job():
    started = threading.Event()
    release = threading.Event()

    def job():
        started.set()
        release.wait(5)
        return "finished"

    pool = ThreadPool(1)
    future = pool.submit(job)
    assert started.wait(5)
    releaser = threading.Timer(0.05, release.set)
    releaser.start()
    pool.stop()
    releaser.join()
    assert future.result(timeout=0) == "finished"


def test_restart_after_stop():
    pool = ThreadPool(2)
    pool.stop()
    pool.start()
    try:
        assert pool.submit(lambda: 7).result(timeout=5) == 7
    finally:
        pool.stop()