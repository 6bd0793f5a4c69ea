import threading
import time

import pytest

from orderbook.spsc_queue import QueueEmpty, SPSCQueue


def test_fifo_order():
    q = SPSCQueue(10)
    for value in ["a", "b", "c"]:
        assert q.push(value)
    assert [q.pop(), q.pop(), q.pop()] == ["a", "b", "c"]


def test_holds_capacity_minus_one():
    q = SPSCQueue(4)
    assert q.push(1)
    assert q.push(2)
    assert q.push(3)
    assert q.full()
    assert q.push(4) is False
    assert len(q) == 3


def test_capacity_one_is_always_full():
    q = SPSCQueue(1)
    assert q.full()
    assert q.push("x") is False


def test_invalid_capacity():
    with pytest.raises(ValueError):
        SPSCQueue(0)


def test_pop_empty_raises():
    q = SPSCQueue(3)
    assert q.empty()
    with pytest.raises(QueueEmpty):
        q.pop()


def test_pop_wait_times_out():
    q = SPSCQueue(3)
    start = time.monotonic()
    with pytest.raises(QueueEmpty):
        q.pop_wait(0.05)
    assert time.monotonic() - start >= 0.04


def test_push_wait_times_out_when_full():
    q = SPSCQueue(2)
    assert q.push("first")
    assert q.push_wait("second", 0.05) is False
    assert len(q) == 1


def test_push_wait_succeeds_after_pop():
    q = SPSCQueue(2)
    q.push("first")

    def consume():
        time.sleep(0.05)
        q.pop()

    t = threading.Thread(target=consume)
    t.start()
    assert q.push_wait("second", 2.0)
    t.join()
    assert q.pop() == "second"


def test_pop_wait_receives_from_other_thread():
    q = SPSCQueue(5)

    def produce():
        time.sleep(0.05)
        q.push("hello")

    t = threading.Thread(target=produce)
    t.start()
    assert q.pop_wait(2.0) == "hello"
    t.join()


def test_len_tracks_push_and_pop():
    q = SPSCQueue(8)
    for i in range(5):
        q.push(i)
    q.pop()
    assert len(q) == 4
    assert not q.empty()
    assert not q.full()


def test_producer_consumer_preserves_order():
    q = SPSCQueue(16)
    count = 2000
    received = []

    def produce():
        for i in range(count):
            assert q.push_wait(i, 5.0)

    def consume():
        for _ in range(count):
            received.append(q.pop_wait(5.0))

    producer = threading.Thread(target=produce)
    consumer = threading.Thread(target=consume)
    producer.start()
    consumer.start()
    producer.join()
    consumer.join()
    assert received == list(range(count))
    assert q.empty()