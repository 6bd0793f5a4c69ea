"""A fixed pool of worker threads fed from a bounded job queue."""

from __future__ import annotations

import os
import sys
import threading
from concurrent.futures import Future
from typing import Any, Callable, Optional

from orderbook.spsc_queue import QueueEmpty, SPSCQueue

_QUEUE_CAPACITY = 1000
_POLL_INTERVAL = 0.1


class _Job:
    __slots__ = ("future", "fn", "args", "kwargs")

    def __init__(self, fn: Callable[..., Any], args: tuple, kwargs: dict) -> None:
        self.future: Future = Future()
        self.fn = fn
        self.args = args
        self.kwargs = kwargs

    def run(self) -> None:
        if not self.future.set_running_or_notify_cancel():
            return
        try:
            result = self.fn(*self.args, **self.kwargs)
        except BaseException as exc:
            self.future.set_exception(exc)
        else:
            self.future.set_result(result)


class ThreadPool:
    """Runs submitted callables on ``nthreads`` worker threads.

    A pool created with ``enabled=False`` holds submitted jobs until
    ``start()`` is called. ``join()`` and ``stop()`` cancel jobs still queued.
    """

    def __init__(self, nthreads: Optional[int] = None, enabled: bool = True) -> None:
        self._nthreads = nthreads if nthreads is not None else (os.cpu_count() or 1)
        self._enabled = enabled
        self._terminating = False
        self._threads: list[threading.Thread] = []
        self._jobs: SPSCQueue[Optional[_Job]] = SPSCQueue(_QUEUE_CAPACITY)
        self._spawn()

    def _spawn(self) -> None:
        for _ in range(self._nthreads):
            thread = threading.Thread(target=self._worker, daemon=True)
            try:
                thread.start()
            except RuntimeError as exc:
                print(f"Failed to create thread: {exc}", file=sys.stderr)
                self._enabled = False
                self._terminating = True
                return
            self._threads.append(thread)

    def _worker(self) -> None:
        while self._enabled and not self._terminating:
            try:
                job = self._jobs.pop_wait(_POLL_INTERVAL)
            except QueueEmpty:
                continue
            if job is not None:
                job.run()

    def _drain(self) -> None:
        while True:
            try:
                job = self._jobs.pop()
            except QueueEmpty:
                return
            if job is not None:
                job.future.cancel()

    def start(self) -> None:
        """Enable the pool and start a fresh set of workers."""
        self._enabled = True
        self._terminating = False
        self._spawn()

    def stop(self) -> None:
        """Disable the pool and wait for its workers to finish."""
        self._enabled = False
        self._terminating = True
        self.join()

    def join(self) -> None:
        """Cancel queued jobs, let workers finish their current job and wait for them."""
        self._terminating = True
        self._drain()
        for _ in range(self._nthreads):
            self._jobs.push_wait(None, None)
        for thread in self._threads:
            if thread.is_alive() and thread is not threading.current_thread():
                thread.join()
        self._threads.clear()
        self._drain()
        self._terminating = False

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        """Queue ``fn(*args, **kwargs)`` and return a Future for its result."""
        job = _Job(fn, args, kwargs)
        while not self._jobs.push_wait(job, _POLL_INTERVAL):
            print(f"ThreadPool: Queue full, size={len(self._jobs)}", file=sys.stderr)
        return job.future

    def __enter__(self) -> "ThreadPool":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()