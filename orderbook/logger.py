"""Logger that writes messages to output and error streams from a background thread."""

from __future__ import annotations

import sys
import threading
from typing import Optional, TextIO

from orderbook.spsc_queue import QueueEmpty, SPSCQueue

_QUEUE_CAPACITY = 1000
_POLL_INTERVAL = 0.05

_OUT = "out"
_ERR = "err"


class Logger:
    """Writes lines to an output and an error stream.

    When enabled, messages are queued and written by a background thread;
    when disabled, they are written at once by the caller. A stream left as
    ``None`` means the current ``sys.stdout`` or ``sys.stderr``.
    """

    def __init__(
        self,
        out: Optional[TextIO] = None,
        err: Optional[TextIO] = None,
        enabled: bool = True,
    ) -> None:
        self._out = out
        self._err = err
        self._enabled = enabled
        self._queue: SPSCQueue[tuple[str, str]] = SPSCQueue(_QUEUE_CAPACITY)
        self._shutdown = threading.Event()
        self._write_lock = threading.Lock()
        self._thread = threading.Thread(target=self._run, name="logger", daemon=True)
        self._thread.start()

    def set_streams(self, out: Optional[TextIO], err: Optional[TextIO]) -> None:
        """Set the streams; ``None`` means the process's stdout or stderr."""
        self._out = out
        self._err = err

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = enabled

    def log_out(self, msg: str) -> None:
        self._log(_OUT, msg)

    def log_err(self, msg: str) -> None:
        self._log(_ERR, msg)

    def close(self) -> None:
        """Write everything still queued and stop the background thread."""
        self._shutdown.set()
        if self._thread.is_alive():
            self._thread.join()

    def __enter__(self) -> "Logger":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _log(self, kind: str, msg: str) -> None:
        if not self._enabled or self._shutdown.is_set():
            self._write(kind, msg)
            return
        # A full queue drops the message rather than blocking the caller.
        self._queue.push((kind, msg))

    def _stream(self, kind: str) -> TextIO:
        if kind == _ERR:
            return self._err if self._err is not None else sys.stderr
        return self._out if self._out is not None else sys.stdout

    def _write(self, kind: str, msg: str) -> None:
        with self._write_lock:
            stream = self._stream(kind)
            stream.write(msg + "\n")
            stream.flush()

    def _run(self) -> None:
        while True:
            try:
                kind, msg = self._queue.pop_wait(_POLL_INTERVAL)
            except QueueEmpty:
                if self._shutdown.is_set():
                    break
                continue
            self._write(kind, msg)


_default_logger: Optional[Logger] = None
_default_lock = threading.Lock()


def get_logger() -> Logger:
    """Return the process-wide logger, creating it on first use."""
    global _default_logger
    with _default_lock:
        if _default_logger is None:
            _default_logger = Logger()
        return _default_logger