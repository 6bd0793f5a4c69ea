"""Staged order-processing pipeline: read lines, tokenize, parse, then match."""

from __future__ import annotations

import argparse
import random
import signal
import sys
import threading
from typing import Any, Iterable, Iterator, Optional

from orderbook.engine import MatchingEngine, MessageType
from orderbook.logger import Logger
from orderbook.spsc_queue import QueueEmpty, SPSCQueue
from orderbook.thread_pool import ThreadPool

_QUEUE_CAPACITY = 10000
_POLL_INTERVAL = 0.1

_STOP = object()


def generate_messages(
    num_messages: int = 100, rng: Optional[random.Random] = None
) -> list[str]:
    """Produce a random mix of add, cancel and malformed messages.

    About 90% are new orders with unique ids, about 9% cancel a live order
    and the rest are malformed in one of several ways.
    """
    rng = rng if rng is not None else random.Random()
    messages: list[str] = []
    active: list[int] = []
    for _ in range(num_messages):
        message_type = rng.randint(0, 99)
        if message_type < 90:
            order_id = rng.randint(1_000_000, 1_000_000_000)
            while order_id in active:
                order_id = rng.randint(1_000_000, 1_000_000_000)
            active.append(order_id)
            side = rng.randint(0, 1)
            quantity = rng.randint(1, 10000)
            price = round(rng.uniform(90, 130.00) * 100) / 100.0
            messages.append(f"0,{order_id},{side},{quantity},{price:.2f}")
        elif message_type < 99 and active:
            order_id = active.pop(rng.randrange(len(active)))
            messages.append(f"1,{order_id}")
        else:
            invalid_type = message_type % 5
            order_id = rng.randint(1_000_000, 1_000_000_000)
            if invalid_type == 0:
                messages.append("BADMESSAGE")
            elif invalid_type == 1:
                messages.append(f"0,{order_id},2,10,1000.00")
            elif invalid_type == 2:
                messages.append(f"0,{order_id},0,-5,1000.00")
            elif invalid_type == 3:
                messages.append(f"0,{order_id},0,5,-1000.00")
            else:
                messages.append("0,abc,0,10,1000.00")
    return messages


class Pipeline:
    """Feeds lines through tokenizing, parsing and matching stages.

    Each stage runs on its own thread and hands work to the next through a
    bounded queue. ``run()`` returns once the input is exhausted and every
    stage has finished, or once ``shutdown()`` has been called and the
    queues have drained.
    """

    def __init__(self, lines: Iterable[str], engine: Optional[MatchingEngine] = None) -> None:
        self._lines = lines
        self._engine = engine if engine is not None else MatchingEngine()
        self._stop = threading.Event()
        self._messages: SPSCQueue[Any] = SPSCQueue(_QUEUE_CAPACITY)
        self._tokens: SPSCQueue[Any] = SPSCQueue(_QUEUE_CAPACITY)
        self._orders: SPSCQueue[Any] = SPSCQueue(_QUEUE_CAPACITY)

    @property
    def engine(self) -> MatchingEngine:
        return self._engine

    def shutdown(self) -> None:
        """Ask every stage to stop once its queue is empty."""
        self._stop.set()

    def run(self) -> None:
        """Process the input and wait for all stages to finish."""
        # The reader may block on its input indefinitely, so it does not
        # live in the pool that is joined below.
        reader = threading.Thread(target=self._read, name="pipeline-reader", daemon=True)
        reader.start()
        with ThreadPool(3) as pool:
            futures = [
                pool.submit(self._tokenize_stage),
                pool.submit(self._parse_stage),
                pool.submit(self._process_stage),
            ]
            try:
                for future in futures:
                    future.result()
            except BaseException:
                self._stop.set()
                raise
        if not self._stop.is_set():
            reader.join()

    def _put(self, queue: SPSCQueue[Any], item: Any) -> bool:
        while not queue.push_wait(item, _POLL_INTERVAL):
            if self._stop.is_set():
                print(f"queue full, size={len(queue)}", file=sys.stderr)
                return False
        return True

    def _drain(self, queue: SPSCQueue[Any]) -> Iterator[Any]:
        while not (self._stop.is_set() and queue.empty()):
            try:
                item = queue.pop_wait(_POLL_INTERVAL)
            except QueueEmpty:
                continue
            if item is _STOP:
                return
            yield item

    def _read(self) -> None:
        try:
            for line in self._lines:
                if self._stop.is_set():
                    break
                line = line.rstrip("\n")
                if line:
                    self._put(self._messages, line)
        finally:
            self._put(self._messages, _STOP)

    def _tokenize_stage(self) -> None:
        try:
            for message in self._drain(self._messages):
                try:
                    tokens = self._engine.tokenize(message)
                except ValueError:
                    print(f"Error processing message: {message}", file=sys.stderr)
                    continue
                self._put(self._tokens, tokens)
        finally:
            self._put(self._tokens, _STOP)

    def _parse_stage(self) -> None:
        try:
            for tokens in self._drain(self._tokens):
                parsed = self._engine.parse_tokens(tokens)
                if parsed is not None:
                    self._put(self._orders, parsed)
        finally:
            self._put(self._orders, _STOP)

    def _process_stage(self) -> None:
        for msg_type, order in self._drain(self._orders):
            if msg_type is MessageType.ADD:
                self._engine.add_order(order.order_id, order.quantity, order.price, order.side)
            elif msg_type is MessageType.CANCEL:
                self._engine.cancel_order(order.order_id)


def main(argv: Optional[list[str]] = None) -> int:
    """Run the pipeline on standard input, or on generated messages."""
    parser = argparse.ArgumentParser(
        prog="orderbook",
        description="Match limit orders read one per line as comma-separated messages.",
    )
    parser.add_argument(
        "--random",
        type=int,
        metavar="N",
        help="process N generated messages instead of standard input",
    )
    parser.add_argument("--seed", type=int, help="seed for generated messages")
    args = parser.parse_args(argv)

    if args.random is not None:
        lines: Iterable[str] = generate_messages(args.random, random.Random(args.seed))
    else:
        lines = sys.stdin

    with Logger() as logger:
        pipeline = Pipeline(lines, MatchingEngine(logger))

        def _on_interrupt(signum: int, frame: Any) -> None:
            print(f"Interrupt signal ({signum}) received", file=sys.stderr)
            pipeline.shutdown()

        in_main_thread = threading.current_thread() is threading.main_thread()
        previous = signal.signal(signal.SIGINT, _on_interrupt) if in_main_thread else None
        try:
            pipeline.run()
        finally:
            if in_main_thread:
                signal.signal(signal.SIGINT, previous)
    return 0


if __name__ == "__main__":
    sys.exit(main())