# orderbook

This package is a limit order book. Its matching engine uses price-time
priority. It reads order messages as comma-separated text and reports trades
and fills on standard output. It reports bad messages on standard error.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Running the engine

```
orderbook
```

The command reads messages from standard input, one per line. Empty lines are
skipped. A pool of worker threads passes each message through three stages:

1. The message is split into tokens.
2. The tokens are parsed into an order.
3. The engine applies the order.

The program exits at the end of input, or when you press Ctrl-C. Messages
already in the pipeline are processed before it exits.

Options:

- `--random N`: process `N` generated messages instead of reading standard input.
- `--seed SEED`: the seed for generated messages, so a run can be repeated.

```
orderbook --random 1000 --seed 42
```

### Input messages

| Message                                      | Meaning                                   |
|----------------------------------------------|-------------------------------------------|
| `0,<order_id>,<side>,<quantity>,<price>`     | Add a limit order. Side `0` is buy. Any other value is sell. |
| `1,<order_id>`                               | Cancel a resting order.                   |

The quantity must be a positive whole number. The price must be positive. The
following messages are reported on standard error and then ignored:

- messages that break these rules
- messages with the wrong number of fields
- messages that cannot be parsed
- orders that reuse an ID already in the book
- cancels of orders that are not in the book

### Output events

| Event                          | Meaning                                        |
|--------------------------------|------------------------------------------------|
| `2,<quantity>,<price>`         | A trade at the resting order's price.          |
| `3,<order_id>`                 | The order is fully filled.                     |
| `4,<order_id>,<remaining>`     | The order is partly filled. `<remaining>` is the quantity still open. |

Example session:

```
$ orderbook
0,1,0,100,10.5
0,2,1,40,10.0
2,40,10.5
3,2
4,1,60
```

## Using the library

```python
from orderbook.engine import MatchingEngine, Side
from orderbook.logger import Logger

with Logger() as logger:
    engine = MatchingEngine(logger)
    engine.process_message("0,1,0,100,10.5")   # buy 100 @ 10.5, rests in the book
    engine.add_order(2, 40, 10.0, Side.SELL)   # crosses, trades 40 @ 10.5

    assert 1 in engine                         # 60 still resting
    print(engine.depth(Side.BUY))              # [(10.5, 60)]
    engine.cancel_order(1)
```

If you create `MatchingEngine()` without a logger, it uses the logger that the
whole process shares, from `orderbook.logger.get_logger()`.

`MatchingEngine` also exposes the parsing steps on their own:

- `tokenize(message)` raises `ValueError` if the message has no fields.
- `parse_tokens(tokens)` returns `(MessageType, Order)`, or `None` if the message is invalid.

Other building blocks in the package:

- `orderbook.spsc_queue.SPSCQueue` is a bounded FIFO queue for handing values
  from one thread to another.
  - `push` returns `False` when the queue is full.
  - `pop` raises `QueueEmpty` when the queue is empty.
  - `push_wait` and `pop_wait` take a timeout in seconds.
- `orderbook.logger.Logger` writes output and error lines.
  - When it is enabled, a background thread does the writing.
  - When it is disabled, lines are written at once.
  - `close()`, or leaving a `with` block, writes whatever is still queued.
- `orderbook.thread_pool.ThreadPool` is a fixed-size pool of worker threads.
  - `submit` returns a `concurrent.futures.Future`.
  - `stop()` and `join()` cancel jobs that are still queued.
- `orderbook.pipeline` holds the threaded pipeline.
  - `Pipeline` connects the tokenize, parse and match stages.
  - `generate_messages` makes a random mix of valid and invalid messages.

## What it does not do

The order book is kept only in memory and is lost when the process exits.
There is no network interface. Messages arrive only through standard input,
or through the library calls shown above.