"""Limit order book and matching engine with a threaded message pipeline."""

__version__ = "0.1.0"
__all__ = ["engine", "logger", "pipeline", "spsc_queue", "thread_pool"]