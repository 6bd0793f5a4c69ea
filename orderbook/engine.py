"""Price-time priority limit order book with a comma-separated message format."""

from __future__ import annotations

import re
from bisect import bisect_left, insort
from collections import deque
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Deque, Iterator, Optional

from orderbook.logger import Logger, get_logger

_UINT64_MAX = 2**64 - 1
_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1

_INT_RE = re.compile(r"[ \t\n\v\f\r]*([+-]?\d+)")
_FLOAT_RE = re.compile(
    r"[ \t\n\v\f\r]*([+-]?(?:inf(?:inity)?|nan|(?:\d+\.?\d*|\.\d+)(?:e[+-]?\d+)?))",
    re.IGNORECASE,
)


class Side(Enum):
    BUY = 0
    SELL = 1


class MessageType(IntEnum):
    ADD = 0
    CANCEL = 1


@dataclass
class Order:
    order_id: int
    quantity: int
    price: float
    side: Side


def tokenize(message: str) -> list[str]:
    """Split ``message`` on commas; a trailing empty field is not a token."""
    tokens = message.split(",")
    if tokens[-1] == "":
        tokens.pop()
    return tokens


def _parse_int(text: str) -> int:
    match = _INT_RE.match(text)
    if match is None:
        raise ValueError("stoi")
    value = int(match.group(1))
    if not _INT32_MIN <= value <= _INT32_MAX:
        raise ValueError("stoi")
    return value


def _parse_uint64(text: str) -> int:
    match = _INT_RE.match(text)
    if match is None:
        raise ValueError("stoull")
    value = int(match.group(1))
    if abs(value) > _UINT64_MAX:
        raise ValueError("stoull")
    # A leading minus sign wraps around, as unsigned conversion does.
    return value % (_UINT64_MAX + 1)


def _parse_float(text: str) -> float:
    match = _FLOAT_RE.match(text)
    if match is None:
        raise ValueError("stod")
    literal = match.group(1)
    value = float(literal)
    if value in (float("inf"), float("-inf")) and "inf" not in literal.lower():
        raise ValueError("stod")
    return value


def _fmt_price(price: float) -> str:
    return f"{price:g}"


class _Book:
    """One side of the book: price levels, each a FIFO of resting orders."""

    def __init__(self, descending: bool) -> None:
        self._descending = descending
        self._levels: dict[float, Deque[Order]] = {}
        self._prices: list[float] = []

    def __bool__(self) -> bool:
        return bool(self._prices)

    def best_price(self) -> float:
        return self._prices[-1] if self._descending else self._prices[0]

    def level(self, price: float) -> Optional[Deque[Order]]:
        return self._levels.get(price)

    def add(self, order: Order) -> None:
        orders = self._levels.get(order.price)
        if orders is None:
            orders = deque()
            self._levels[order.price] = orders
            insort(self._prices, order.price)
        orders.append(order)

    def remove_level(self, price: float) -> None:
        del self._levels[price]
        index = bisect_left(self._prices, price)
        del self._prices[index]

    def levels(self) -> Iterator[tuple[float, Deque[Order]]]:
        prices = reversed(self._prices) if self._descending else iter(self._prices)
        for price in prices:
            yield price, self._levels[price]


class MatchingEngine:
    """Matches incoming limit orders against resting ones and reports events.

    Output lines: ``2,<quantity>,<price>`` for a trade, ``3,<order_id>`` for a
    fully filled order and ``4,<order_id>,<remaining>`` for a partial fill.
    """

    def __init__(self, logger: Optional[Logger] = None) -> None:
        self._logger = logger if logger is not None else get_logger()
        self._books = {Side.BUY: _Book(descending=True), Side.SELL: _Book(descending=False)}
        self._orders: dict[int, Order] = {}

    def process_message(self, message: str) -> None:
        """Parse one message and add or cancel an order accordingly."""
        try:
            tokens = self.tokenize(message)
        except ValueError:
            return
        parsed = self.parse_tokens(tokens)
        if parsed is None:
            return
        msg_type, order = parsed
        if msg_type is MessageType.ADD:
            self.add_order(order.order_id, order.quantity, order.price, order.side)
        else:
            self.cancel_order(order.order_id)

    def tokenize(self, message: str) -> list[str]:
        """Split ``message`` into fields; raise ValueError if there are none."""
        tokens = tokenize(message)
        if not tokens:
            self._logger.log_err(f"Unknown message: {message}")
            raise ValueError(f"Unknown message: {message}")
        return tokens

    def parse_tokens(self, tokens: list[str]) -> Optional[tuple[MessageType, Order]]:
        """Turn fields into a message type and order; log and return None if invalid."""
        try:
            if not tokens:
                self._logger.log_err("Invalid message format")
                return None
            msg_type = _parse_int(tokens[0])
            if msg_type == MessageType.ADD and len(tokens) == 5:
                order_id = _parse_uint64(tokens[1])
                side = Side.BUY if tokens[2] == "0" else Side.SELL
                if tokens[3].startswith("-"):
                    self._logger.log_err("Invalid order: quantity is negative.")
                    return None
                quantity = _parse_uint64(tokens[3])
                price = _parse_float(tokens[4])
                if quantity == 0 or price <= 0:
                    self._logger.log_err(
                        f"Invalid order: quantity={quantity}, price={_fmt_price(price)}"
                    )
                    return None
                return MessageType.ADD, Order(order_id, quantity, price, side)
            if msg_type == MessageType.CANCEL and len(tokens) == 2:
                order_id = _parse_uint64(tokens[1])
                return MessageType.CANCEL, Order(order_id, 0, 0.0, Side.BUY)
            self._logger.log_err("Invalid message format")
            return None
        except ValueError as exc:
            self._logger.log_err(f"Error processing message ({exc})")
            return None

    def add_order(self, order_id: int, quantity: int, price: float, side: Side) -> None:
        """Match a new order and rest whatever is left of it."""
        if order_id in self._orders:
            self._logger.log_err(f"Duplicate order ID: {order_id}")
            return
        order = Order(order_id, quantity, price, side)
        self._match(order)
        if order.quantity > 0:
            self._books[side].add(order)
            self._orders[order_id] = order

    def cancel_order(self, order_id: int) -> None:
        """Remove a resting order from the book."""
        order = self._orders.pop(order_id, None)
        if order is None:
            self._logger.log_err(f"Order not found: {order_id}")
            return
        book = self._books[order.side]
        orders = book.level(order.price)
        if orders is not None:
            remaining = [o for o in orders if o.order_id != order_id]
            orders.clear()
            orders.extend(remaining)
            if not orders:
                book.remove_level(order.price)

    def depth(self, side: Side) -> list[tuple[float, int]]:
        """Price levels of one side, best first, with their total resting quantity."""
        return [
            (price, sum(o.quantity for o in orders))
            for price, orders in self._books[side].levels()
        ]

    def __contains__(self, order_id: object) -> bool:
        return order_id in self._orders

    def _match(self, aggressor: Order) -> None:
        opposite = self._books[Side.SELL if aggressor.side is Side.BUY else Side.BUY]
        while aggressor.quantity > 0 and opposite:
            best_price = opposite.best_price()
            if aggressor.side is Side.BUY:
                can_match = aggressor.price >= best_price
            else:
                can_match = aggressor.price <= best_price
            if not can_match:
                break

            resting_orders = opposite.level(best_price)
            if not resting_orders:
                opposite.remove_level(best_price)
                continue

            resting = resting_orders[0]
            traded = min(aggressor.quantity, resting.quantity)
            self._emit_trade(traded, resting.price)

            aggressor.quantity -= traded
            if aggressor.quantity > 0:
                self._emit_partially_filled(aggressor.order_id, aggressor.quantity)
            else:
                self._emit_fully_filled(aggressor.order_id)

            resting.quantity -= traded
            if resting.quantity == 0:
                self._emit_fully_filled(resting.order_id)
                self._orders.pop(resting.order_id, None)
                resting_orders.popleft()
                if not resting_orders:
                    opposite.remove_level(best_price)
            else:
                self._emit_partially_filled(resting.order_id, resting.quantity)

    def _emit_trade(self, quantity: int, price: float) -> None:
        self._logger.log_out(f"2,{quantity},{_fmt_price(price)}")

    def _emit_fully_filled(self, order_id: int) -> None:
        self._logger.log_out(f"3,{order_id}")

    def _emit_partially_filled(self, order_id: int, quantity: int) -> None:
        self._logger.log_out(f"4,{order_id},{quantity}")