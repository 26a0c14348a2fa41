"""Value types exchanged between traders and markets."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from tradesim.types import validate_id


class OrderType(Enum):
    """Side of an order; the value is the sign applied to a position."""

    BID = 1
    ASK = -1

    @classmethod
    def parse(cls, value: object) -> "OrderType":
        """Read an order type from its JSON name."""
        if value == "bid" and isinstance(value, str):
            return cls.BID
        if value == "ask" and isinstance(value, str):
            return cls.ASK
        raise ValueError("Invalid type of order")

    def to_json(self) -> str:
        return "bid" if self is OrderType.BID else "ask"


def _field(data: Mapping[str, Any], key: str) -> Any:
    try:
        return data[key]
    except KeyError:
        raise ValueError(f"missing field {key!r}") from None


def _long_field(data: Mapping[str, Any], key: str) -> int:
    value = _field(data, key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"field {key!r} must be a number")
    return int(value)


def _id_field(data: Mapping[str, Any], key: str) -> str:
    try:
        return validate_id(_field(data, key))
    except TypeError as exc:
        raise ValueError(str(exc)) from None


@dataclass
class OrderForm:
    """An order request as submitted by a trader."""

    market_id: str
    trader_id: str
    type: OrderType
    price: int
    quantity: int

    @classmethod
    def from_json(cls, data: object) -> "OrderForm":
        """Build a form from decoded JSON; raises ValueError on bad input."""
        if not isinstance(data, Mapping):
            raise ValueError("order must be a JSON object")
        return cls(
            market_id=_id_field(data, "marketId"),
            trader_id=_id_field(data, "traderId"),
            type=OrderType.parse(_field(data, "type")),
            price=_long_field(data, "price"),
            quantity=_long_field(data, "quantity"),
        )


@dataclass
class Order:
    """A resting order in a market's book."""

    id: int
    trader: str
    type: OrderType
    price: int
    quantity: int


@dataclass
class PricePoint:
    """Outstanding bid and ask quantity at one price."""

    price: int
    bid_count: int = 0
    ask_count: int = 0

    def to_json(self) -> dict[str, int]:
        return {"price": self.price, "bids": self.bid_count, "asks": self.ask_count}


@dataclass
class Position:
    """A trader's net holding and profit and loss."""

    pnl: int = 0
    count: int = 0

    def confirm(self, order_type: OrderType, price: int, quantity: int) -> None:
        """Apply a filled trade on the given side."""
        self.count += order_type.value * quantity
        self.pnl -= order_type.value * price * quantity

    def to_json(self) -> dict[str, int]:
        return {"pnl": self.pnl, "count": self.count}


@dataclass
class Trade:
    """A completed trade."""

    price: int = 0
    quantity: int = 0

    @staticmethod
    def match(bid: Order, ask: Order) -> "Trade":
        """Match two crossing orders; the earlier order sets the price."""
        quantity = min(bid.quantity, ask.quantity)
        price = ask.price if ask.id < bid.id else bid.price
        return Trade(price, quantity)

    def to_json(self) -> dict[str, int]:
        return {"price": self.price, "quantity": self.quantity}


@dataclass
class OrderUpdate:
    """A change to one of a trader's orders."""

    order_id: int
    order_type: OrderType
    price: int
    quantity: int
    remaining: int

    def to_json(self) -> dict[str, Any]:
        return {
            "orderId": self.order_id,
            "orderType": self.order_type.to_json(),
            "price": self.price,
            "quantity": self.quantity,
            "remaining": self.remaining,
        }