"""A single market: order book, matching and trader accounts."""

from __future__ import annotations

from typing import Any

from tradesim.broadcast import Broadcast, Message, Stream
from tradesim.market_types import (
    Order,
    OrderType,
    OrderUpdate,
    Position,
    PricePoint,
    Trade,
)

PRICE_POINT_MSG = "pricePoint"
ACCOUNT_MSG = "account"
TRADE_MSG = "trade"
ORDER_SUBMITTED = "orderSubmitted"
ORDER_EXECUTED = "orderExecuted"
ORDER_CANCELLED = "orderCancelled"

# Order ids at one price, oldest first; dicts keep insertion order and ids only grow.
_OrderQueue = dict[int, None]


class Market:
    """An order book that matches bids and asks by price, then time."""

    def __init__(self) -> None:
        self._accounts: dict[str, Position] = {}
        self._broadcast = Broadcast()
        self._price_points: dict[int, PricePoint] = {}
        self._last_trade = Trade()
        self._trader_orders: dict[str, dict[int, None]] = {}
        self._order_count = 0
        self._orders: dict[int, Order] = {}
        self._bids: dict[int, _OrderQueue] = {}
        self._asks: dict[int, _OrderQueue] = {}

    def _send(self, event: str, payload: Any, recipient: str | None = None) -> None:
        self._broadcast.send(Message(event, payload, recipient))

    def _update_counts(self, price: int, bid_diff: int, ask_diff: int) -> None:
        point = self._price_points.setdefault(price, PricePoint(price))
        point.bid_count += bid_diff
        point.ask_count += ask_diff
        self._send(PRICE_POINT_MSG, point)
        if point.bid_count == 0 and point.ask_count == 0:
            del self._price_points[price]

    def _update_accounts(self, buyer_id: str, seller_id: str, trade: Trade) -> None:
        self._last_trade = trade
        buyer = self._accounts[buyer_id]
        buyer.confirm(OrderType.BID, trade.price, trade.quantity)
        seller = self._accounts[seller_id]
        seller.confirm(OrderType.ASK, trade.price, trade.quantity)
        self._send(TRADE_MSG, trade)
        self._send(ACCOUNT_MSG, buyer, buyer_id)
        self._send(ACCOUNT_MSG, seller, seller_id)

    def _update_order(self, order: Order, trade: Trade, queue: _OrderQueue) -> None:
        order.quantity -= trade.quantity
        update = OrderUpdate(order.id, order.type, trade.price, trade.quantity, order.quantity)
        self._send(ORDER_EXECUTED, update, order.trader)
        if order.quantity == 0:
            self._trader_orders.setdefault(order.trader, {}).pop(order.id, None)
            queue.pop(order.id, None)
            del self._orders[order.id]

    def _execute_trades(self) -> None:
        while self._bids and self._asks:
            bid_price = max(self._bids)
            ask_price = min(self._asks)
            if bid_price < ask_price:
                break
            bid_queue = self._bids[bid_price]
            ask_queue = self._asks[ask_price]
            bid = self._orders[next(iter(bid_queue))]
            ask = self._orders[next(iter(ask_queue))]

            trade = Trade.match(bid, ask)
            self._update_accounts(bid.trader, ask.trader, trade)
            self._update_counts(bid.price, -trade.quantity, 0)
            self._update_counts(ask.price, 0, -trade.quantity)
            self._update_order(bid, trade, bid_queue)
            self._update_order(ask, trade, ask_queue)

            if not bid_queue:
                del self._bids[bid_price]
            if not ask_queue:
                del self._asks[ask_price]

    def register_account(self, trader_id: str) -> None:
        """Open an account for the trader if there is none yet."""
        self._accounts.setdefault(trader_id, Position())

    def subscribe(self, trader_id: str, stream: Stream) -> bool:
        """Attach a stream and send it the market's current state."""
        if trader_id not in self._accounts:
            return False
        if not self._broadcast.subscribe(trader_id, stream):
            return False
        self._send(TRADE_MSG, self._last_trade, trader_id)
        self._send(ACCOUNT_MSG, self._accounts[trader_id], trader_id)
        for point in self._price_points.values():
            self._send(PRICE_POINT_MSG, point, trader_id)
        for order_id in self._trader_orders.setdefault(trader_id, {}):
            order = self._orders[order_id]
            update = OrderUpdate(order.id, order.type, order.price, order.quantity, order.quantity)
            self._send(ORDER_SUBMITTED, update, trader_id)
        return True

    def unsubscribe(self, trader_id: str) -> None:
        self._broadcast.unsubscribe(trader_id)

    def _place(self, trader_id: str, order_type: OrderType, price: int, quantity: int) -> int | None:
        if trader_id not in self._accounts:
            return None
        self._order_count += 1
        order = Order(self._order_count, trader_id, order_type, price, quantity)
        self._orders[order.id] = order
        book = self._bids if order_type is OrderType.BID else self._asks
        book.setdefault(price, {})[order.id] = None
        self._trader_orders.setdefault(trader_id, {})[order.id] = None

        update = OrderUpdate(order.id, order_type, price, quantity, quantity)
        if order_type is OrderType.BID:
            self._update_counts(price, quantity, 0)
        else:
            self._update_counts(price, 0, quantity)
        self._send(ORDER_SUBMITTED, update, trader_id)

        self._execute_trades()
        return order.id

    def place_bid(self, trader_id: str, price: int, quantity: int) -> int | None:
        """Place a bid; returns its id, or None if the trader has no account."""
        return self._place(trader_id, OrderType.BID, price, quantity)

    def place_ask(self, trader_id: str, price: int, quantity: int) -> int | None:
        """Place an ask; returns its id, or None if the trader has no account."""
        return self._place(trader_id, OrderType.ASK, price, quantity)

    def cancel_order(self, trader_id: str, order_id: int) -> bool:
        """Withdraw a resting order owned by the trader."""
        order = self._orders.get(order_id)
        if order is None or order.trader != trader_id:
            return False

        update = OrderUpdate(order.id, order.type, order.price, order.quantity, order.quantity)
        if order.type is OrderType.BID:
            self._update_counts(order.price, -order.quantity, 0)
            book = self._bids
        else:
            self._update_counts(order.price, 0, -order.quantity)
            book = self._asks
        queue = book[order.price]
        queue.pop(order.id, None)
        if not queue:
            del book[order.price]

        self._trader_orders.setdefault(trader_id, {}).pop(order.id, None)
        del self._orders[order_id]

        self._send(ORDER_CANCELLED, update, trader_id)
        return True