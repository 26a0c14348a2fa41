"""The set of markets served by the exchange."""

from __future__ import annotations

from tradesim.broadcast import Stream
from tradesim.market import Market
from tradesim.market_types import OrderForm, OrderType


class Exchange:
    """Routes trader requests to markets by id."""

    def __init__(self) -> None:
        self._markets: dict[str, Market] = {}

    def create_market(self, market_id: str) -> bool:
        """Create a market; returns False if the id is taken."""
        if market_id in self._markets:
            return False
        self._markets[market_id] = Market()
        return True

    def join_market(self, market_id: str, trader_id: str) -> bool:
        market = self._markets.get(market_id)
        if market is None:
            return False
        market.register_account(trader_id)
        return True

    def subscribe(self, market_id: str, trader_id: str, stream: Stream) -> bool:
        market = self._markets.get(market_id)
        if market is None:
            return False
        return market.subscribe(trader_id, stream)

    def unsubscribe(self, market_id: str, trader_id: str) -> None:
        market = self._markets.get(market_id)
        if market is not None:
            market.unsubscribe(trader_id)

    def place_order(self, form: OrderForm) -> bool:
        """Submit an order; returns False only if the market does not exist."""
        market = self._markets.get(form.market_id)
        if market is None:
            return False
        if form.type is OrderType.BID:
            market.place_bid(form.trader_id, form.price, form.quantity)
        else:
            market.place_ask(form.trader_id, form.price, form.quantity)
        return True

    def cancel_order(self, market_id: str, trader_id: str, order_id: int) -> bool:
        market = self._markets.get(market_id)
        if market is None:
            return False
        return market.cancel_order(trader_id, order_id)