import pytest

from tradesim.market_types import (
    Order,
    OrderForm,
    OrderType,
    OrderUpdate,
    Position,
    PricePoint,
    Trade,
)


def _form_data(**overrides):
    data = {"marketId": "m1", "traderId": "t1", "type": "bid", "price": 10, "quantity": 4}
    data.update(overrides)
    return data


@pytest.mark.parametrize("name, expected", [("bid", OrderType.BID), ("ask", OrderType.ASK)])
def test_order_type_parse(name, expected):
    assert OrderType.parse(name) is expected


@pytest.mark.parametrize("value", ["buy", "BID", 1, None])
def test_order_type_parse_rejects(value):
    with pytest.raises(ValueError):
        OrderType.parse(value)


@pytest.mark.parametrize("order_type", list(OrderType))
def test_order_type_round_trip(order_type):
    assert OrderType.parse(order_type.to_json()) is order_type


def test_order_form_from_json():
    form = OrderForm.from_json(_form_data(type="ask"))
    assert form == OrderForm("m1", "t1", OrderType.ASK, 10, 4)


@pytest.mark.parametrize("missing", ["marketId", "traderId", "type", "price", "quantity"])
def test_order_form_missing_field(missing):
    data = _form_data()
    del data[missing]
    with pytest.raises(ValueError):
        OrderForm.from_json(data)


def test_order_form_rejects_long_id():
    with pytest.raises(ValueError):
        OrderForm.from_json(_form_data(marketId="m" * 31))


def test_order_form_rejects_non_numeric_price():
    with pytest.raises(ValueError):
        OrderForm.from_json(_form_data(price="10"))


def test_order_form_rejects_non_object():
    with pytest.raises(ValueError):
        OrderForm.from_json([1, 2])


def test_price_point_to_json():
    assert PricePoint(10, 2, 0).to_json() == {"price": 10, "bids": 2, "asks": 0}


def test_position_opposite_trades_cancel():
    pos = Position()
    pos.confirm(OrderType.BID, 10, 3)
    pos.confirm(OrderType.ASK, 10, 3)
    assert pos.to_json() == {"pnl": 0, "count": 0}


def test_position_buyer_and_seller_are_symmetric():
    buyer, seller = Position(), Position()
    buyer.confirm(OrderType.BID, 7, 4)
    seller.confirm(OrderType.ASK, 7, 4)
    assert buyer.count == 4
    assert seller.count == -buyer.count
    assert buyer.pnl < 0
    assert seller.pnl == -buyer.pnl


def test_trade_match_bid_first_uses_bid_price():
    bid = Order(1, "a", OrderType.BID, 12, 5)
    ask = Order(2, "b", OrderType.ASK, 10, 3)
    assert Trade.match(bid, ask) == Trade(12, 3)


def test_trade_match_ask_first_uses_ask_price():
    ask = Order(1, "b", OrderType.ASK, 10, 8)
    bid = Order(2, "a", OrderType.BID, 12, 5)
    assert Trade.match(bid, ask) == Trade(10, 5)


def test_trade_to_json():
    assert Trade(5, 2).to_json() == {"price": 5, "quantity": 2}


def test_order_update_to_json():
    update = OrderUpdate(1, OrderType.ASK, 9, 3, 3)
    assert update.to_json() == {
        "orderId": 1,
        "orderType": "ask",
        "price": 9,
        "quantity": 3,
        "remaining": 3,
    }