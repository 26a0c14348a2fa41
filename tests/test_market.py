import json
import queue

from tradesim.market import Market


def _drain(q):
    events = []
    while not q.empty():
        header, data, *_ = q.get_nowait().split("\n")
        events.append((header[len("event: "):], json.loads(data[len("data: "):])))
    return events


def _of(events, name):
    return [data for event, data in events if event == name]


def _market(*traders):
    market = Market()
    queues = {}
    for trader in traders:
        market.register_account(trader)
        queues[trader] = queue.Queue()
        assert market.subscribe(trader, queues[trader])
        _drain(queues[trader])
    return market, queues


def test_subscribe_unknown_trader():
    assert Market().subscribe("nobody", queue.Queue()) is False


def test_subscribe_sends_initial_state():
    market = Market()
    market.register_account("alice")
    q = queue.Queue()
    assert market.subscribe("alice", q) is True
    assert _drain(q) == [
        ("trade", {"price": 0, "quantity": 0}),
        ("account", {"pnl": 0, "count": 0}),
    ]


def test_duplicate_subscribe_rejected():
    market, _ = _market("alice")
    assert market.subscribe("alice", queue.Queue()) is False


def test_place_without_account_is_ignored():
    market, queues = _market("alice")
    assert market.place_bid("ghost", 10, 1) is None
    assert _drain(queues["alice"]) == []


def test_place_bid_announces_order():
    market, queues = _market("alice")
    order_id = market.place_bid("alice", 10, 5)
    assert _drain(queues["alice"]) == [
        ("pricePoint", {"price": 10, "bids": 5, "asks": 0}),
        ("orderSubmitted", {"orderId": order_id, "orderType": "bid", "price": 10,
                            "quantity": 5, "remaining": 5}),
    ]


def test_crossing_orders_trade_at_earlier_price():
    market, queues = _market("alice", "bob")
    bid_id = market.place_bid("alice", 10, 5)
    ask_id = market.place_ask("bob", 9, 3)
    alice = _drain(queues["alice"])
    bob = _drain(queues["bob"])

    assert _of(alice, "trade") == [{"price": 10, "quantity": 3}]
    assert _of(bob, "trade") == [{"price": 10, "quantity": 3}]

    alice_account = _of(alice, "account")[-1]
    bob_account = _of(bob, "account")[-1]
    assert alice_account["count"] == 3
    assert bob_account["count"] == -3
    assert alice_account["pnl"] == -bob_account["pnl"]

    assert _of(alice, "orderExecuted") == [
        {"orderId": bid_id, "orderType": "bid", "price": 10, "quantity": 3, "remaining": 2}
    ]
    assert _of(bob, "orderExecuted")[0]["remaining"] == 0

    assert market.cancel_order("bob", ask_id) is False
    assert market.cancel_order("alice", bid_id) is True
    assert _of(_drain(queues["alice"]), "orderCancelled")[0]["orderId"] == bid_id


def test_best_price_matched_first():
    market, queues = _market("alice", "bob")
    market.place_ask("bob", 12, 1)
    market.place_ask("bob", 11, 1)
    market.place_bid("alice", 12, 1)
    assert _of(_drain(queues["alice"]), "trade") == [{"price": 11, "quantity": 1}]


def test_time_priority_at_same_price():
    market, queues = _market("alice", "bob", "carol")
    bob_id = market.place_ask("bob", 10, 1)
    market.place_ask("carol", 10, 1)
    market.place_bid("alice", 10, 1)
    assert [d["orderId"] for d in _of(_drain(queues["bob"]), "orderExecuted")] == [bob_id]
    assert _of(_drain(queues["carol"]), "orderExecuted") == []


def test_non_crossing_orders_rest():
    market, queues = _market("alice", "bob")
    market.place_bid("alice", 9, 1)
    market.place_ask("bob", 10, 1)
    assert _of(_drain(queues["alice"]), "trade") == []


def test_cancel_rules():
    market, queues = _market("alice", "bob")
    order_id = market.place_ask("alice", 20, 2)
    assert market.cancel_order("bob", order_id) is False
    assert market.cancel_order("alice", order_id + 100) is False
    assert market.cancel_order("alice", order_id) is True
    assert market.cancel_order("alice", order_id) is False
    events = _drain(queues["alice"])
    assert _of(events, "pricePoint")[-1] == {"price": 20, "bids": 0, "asks": 0}
    assert _of(events, "orderCancelled") == [
        {"orderId": order_id, "orderType": "ask", "price": 20, "quantity": 2, "remaining": 2}
    ]


def test_resubscribe_replays_book_and_orders():
    market, queues = _market("alice")
    order_id = market.place_bid("alice", 10, 5)
    market.unsubscribe("alice")
    q = queue.Queue()
    assert market.subscribe("alice", q) is True
    events = _drain(q)
    assert _of(events, "pricePoint") == [{"price": 10, "bids": 5, "asks": 0}]
    assert _of(events, "orderSubmitted") == [
        {"orderId": order_id, "orderType": "bid", "price": 10, "quantity": 5, "remaining": 5}
    ]


def test_empty_price_points_are_dropped():
    market, _ = _market("alice")
    order_id = market.place_bid("alice", 10, 5)
    market.cancel_order("alice", order_id)
    market.unsubscribe("alice")
    q = queue.Queue()
    market.subscribe("alice", q)
    assert _of(_drain(q), "pricePoint") == []