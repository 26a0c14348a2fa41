# tradesim

A small simulated exchange. Traders join named markets, place bids and
asks, and watch the order book, their trades and their positions change
in real time over a server-sent event stream. Orders are matched by
price, then by arrival; each trade takes the price of whichever of the
two matched orders was placed first.

The package also carries a small asynchronous PostgreSQL client
(`tradesim.postgres`) with SCRAM-SHA-256 authentication, text-format
parameter encoding and result decoding.

## Running the server

Start the HTTP server with the command:

    tradesim

It listens on the Unix socket `/tmp/tradesim.sock`, ready to sit behind
a reverse proxy. Another path can be given with `--socket PATH`.

## HTTP API

| Method | Path | Body | Reply |
| ------ | ---- | ---- | ----- |
| GET | `/api/tradesim` | none | `Welcome to TradeSim API` |
| POST | `/api/tradesim/create` | the market id as plain text, at most 30 bytes | the market id; 400 if it is too long or already exists |
| POST | `/api/tradesim/join` | `{"marketId": ..., "traderId": ...}` | `"<marketId> <traderId>"`; 400 on bad input or if the market does not exist |
| GET | `/api/tradesim/stream/{marketId}/{traderId}` | none | a `text/event-stream` of market events; 400 if an id is longer than 30 bytes |
| POST | `/api/tradesim/order` | `{"marketId", "traderId", "type": "bid" or "ask", "price", "quantity"}` | `Order Placed`; 400 on bad input or a non-positive price or quantity; 404 for an unknown market |
| POST | `/api/tradesim/cancel` | `{"marketId", "traderId", "orderId"}` | `Order cancelled`; 400 on bad input; 404 if the trader has no such order |

Ids are strings of at most 30 bytes. An order from a trader who has not
joined the market is answered with `Order Placed` but is not entered in
the book.

### Stream events

Each event is sent as `event: <name>` followed by a JSON `data:` line.

* `pricePoint` – `{"price", "bids", "asks"}`: open quantity at a price
  level, sent to every stream in the market whenever it changes.
* `trade` – `{"price", "quantity"}`: a completed trade, sent to every
  stream in the market.
* `account` – `{"pnl", "count"}`: the receiving trader's position.
* `orderSubmitted`, `orderExecuted`, `orderCancelled` –
  `{"orderId", "orderType", "price", "quantity", "remaining"}` for the
  receiving trader's own orders.
* `duplicate` – sent once before the stream ends, when it cannot be
  opened: the market does not exist, the trader has not joined it, or
  the trader already has an open stream.

On connecting, a stream first receives the last trade (price and
quantity 0 before any trade), the trader's account, every live price
level and the trader's open orders.

## Using the exchange as a library

```python
from tradesim.exchange import Exchange
from tradesim.market_types import OrderForm

exchange = Exchange()
exchange.create_market("demo")
exchange.join_market("demo", "alice")
exchange.join_market("demo", "bob")

exchange.place_order(OrderForm.from_json(
    {"marketId": "demo", "traderId": "alice", "type": "bid", "price": 10, "quantity": 5}
))
exchange.place_order(OrderForm.from_json(
    {"marketId": "demo", "traderId": "bob", "type": "ask", "price": 9, "quantity": 3}
))
```

`Exchange.subscribe(market_id, trader_id, stream)` attaches any object
with a `put_nowait(text)` method, such as an `asyncio.Queue`, which then
receives the rendered events. `tradesim.market.Market` can also be used
directly; its `place_bid` and `place_ask` return the new order's id.

`tradesim.server.create_app(exchange)` builds the aiohttp application
around an existing `Exchange`, for embedding or testing.

## PostgreSQL helpers

* `tradesim.postgres.params.Params` encodes Bind parameters (`int`,
  `float`, `str`, `bool`, and `None` for NULL) in the text wire format;
  `bytes(params)` gives the encoded block.
* `tradesim.postgres.result.Result` holds raw rows;
  `get_row(index, int, str | None, ...)` decodes the leading values of a
  row, turning NULL into `None` only for kinds written as `T | None`.
* `tradesim.postgres.scram.Scram` performs the client side of
  SCRAM-SHA-256.
* `tradesim.postgres.connection.Connection` speaks the protocol over an
  asyncio stream pair: start-up and authentication (clear text or
  SCRAM-SHA-256), simple queries, and Parse/Bind/Execute.
* `tradesim.postgres.database.Database(config, host=... or path=...)`
  pools connections up to `Config.max_connections`.

## What it does not do

The exchange keeps all markets, orders and accounts in memory: nothing
is stored, and everything is lost when the server stops. The PostgreSQL
client is not used by the server. The server has no authentication; any
client may act for any trader id.