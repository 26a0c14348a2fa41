"""HTTP API of the trading simulator."""

from __future__ import annotations

import argparse
import asyncio
import json
from collections.abc import Mapping
from typing import Any

from aiohttp import web

from tradesim.exchange import Exchange
from tradesim.market_types import OrderForm
from tradesim.types import MAX_ID_SIZE, to_long, validate_id

DEFAULT_SOCKET_PATH = "/tmp/tradesim.sock"

WELCOME_MESSAGE = "Welcome to TradeSim API"
MARKET_ID_MAX_LENGTH_MESSAGE = "Max 30 characters for Market ID"
MARKET_ID_EXISTS_MESSAGE = "Market ID already exists"
JOIN_INVALID_INPUT_MESSAGE = "Invalid Input"
MARKET_ID_NOT_EXISTS_MESSAGE = "Market ID does not exist"
INVALID_MARKET_ID_MESSAGE = "Invalid Market ID"
INVALID_TRADER_ID_MESSAGE = "Invalid Trader ID"
ORDER_INVALID_INPUT_MESSAGE = "Invalid Input"
INVALID_PRICE_QUANTITY_MESSAGE = "Invalid price or quantity"
MARKET_ID_NOT_FOUND_MESSAGE = "Market ID not found"
ORDER_PLACED_MESSAGE = "Order Placed"
CANCEL_INVALID_INPUT_MESSAGE = "Invalid input"
ORDER_NOT_FOUND_MESSAGE = "Order not found"
ORDER_CANCELLED_MESSAGE = "Order cancelled"
DUPLICATE_EVENT = "event: duplicate\ndata: {}\n\n"

# How often an idle event stream checks whether its client has gone away.
_POLL_INTERVAL = 0.25


def _text(status: int, message: str) -> web.Response:
    return web.Response(status=status, text=message, content_type="text/plain")


def _json_object(raw: bytes) -> Mapping[str, Any]:
    data = json.loads(raw)
    if not isinstance(data, Mapping):
        raise ValueError("expected a JSON object")
    return data


def _id(data: Mapping[str, Any], key: str) -> str:
    return validate_id(data[key])


def _long(data: Mapping[str, Any], key: str) -> int:
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"field {key!r} must be a number")
    return int(value)


def _too_long(identifier: str) -> bool:
    return len(identifier.encode("utf-8")) > MAX_ID_SIZE


def _client_gone(request: web.Request) -> bool:
    transport = request.transport
    return transport is None or transport.is_closing()


def create_app(exchange: Exchange) -> web.Application:
    """Build the web application serving the given exchange."""

    async def welcome(request: web.Request) -> web.Response:
        return _text(200, WELCOME_MESSAGE)

    async def create(request: web.Request) -> web.Response:
        length = to_long(request.headers.get("Content-Length", "0"))
        if length > MAX_ID_SIZE:
            return _text(400, MARKET_ID_MAX_LENGTH_MESSAGE)
        body = await request.read()
        market_id = body[: max(length, 0)].decode("utf-8", errors="replace")
        if not exchange.create_market(market_id):
            return _text(400, MARKET_ID_EXISTS_MESSAGE)
        return _text(200, market_id)

    async def join(request: web.Request) -> web.Response:
        try:
            data = _json_object(await request.read())
            market_id = _id(data, "marketId")
            trader_id = _id(data, "traderId")
        except (ValueError, TypeError, KeyError):
            return _text(400, JOIN_INVALID_INPUT_MESSAGE)
        if not exchange.join_market(market_id, trader_id):
            return _text(400, MARKET_ID_NOT_EXISTS_MESSAGE)
        return _text(200, f"{market_id} {trader_id}")

    async def stream(request: web.Request) -> web.StreamResponse:
        market_id = request.match_info["marketId"]
        if _too_long(market_id):
            return _text(400, INVALID_MARKET_ID_MESSAGE)
        trader_id = request.match_info["traderId"]
        if _too_long(trader_id):
            return _text(400, INVALID_TRADER_ID_MESSAGE)

        response = web.StreamResponse(status=200)
        response.headers["Content-Type"] = "text/event-stream"
        response.headers["X-Accel-Buffering"] = "no"
        await response.prepare(request)

        queue: asyncio.Queue[str] = asyncio.Queue()
        if not exchange.subscribe(market_id, trader_id, queue):
            await response.write(DUPLICATE_EVENT.encode("utf-8"))
            return response

        try:
            while not _client_gone(request):
                try:
                    first = await asyncio.wait_for(queue.get(), _POLL_INTERVAL)
                except asyncio.TimeoutError:
                    continue
                pending = [first]
                while not queue.empty():
                    pending.append(queue.get_nowait())
                await response.write("".join(pending).encode("utf-8"))
        except ConnectionError:
            pass
        finally:
            exchange.unsubscribe(market_id, trader_id)
        return response

    async def order(request: web.Request) -> web.Response:
        try:
            form = OrderForm.from_json(json.loads(await request.read()))
        except (ValueError, TypeError, KeyError):
            return _text(400, ORDER_INVALID_INPUT_MESSAGE)
        if form.price <= 0 or form.quantity <= 0:
            return _text(400, INVALID_PRICE_QUANTITY_MESSAGE)
        if exchange.place_order(form):
            return _text(200, ORDER_PLACED_MESSAGE)
        return _text(404, MARKET_ID_NOT_FOUND_MESSAGE)

    async def cancel(request: web.Request) -> web.Response:
        try:
            data = _json_object(await request.read())
            market_id = _id(data, "marketId")
            trader_id = _id(data, "traderId")
            order_id = _long(data, "orderId")
        except (ValueError, TypeError, KeyError):
            return _text(400, CANCEL_INVALID_INPUT_MESSAGE)
        if exchange.cancel_order(market_id, trader_id, order_id):
            return _text(200, ORDER_CANCELLED_MESSAGE)
        return _text(404, ORDER_NOT_FOUND_MESSAGE)

    app = web.Application()
    app.router.add_get("/api/tradesim", welcome)
    app.router.add_post("/api/tradesim/create", create)
    app.router.add_post("/api/tradesim/join", join)
    app.router.add_get("/api/tradesim/stream/{marketId}/{traderId}", stream)
    app.router.add_post("/api/tradesim/order", order)
    app.router.add_post("/api/tradesim/cancel", cancel)
    return app


def main(argv: list[str] | None = None) -> int:
    """Serve the API on a Unix domain socket until interrupted."""
    parser = argparse.ArgumentParser(prog="tradesim", description="Run the trading simulator API.")
    parser.add_argument(
        "--socket",
        default=DEFAULT_SOCKET_PATH,
        help=f"Unix socket path to listen on (default: {DEFAULT_SOCKET_PATH})",
    )
    args = parser.parse_args(argv)
    web.run_app(create_app(Exchange()), path=args.socket, print=None)
    return 0