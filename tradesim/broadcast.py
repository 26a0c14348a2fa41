"""Server-sent event messages and their delivery to subscribed streams."""

from __future__ import annotations

import json
from typing import Any, Protocol


class Stream(Protocol):
    """Anything that accepts rendered event text without blocking."""

    def put_nowait(self, item: str) -> None: ...


def _to_json_value(payload: Any) -> Any:
    to_json = getattr(payload, "to_json", None)
    return to_json() if callable(to_json) else payload


class Message:
    """An event, optionally addressed to one trader; content is fixed at creation."""

    __slots__ = ("type", "content", "recipient")

    def __init__(self, type: str, payload: Any, recipient: str | None = None) -> None:
        self.type = type
        self.content = json.dumps(
            _to_json_value(payload), separators=(",", ":"), sort_keys=True
        )
        self.recipient = recipient

    def render(self) -> str:
        """Format the message as a server-sent event."""
        return f"event: {self.type}\ndata: {self.content}\n\n"


class Broadcast:
    """Delivers messages to subscribed streams keyed by trader id."""

    def __init__(self) -> None:
        self._streams: dict[str, Stream] = {}

    def subscribe(self, trader_id: str, stream: Stream) -> bool:
        """Register a stream; returns False if the trader already has one."""
        if trader_id in self._streams:
            return False
        self._streams[trader_id] = stream
        return True

    def unsubscribe(self, trader_id: str) -> None:
        self._streams.pop(trader_id, None)

    def send(self, message: Message) -> None:
        """Deliver to the recipient, or to every stream if there is none."""
        text = message.render()
        if message.recipient is not None:
            stream = self._streams.get(message.recipient)
            if stream is not None:
                stream.put_nowait(text)
        else:
            for stream in self._streams.values():
                stream.put_nowait(text)