"""A small pool of PostgreSQL connections."""

from __future__ import annotations

import asyncio
from collections import deque

from tradesim.postgres.connection import Config, Connection


class Database:
    """Hands out connections, opening up to ``config.max_connections``."""

    def __init__(
        self,
        config: Config,
        *,
        host: str | None = None,
        port: int = 5432,
        path: str | None = None,
    ) -> None:
        if (host is None) == (path is None):
            raise ValueError("give exactly one of host or path")
        self._config = config
        self._host = host
        self._port = port
        self._path = path
        self._count = 0
        self._idle: deque[Connection] = deque()
        self._waiting: deque[asyncio.Future[Connection]] = deque()

    def _forget(self, connection: Connection) -> None:
        self._count -= 1
        try:
            self._idle.remove(connection)
        except ValueError:
            pass

    async def _open(self) -> Connection:
        self._count += 1
        try:
            if self._path is not None:
                reader, writer = await asyncio.open_unix_connection(self._path)
            else:
                reader, writer = await asyncio.open_connection(self._host, self._port)
        except BaseException:
            self._count -= 1
            raise

        def on_close() -> None:
            self._forget(connection)

        connection = Connection(reader, writer, on_close=on_close)
        try:
            await connection.init(self._config)
        except BaseException:
            connection.close()
            raise
        return connection

    async def get_connection(self) -> Connection:
        """Return an idle connection, open a new one, or wait for a release."""
        if self._idle:
            return self._idle.popleft()
        if self._count < self._config.max_connections:
            return await self._open()

        waiter: asyncio.Future[Connection] = asyncio.get_running_loop().create_future()
        self._waiting.append(waiter)
        try:
            return await waiter
        except asyncio.CancelledError:
            if waiter.done() and not waiter.cancelled():
                self.release(waiter.result())
            raise

    def release(self, connection: Connection) -> None:
        """Give a connection back to the pool or to the oldest waiter."""
        while self._waiting:
            waiter = self._waiting.popleft()
            if not waiter.done():
                waiter.set_result(connection)
                return
        self._idle.append(connection)