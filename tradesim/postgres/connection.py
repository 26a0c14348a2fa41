"""Client connection speaking the PostgreSQL frontend/backend protocol."""

from __future__ import annotations

import asyncio
import base64
import secrets
import struct
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Protocol

from tradesim.postgres.params import Params
from tradesim.postgres.result import Column, FormatCode, Result, ResultType
from tradesim.postgres.scram import SCRAM_SHA256, Scram

PROTOCOL_VERSION = (3 << 16) | 0

_HEADER = struct.Struct(">cI")
_HEADER_SIZE = _HEADER.size
_CLIENT_NONCE_BYTES = 24
_COLUMN_ATTRIBUTES_SIZE = 16
# Close the unnamed portal, then Sync.
_CLOSE_SYNC = b"C\x00\x00\x00\x06P\x00S\x00\x00\x00\x04"


@dataclass
class Config:
    """Credentials and pool size for a database."""

    user: str
    password: str = ""
    database: str = ""
    max_connections: int = 1


class AuthType(IntEnum):
    OK = 0
    CLEAR_TEXT_PASSWORD = 3
    SASL = 10
    SASL_CONTINUE = 11
    SASL_FINAL = 12


class ResponseType(Enum):
    ERROR_RESPONSE = b"E"
    NEGOTIATE_PROTOCOL_VERSION = b"v"
    AUTHENTICATION = b"R"
    BACKEND_KEY_DATA = b"K"
    PARAMETER_STATUS = b"S"
    READY_FOR_QUERY = b"Z"
    NOTICE_RESPONSE = b"N"
    EMPTY_QUERY_RESPONSE = b"I"
    COMMAND_COMPLETE = b"C"
    DATA_ROW = b"D"
    ROW_DESCRIPTION = b"T"
    PARSE_COMPLETE = b"1"
    BIND_COMPLETE = b"2"
    PORTAL_SUSPENDED = b"s"


_RESPONSE_TYPES = {member.value: member for member in ResponseType}


class _Writer(Protocol):
    def write(self, data: bytes) -> None: ...

    async def drain(self) -> None: ...

    def close(self) -> None: ...


def _parse_row_description(data: bytes, result: Result) -> None:
    (count,) = struct.unpack_from(">H", data, 0)
    offset = 2
    for _ in range(count):
        end = data.index(b"\x00", offset)
        name = data[offset:end].decode("utf-8")
        offset = end + 1 + _COLUMN_ATTRIBUTES_SIZE
        (code,) = struct.unpack_from(">H", data, offset)
        offset += 2
        result.add_column(Column(name, FormatCode(code)))


def _parse_data_row(data: bytes, result: Result) -> None:
    (count,) = struct.unpack_from(">H", data, 0)
    offset = 2
    row: list[bytes | None] = []
    for _ in range(count):
        (length,) = struct.unpack_from(">i", data, offset)
        offset += 4
        if length < 0:
            row.append(None)
        else:
            row.append(data[offset : offset + length])
            offset += length
    result.add_row(row)


class Connection:
    """One authenticated session with a PostgreSQL server."""

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: _Writer,
        on_close: Callable[[], None] | None = None,
    ) -> None:
        self._reader = reader
        self._writer = writer
        self._on_close = on_close
        self._closed = False
        self.query_ready = False

    # -- low-level I/O -------------------------------------------------

    def _send(self, kind: bytes, *parts: bytes) -> None:
        payload = b"".join(parts)
        self._writer.write(kind + struct.pack(">I", len(payload) + 4) + payload)

    async def _flush(self) -> None:
        await self._writer.drain()

    async def _read(self, size: int) -> bytes:
        return await self._reader.readexactly(size)

    async def _skip(self, size: int) -> None:
        if size > 0:
            await self._reader.readexactly(size)

    async def _response_info(
        self, ignore_notice: bool = True
    ) -> tuple[ResponseType | None, int]:
        while True:
            kind, length = _HEADER.unpack(await self._read(_HEADER_SIZE))
            size = length - 4
            response_type = _RESPONSE_TYPES.get(kind)
            if ignore_notice and response_type is ResponseType.NOTICE_RESPONSE:
                await self._skip(size)
                continue
            return response_type, size

    async def _populate(self, response_type: ResponseType, size: int, result: Result) -> None:
        data = await self._read(size)
        if response_type is ResponseType.ROW_DESCRIPTION:
            _parse_row_description(data, result)
        else:
            _parse_data_row(data, result)

    async def _command_tag(self, size: int) -> str:
        return (await self._read(size))[:-1].decode("utf-8")

    # -- start-up --------------------------------------------------------

    async def _handle_auth(self, size: int, config: Config, scram: Scram) -> None:
        (code,) = struct.unpack(">I", await self._read(4))
        rest = size - 4
        try:
            auth = AuthType(code)
        except ValueError:
            raise RuntimeError("Unrecognized auth method") from None

        if auth is AuthType.OK:
            return
        if auth is AuthType.CLEAR_TEXT_PASSWORD:
            self._send(b"p", config.password.encode("utf-8"), b"\x00")
            await self._flush()
        elif auth is AuthType.SASL:
            mechanisms = await self._read(rest)
            if SCRAM_SHA256.encode("ascii") not in mechanisms:
                raise RuntimeError("SCRAM mechanism not found")
            nonce = base64.b64encode(secrets.token_bytes(_CLIENT_NONCE_BYTES)).decode("ascii")
            first = scram.client_first_message(config.user, nonce).encode("utf-8")
            self._send(
                b"p",
                SCRAM_SHA256.encode("ascii") + b"\x00",
                struct.pack(">I", len(first)),
                first,
            )
            await self._flush()
        elif auth is AuthType.SASL_CONTINUE:
            server_first = (await self._read(rest)).decode("utf-8")
            scram.resolve_server_first_message(server_first)
            final = scram.client_final_message(config.password).encode("utf-8")
            self._send(b"p", final)
            await self._flush()
        else:
            server_final = (await self._read(rest)).decode("utf-8")
            if not scram.verify_server_final_message(server_final):
                raise RuntimeError("SASL Auth unexpected final msg")

    async def init(self, config: Config) -> None:
        """Send the start-up message and authenticate until the server is ready."""
        message = b"user\x00" + config.user.encode("utf-8") + b"\x00"
        if config.database:
            message += b"database\x00" + config.database.encode("utf-8") + b"\x00"
        message += b"\x00"
        self._writer.write(struct.pack(">II", 8 + len(message), PROTOCOL_VERSION) + message)
        await self._flush()

        scram = Scram()
        while not self.query_ready:
            response_type, size = await self._response_info()
            if response_type is ResponseType.ERROR_RESPONSE:
                raise RuntimeError("Postgres ErrorResponse")
            if response_type is ResponseType.NEGOTIATE_PROTOCOL_VERSION:
                raise RuntimeError("Postgres Protocol Version mismatch")
            if response_type is ResponseType.AUTHENTICATION:
                await self._handle_auth(size, config, scram)
            elif response_type in (ResponseType.BACKEND_KEY_DATA, ResponseType.PARAMETER_STATUS):
                await self._skip(size)
            elif response_type is ResponseType.READY_FOR_QUERY:
                await self._skip(size)
                self.query_ready = True
            else:
                raise RuntimeError("Postgres unexpected response")

    # -- queries -----------------------------------------------------------

    async def query(self, query: str) -> list[Result]:
        """Run a simple query; returns one result per statement."""
        if not self.query_ready:
            raise RuntimeError("query: Not query ready")
        self._send(b"Q", query.encode("utf-8"), b"\x00")
        await self._flush()
        self.query_ready = False

        results = [Result()]
        while not self.query_ready:
            response_type, size = await self._response_info()
            if response_type is ResponseType.COMMAND_COMPLETE:
                results[-1].set_command_tag(await self._command_tag(size))
                results.append(Result())
            elif response_type in (ResponseType.ROW_DESCRIPTION, ResponseType.DATA_ROW):
                await self._populate(response_type, size, results[-1])
            elif response_type in (
                ResponseType.EMPTY_QUERY_RESPONSE,
                ResponseType.ERROR_RESPONSE,
            ):
                await self._skip(size)
                results[-1].set_error()
                results.append(Result())
            elif response_type is ResponseType.READY_FOR_QUERY:
                await self._skip(size)
                self.query_ready = True
            else:
                await self._skip(size)
        results.pop()
        return results

    async def prepare_query(self, query: str, params: Params) -> None:
        """Send Parse and Bind for the unnamed statement and portal."""
        if not self.query_ready:
            raise RuntimeError("prepare_query: Not query ready")
        self._send(b"P", b"\x00", query.encode("utf-8"), b"\x00", b"\x00\x00")
        self._send(b"B", b"\x00", b"\x00", b"\x00\x00", bytes(params), b"\x00\x00")
        self.query_ready = False

    async def execute(self, max_rows: int = 0) -> Result:
        """Execute the bound portal; 0 rows means no limit."""
        self._send(b"E", b"\x00", struct.pack(">I", max_rows))
        self._send(b"H")
        await self._flush()

        result = Result()
        while result.type is ResultType.PENDING:
            response_type, size = await self._response_info()
            if response_type in (
                ResponseType.EMPTY_QUERY_RESPONSE,
                ResponseType.ERROR_RESPONSE,
            ):
                await self._skip(size)
                result.set_error()
            elif response_type in (ResponseType.ROW_DESCRIPTION, ResponseType.DATA_ROW):
                await self._populate(response_type, size, result)
            elif response_type is ResponseType.COMMAND_COMPLETE:
                result.set_command_tag(await self._command_tag(size))
            elif response_type is ResponseType.PORTAL_SUSPENDED:
                await self._skip(size)
                result.set_suspended()
                return result
            else:
                await self._skip(size)

        await self.close_sync()
        return result

    async def close_sync(self) -> None:
        """Close the unnamed portal and wait until the server is ready again."""
        self._writer.write(_CLOSE_SYNC)
        await self._flush()
        while True:
            response_type, size = await self._response_info()
            await self._skip(size)
            if response_type is ResponseType.READY_FOR_QUERY:
                break
        self.query_ready = True

    def close(self) -> None:
        """Close the transport; safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._writer.close()
        if self._on_close is not None:
            self._on_close()