"""Rows and status returned by a query."""

from __future__ import annotations

import types
import typing
from dataclasses import dataclass
from enum import Enum

from tradesim.postgres.conv import parse_value


class ResultType(Enum):
    PENDING = "pending"
    SUCCESS = "success"
    SUSPENDED = "suspended"
    ERROR = "error"


class FormatCode(Enum):
    TEXT = 0
    BINARY = 1


@dataclass(frozen=True)
class Column:
    name: str
    code: FormatCode = FormatCode.TEXT


def _optional_inner(kind: object) -> type | None:
    """Return T if ``kind`` is Optional[T], else None."""
    origin = typing.get_origin(kind)
    if origin is typing.Union or origin is types.UnionType:
        args = [arg for arg in typing.get_args(kind) if arg is not type(None)]
        if len(args) == 1 and len(typing.get_args(kind)) == 2:
            return args[0]
    return None


def _convert(value: bytes | None, kind: object) -> object:
    inner = _optional_inner(kind)
    if inner is not None:
        return None if value is None else parse_value(value, inner)
    if value is None:
        raise ValueError("assigning null to non-optional type")
    return parse_value(value, kind)


class Result:
    """The outcome of one statement: columns, rows of raw values and a status."""

    def __init__(self) -> None:
        self.type = ResultType.PENDING
        self.command_tag = ""
        self.columns: list[Column] = []
        self.rows: list[list[bytes | None]] = []

    def set_error(self) -> None:
        self.type = ResultType.ERROR

    def set_suspended(self) -> None:
        self.type = ResultType.SUSPENDED

    def add_column(self, column: Column) -> None:
        self.columns.append(column)

    def add_row(self, row: list[bytes | None]) -> None:
        """Append a row of raw values; None marks NULL."""
        self.rows.append(list(row))

    def set_command_tag(self, tag: str) -> None:
        self.command_tag = tag
        self.type = ResultType.SUCCESS

    def get_row(self, row_index: int, *args: object) -> tuple[object, ...]:
        """Parse the leading values of a row as the given kinds.

        A kind written as ``T | None`` turns NULL into None; NULL for any
        other kind raises ValueError.
        """
        row = self.rows[row_index]
        if len(args) > len(row):
            raise IndexError("more kinds requested than the row has values")
        return tuple(_convert(value, kind) for value, kind in zip(row, args))