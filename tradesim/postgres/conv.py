"""Conversion between Python values and the PostgreSQL text format."""

from __future__ import annotations

import re
import struct

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

_LEADING_INT = re.compile(rb"-?[0-9]+")
_LEADING_FLOAT = re.compile(
    rb"-?(?:inf(?:inity)?|nan|(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)",
    re.IGNORECASE,
)


def _leading(pattern: re.Pattern[bytes], data: bytes) -> str:
    match = pattern.match(data)
    if match is None:
        raise ValueError("parse: invalid argument")
    return match.group().decode("ascii")


def _parse_int(data: bytes) -> int:
    value = int(_leading(_LEADING_INT, data))
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise ValueError("parse: value out of range")
    return value


def _parse_float(data: bytes) -> float:
    return float(_leading(_LEADING_FLOAT, data))


def _parse_bool(data: bytes) -> bool:
    if data == b"t":
        return True
    if data == b"f":
        return False
    raise ValueError("parse: invalid bool value")


def _parse_str(data: bytes) -> str:
    return data.decode("utf-8")


_PARSERS = {
    bool: _parse_bool,
    int: _parse_int,
    float: _parse_float,
    str: _parse_str,
}


def parse_value(data: bytes, kind: type) -> object:
    """Parse a text-format column value as ``kind`` (bool, int, float or str).

    Numbers are read from the start of ``data``; trailing text is ignored.
    """
    try:
        parser = _PARSERS[kind]
    except KeyError:
        raise TypeError(f"cannot parse values of type {kind!r}") from None
    return parser(bytes(data))


def _text_of(value: object) -> bytes:
    if isinstance(value, bool):
        return b"t" if value else b"f"
    if isinstance(value, int):
        return str(value).encode("ascii")
    if isinstance(value, float):
        return repr(value).encode("ascii")
    if isinstance(value, str):
        return value.encode("utf-8")
    raise TypeError(f"cannot serialize values of type {type(value).__name__}")


def serialize_value(value: object) -> bytes:
    """Encode a value as a length-prefixed text-format parameter."""
    text = _text_of(value)
    return struct.pack(">I", len(text)) + text