"""Parameter block for a Bind message."""

from __future__ import annotations

import struct

from tradesim.postgres.conv import serialize_value

_NULL = struct.pack(">i", -1)
_MAX_PARAMS = 0xFFFF


class Params:
    """Parameter count followed by length-prefixed text values; None is NULL."""

    def __init__(self) -> None:
        self._count = 0
        self._body = bytearray()

    @property
    def count(self) -> int:
        return self._count

    def store(self, *args: object) -> None:
        """Append each value in order."""
        for value in args:
            encoded = _NULL if value is None else serialize_value(value)
            if self._count >= _MAX_PARAMS:
                raise ValueError("too many parameters")
            self._count += 1
            self._body += encoded

    def __bytes__(self) -> bytes:
        return struct.pack(">H", self._count) + bytes(self._body)

    def __len__(self) -> int:
        return 2 + len(self._body)