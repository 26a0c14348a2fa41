"""Identifier validation and integer parsing shared by the exchange."""

from __future__ import annotations

import re

MAX_ID_SIZE = 30

_LONG_MIN = -(2**63)
_LONG_MAX = 2**63 - 1
_LEADING_INT = re.compile(r"-?[0-9]+", re.ASCII)


def validate_id(value: object) -> str:
    """Return ``value`` if it is a string identifier of at most MAX_ID_SIZE bytes."""
    if not isinstance(value, str):
        raise TypeError("ID must be a string")
    if len(value.encode("utf-8")) > MAX_ID_SIZE:
        raise ValueError(f"ID > {MAX_ID_SIZE} characters")
    return value


def to_long(text: str) -> int:
    """Parse the integer at the start of ``text`` as a signed 64-bit value."""
    match = _LEADING_INT.match(text)
    if match is None:
        raise ValueError("to_long: conversion failed")
    value = int(match.group())
    if not _LONG_MIN <= value <= _LONG_MAX:
        raise ValueError("to_long: conversion failed")
    return value