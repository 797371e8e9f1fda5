"""Conversions from caller-friendly values to Discord's wire representation."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any, Literal

from hookpost.models import (
    BinaryFlags,
    Color,
    FlagsVariant,
    IntegerFlags,
    MessageFlag,
    NamedFlagSet,
    Timestamp,
)


def color_to_int(color: Color | int) -> int:
    """Convert a color to Discord's decimal format."""
    if isinstance(color, int):
        return color
    return int(color.to_hex(), 16)


def to_iso8601(value: Timestamp) -> str:
    """Render a datetime or Unix timestamp (seconds) as ISO-8601.

    Naive datetimes are taken as UTC. Strings are passed through untouched.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        value = datetime.fromtimestamp(value, tz=timezone.utc)
    elif value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def as_flags_variant(
    value: Any, byteorder: Literal["little", "big"] = "little"
) -> FlagsVariant:
    """Wrap a raw flags value (int, bytes, or flag names) in its variant type.

    Raises TypeError for anything else.
    """
    if isinstance(value, (IntegerFlags, BinaryFlags, NamedFlagSet)):
        return value
    if isinstance(value, bool):
        raise TypeError("flags cannot be a bool")
    if isinstance(value, int):
        return IntegerFlags(int(value))
    if isinstance(value, (bytes, bytearray, memoryview)):
        return BinaryFlags(bytes(value), byteorder)
    if isinstance(value, str):
        return NamedFlagSet.of([value])
    if isinstance(value, Iterable):
        names = list(value)
        if all(isinstance(n, (str, MessageFlag)) for n in names):
            return NamedFlagSet.of(names)
    raise TypeError(f"unsupported flags value: {type(value).__name__}")


def flags_to_int(value: Any, byteorder: Literal["little", "big"] = "little") -> int:
    """Convert message flags in any accepted shape to a bitfield int."""
    return as_flags_variant(value, byteorder).to_int()
