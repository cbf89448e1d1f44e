"""Minimal protocol-buffer encoding for HBase filter and comparator messages."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Any

_WIRE_VARINT = 0
_WIRE_LEN = 2
_WIRE_FIXED32 = 5

_UINT64_MASK = (1 << 64) - 1


def encode_varint(value: int) -> bytes:
    """Encode an integer as a base-128 varint; negatives use 64-bit two's complement."""
    if value < -(1 << 63) or value > _UINT64_MASK:
        raise ValueError(f"varint out of range: {value}")
    value &= _UINT64_MASK
    out = bytearray()
    while value >= 0x80:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)
    return bytes(out)


class MessageWriter:
    """Builds a serialized message field by field; ``None`` values are skipped."""

    def __init__(self) -> None:
        self._buf = bytearray()

    def _key(self, field: int, wire_type: int) -> None:
        if field < 1:
            raise ValueError(f"invalid field number: {field}")
        self._buf += encode_varint(field << 3 | wire_type)

    def _length_delimited(self, field: int, payload: bytes) -> None:
        self._key(field, _WIRE_LEN)
        self._buf += encode_varint(len(payload))
        self._buf += payload

    def varint(self, field: int, value: int | None) -> MessageWriter:
        """Write an int32/int64/uint64/enum field."""
        if value is not None:
            self._key(field, _WIRE_VARINT)
            self._buf += encode_varint(int(value))
        return self

    def sint(self, field: int, value: int | None) -> MessageWriter:
        """Write a zigzag-encoded sint32/sint64 field."""
        if value is not None:
            value = int(value)
            self._key(field, _WIRE_VARINT)
            self._buf += encode_varint((value << 1) ^ (value >> 63))
        return self

    def boolean(self, field: int, value: bool | None) -> MessageWriter:
        """Write a bool field."""
        if value is not None:
            self._key(field, _WIRE_VARINT)
            self._buf += encode_varint(1 if value else 0)
        return self

    def float32(self, field: int, value: float | None) -> MessageWriter:
        """Write a float field."""
        if value is not None:
            self._key(field, _WIRE_FIXED32)
            self._buf += struct.pack("<f", value)
        return self

    def bytes_field(self, field: int, value: bytes | bytearray | None) -> MessageWriter:
        """Write a bytes field; an empty value is written, ``None`` is not."""
        if value is not None:
            self._length_delimited(field, bytes(value))
        return self

    def string(self, field: int, value: str | None) -> MessageWriter:
        """Write a UTF-8 string field."""
        if value is not None:
            self._length_delimited(field, value.encode("utf-8"))
        return self

    def message(self, field: int, value: Any) -> MessageWriter:
        """Write an embedded message given as bytes or as an object with ``to_bytes``."""
        if value is not None:
            if isinstance(value, (bytes, bytearray, memoryview)):
                payload = bytes(value)
            else:
                payload = value.to_bytes()
            self._length_delimited(field, payload)
        return self

    def getvalue(self) -> bytes:
        """Return the serialized message."""
        return bytes(self._buf)


@dataclass(frozen=True)
class PBComparator:
    """Envelope carrying a comparator's class name and serialized body."""

    name: str
    serialized_comparator: bytes | None = None

    def to_bytes(self) -> bytes:
        return (
            MessageWriter()
            .string(1, self.name)
            .bytes_field(2, self.serialized_comparator)
            .getvalue()
        )


@dataclass(frozen=True)
class PBFilter:
    """Envelope carrying a filter's class name and serialized body."""

    name: str
    serialized_filter: bytes | None = None

    def to_bytes(self) -> bytes:
        return (
            MessageWriter()
            .string(1, self.name)
            .bytes_field(2, self.serialized_filter)
            .getvalue()
        )