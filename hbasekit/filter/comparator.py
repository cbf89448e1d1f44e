"""Comparators used by HBase compare-style filters."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import IntEnum

from hbasekit.filter.wire import MessageWriter, PBComparator

COMPARATOR_PATH = "org.apache.hadoop.hbase.filter."


class BitwiseOp(IntEnum):
    """Bitwise operation applied by a BitComparator."""

    AND = 1
    OR = 2
    XOR = 3


def _is_valid_bitwise_op(op: int) -> bool:
    return 1 <= op <= 3


class Comparator(ABC):
    """A value comparator that can be sent to the server."""

    @abstractmethod
    def construct_pb_comparator(self) -> PBComparator:
        """Return the comparator wrapped in its wire envelope."""


def _envelope(name: str, payload: bytes) -> PBComparator:
    return PBComparator(COMPARATOR_PATH + name, payload)


@dataclass
class ByteArrayComparable:
    """The byte value a comparator compares against."""

    value: bytes | None = None

    def to_bytes(self) -> bytes:
        return MessageWriter().bytes_field(1, self.value).getvalue()


def _comparable_payload(comparable: ByteArrayComparable) -> MessageWriter:
    return MessageWriter().message(1, comparable.to_bytes())


@dataclass
class BinaryComparator(Comparator):
    """Lexicographic comparison against a byte array."""

    comparable: ByteArrayComparable

    def construct_pb_comparator(self) -> PBComparator:
        return _envelope(
            "BinaryComparator", _comparable_payload(self.comparable).getvalue()
        )


@dataclass
class LongComparator(Comparator):
    """Numeric comparison of 8-byte big-endian longs."""

    comparable: ByteArrayComparable

    def construct_pb_comparator(self) -> PBComparator:
        return _envelope(
            "LongComparator", _comparable_payload(self.comparable).getvalue()
        )


@dataclass
class BinaryPrefixComparator(Comparator):
    """Comparison against a byte-array prefix."""

    comparable: ByteArrayComparable

    def construct_pb_comparator(self) -> PBComparator:
        return _envelope(
            "BinaryPrefixComparator", _comparable_payload(self.comparable).getvalue()
        )


@dataclass
class BitComparator(Comparator):
    """Bitwise comparison against a byte array."""

    bitwise_op: int
    comparable: ByteArrayComparable

    def construct_pb_comparator(self) -> PBComparator:
        op = int(self.bitwise_op)
        if not _is_valid_bitwise_op(op):
            raise ValueError("Invalid bitwise operator specified")
        payload = _comparable_payload(self.comparable).varint(2, op).getvalue()
        return _envelope("BitComparator", payload)


@dataclass
class NullComparator(Comparator):
    """Matches null (missing) values."""

    def construct_pb_comparator(self) -> PBComparator:
        return _envelope("NullComparator", b"")


@dataclass
class RegexStringComparator(Comparator):
    """Regular-expression match against the value decoded with ``charset``."""

    pattern: str
    pattern_flags: int
    charset: str
    engine: str

    def construct_pb_comparator(self) -> PBComparator:
        payload = (
            MessageWriter()
            .string(1, self.pattern)
            .varint(2, self.pattern_flags)
            .string(3, self.charset)
            .string(4, self.engine)
            .getvalue()
        )
        return _envelope("RegexStringComparator", payload)


@dataclass
class SubstringComparator(Comparator):
    """Case-insensitive substring match."""

    substr: str

    def construct_pb_comparator(self) -> PBComparator:
        payload = MessageWriter().string(1, self.substr).getvalue()
        return _envelope("SubstringComparator", payload)