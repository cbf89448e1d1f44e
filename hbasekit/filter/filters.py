"""HBase scan and get filters, serialized into their wire envelopes."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

from hbasekit.filter.comparator import Comparator
from hbasekit.filter.wire import MessageWriter, PBComparator, PBFilter, encode_varint

FILTER_PATH = "org.apache.hadoop.hbase.filter."


class ListOperator(IntEnum):
    """How the filters of a FilterList are combined."""

    MUST_PASS_ALL = 1
    MUST_PASS_ONE = 2


class CompareType(IntEnum):
    """Comparison operation applied by compare-style filters."""

    LESS = 0
    LESS_OR_EQUAL = 1
    EQUAL = 2
    NOT_EQUAL = 3
    GREATER_OR_EQUAL = 4
    GREATER = 5
    NO_OP = 6


def _is_valid_list_operator(op: int) -> bool:
    return 1 <= op <= 2


def _is_valid_compare_type(op: int) -> bool:
    return 0 <= op <= 6


def _require(value: Any, name: str) -> Any:
    if value is None:
        raise ValueError(f"required field {name} is not set")
    return value


def _envelope(name: str, payload: bytes) -> PBFilter:
    return PBFilter(FILTER_PATH + name, payload)


class Filter(ABC):
    """A filter that can be sent to the server."""

    @abstractmethod
    def construct_pb_filter(self) -> PBFilter:
        """Return the filter wrapped in its wire envelope."""


@dataclass
class BytesBytesPair:
    """A pair of byte strings, used by FuzzyRowFilter."""

    first: bytes | None
    second: bytes | None

    def to_bytes(self) -> bytes:
        return (
            MessageWriter()
            .bytes_field(1, _require(self.first, "first"))
            .bytes_field(2, _require(self.second, "second"))
            .getvalue()
        )


class FilterList(Filter):
    """A list of filters combined with an operator."""

    def __init__(self, operator: int, *filters: Filter) -> None:
        self.operator = operator
        self.filters: list[PBFilter] = []
        self.add_filters(*filters)

    def __repr__(self) -> str:
        return f"FilterList(operator={self.operator!r}, filters={self.filters!r})"

    def add_filters(self, *args: Filter) -> None:
        """Serialize and append each filter; errors from a filter propagate."""
        self.filters.extend(f.construct_pb_filter() for f in args)

    def construct_pb_filter(self) -> PBFilter:
        op = int(_require(self.operator, "operator"))
        if not _is_valid_list_operator(op):
            raise ValueError("invalid operator specified")
        writer = MessageWriter().varint(1, op)
        for pb_filter in self.filters:
            writer.message(2, pb_filter)
        return _envelope("FilterList", writer.getvalue())


@dataclass
class ColumnCountGetFilter(Filter):
    """Returns at most ``limit`` columns per row."""

    limit: int

    def construct_pb_filter(self) -> PBFilter:
        payload = MessageWriter().varint(1, _require(self.limit, "limit")).getvalue()
        return _envelope("ColumnCountGetFilter", payload)


@dataclass
class ColumnPaginationFilter(Filter):
    """Returns a page of columns given by limit and offset."""

    limit: int
    offset: int | None = None
    column_offset: bytes | None = None

    def construct_pb_filter(self) -> PBFilter:
        payload = (
            MessageWriter()
            .varint(1, _require(self.limit, "limit"))
            .varint(2, self.offset)
            .bytes_field(3, self.column_offset)
            .getvalue()
        )
        return _envelope("ColumnPaginationFilter", payload)


@dataclass
class ColumnPrefixFilter(Filter):
    """Selects columns whose qualifier starts with ``prefix``."""

    prefix: bytes | None

    def construct_pb_filter(self) -> PBFilter:
        payload = (
            MessageWriter().bytes_field(1, _require(self.prefix, "prefix")).getvalue()
        )
        return _envelope("ColumnPrefixFilter", payload)


@dataclass
class ColumnRangeFilter(Filter):
    """Selects columns whose qualifier lies between two bounds."""

    min_column: bytes | None
    max_column: bytes | None
    min_column_inclusive: bool
    max_column_inclusive: bool

    def construct_pb_filter(self) -> PBFilter:
        payload = (
            MessageWriter()
            .bytes_field(1, self.min_column)
            .boolean(2, self.min_column_inclusive)
            .bytes_field(3, self.max_column)
            .boolean(4, self.max_column_inclusive)
            .getvalue()
        )
        return _envelope("ColumnRangeFilter", payload)


@dataclass
class CompareFilter(Filter):
    """A comparison operation paired with a comparator.

    The comparator is serialized when the filter is built, so an invalid
    comparator raises here.
    """

    compare_op: int
    comparator: Comparator
    _pb_comparator: PBComparator = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._pb_comparator = self.comparator.construct_pb_comparator()

    def to_bytes(self) -> bytes:
        return (
            MessageWriter()
            .varint(1, _require(self.compare_op, "compare_op"))
            .message(2, self._pb_comparator)
            .getvalue()
        )

    def construct_pb_filter(self) -> PBFilter:
        return _envelope("CompareFilter", self.to_bytes())


def _compare_payload(compare_filter: CompareFilter | None) -> bytes:
    return (
        MessageWriter()
        .message(1, _require(compare_filter, "compare_filter"))
        .getvalue()
    )


@dataclass
class DependentColumnFilter(Filter):
    """Keeps cells whose timestamp matches a reference column."""

    compare_filter: CompareFilter | None
    column_family: bytes | None
    column_qualifier: bytes | None
    drop_dependent_column: bool

    def construct_pb_filter(self) -> PBFilter:
        payload = (
            MessageWriter()
            .message(1, _require(self.compare_filter, "compare_filter"))
            .bytes_field(2, self.column_family)
            .bytes_field(3, self.column_qualifier)
            .boolean(4, self.drop_dependent_column)
            .getvalue()
        )
        return _envelope("DependentColumnFilter", payload)


@dataclass
class FamilyFilter(Filter):
    """Compares column families."""

    compare_filter: CompareFilter | None

    def construct_pb_filter(self) -> PBFilter:
        return _envelope("FamilyFilter", _compare_payload(self.compare_filter))


def _wrapped(inner: Filter) -> PBFilter:
    return _require(inner, "filter").construct_pb_filter()


@dataclass
class Wrapper(Filter):
    """Wraps another filter."""

    filter: Filter
    _pb_filter: PBFilter = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._pb_filter = _wrapped(self.filter)

    def construct_pb_filter(self) -> PBFilter:
        payload = MessageWriter().message(1, self._pb_filter).getvalue()
        return _envelope("FilterWrapper", payload)


@dataclass
class FirstKeyOnlyFilter(Filter):
    """Returns only the first cell of each row."""

    def construct_pb_filter(self) -> PBFilter:
        return _envelope("FirstKeyOnlyFilter", b"")


@dataclass
class FirstKeyValueMatchingQualifiersFilter(Filter):
    """Returns the first cell matching any of the given qualifiers."""

    qualifiers: list[bytes] = field(default_factory=list)

    def construct_pb_filter(self) -> PBFilter:
        writer = MessageWriter()
        for qualifier in self.qualifiers:
            writer.bytes_field(1, qualifier or b"")
        return _envelope("FirstKeyValueMatchingQualifiersFilter", writer.getvalue())


@dataclass
class FuzzyRowFilter(Filter):
    """Matches row keys against fuzzy key/mask pairs."""

    pairs: list[BytesBytesPair] = field(default_factory=list)

    def construct_pb_filter(self) -> PBFilter:
        writer = MessageWriter()
        for pair in self.pairs:
            writer.message(1, pair)
        return _envelope("FuzzyRowFilter", writer.getvalue())


@dataclass
class InclusiveStopFilter(Filter):
    """Stops scanning after the given row key, including it."""

    stop_row_key: bytes | None

    def construct_pb_filter(self) -> PBFilter:
        payload = MessageWriter().bytes_field(1, self.stop_row_key).getvalue()
        return _envelope("InclusiveStopFilter", payload)


@dataclass
class KeyOnlyFilter(Filter):
    """Returns keys only, optionally with the value length as value."""

    len_as_val: bool

    def construct_pb_filter(self) -> PBFilter:
        payload = (
            MessageWriter().boolean(1, _require(self.len_as_val, "len_as_val")).getvalue()
        )
        return _envelope("KeyOnlyFilter", payload)


@dataclass
class MultipleColumnPrefixFilter(Filter):
    """Selects columns whose qualifier starts with any of the sorted prefixes."""

    sorted_prefixes: list[bytes] = field(default_factory=list)

    def construct_pb_filter(self) -> PBFilter:
        writer = MessageWriter()
        for prefix in self.sorted_prefixes:
            writer.bytes_field(1, prefix or b"")
        return _envelope("MultipleColumnPrefixFilter", writer.getvalue())


@dataclass
class PageFilter(Filter):
    """Limits the number of rows returned per region server."""

    page_size: int

    def construct_pb_filter(self) -> PBFilter:
        payload = (
            MessageWriter().varint(1, _require(self.page_size, "page_size")).getvalue()
        )
        return _envelope("PageFilter", payload)


@dataclass
class PrefixFilter(Filter):
    """Selects rows whose key starts with ``prefix``."""

    prefix: bytes | None

    def construct_pb_filter(self) -> PBFilter:
        payload = MessageWriter().bytes_field(1, self.prefix).getvalue()
        return _envelope("PrefixFilter", payload)


@dataclass
class QualifierFilter(Filter):
    """Compares column qualifiers."""

    compare_filter: CompareFilter | None

    def construct_pb_filter(self) -> PBFilter:
        return _envelope("QualifierFilter", _compare_payload(self.compare_filter))


@dataclass
class RandomRowFilter(Filter):
    """Includes each row with the given probability."""

    chance: float

    def construct_pb_filter(self) -> PBFilter:
        payload = (
            MessageWriter().float32(1, _require(self.chance, "chance")).getvalue()
        )
        return _envelope("RandomRowFilter", payload)


@dataclass
class RowFilter(Filter):
    """Compares row keys."""

    compare_filter: CompareFilter | None

    def construct_pb_filter(self) -> PBFilter:
        return _envelope("RowFilter", _compare_payload(self.compare_filter))


@dataclass
class SingleColumnValueFilter(Filter):
    """Filters rows by the value of a single column.

    The comparator is serialized when the filter is built.
    """

    column_family: bytes | None
    column_qualifier: bytes | None
    compare_op: int
    comparator: Comparator
    filter_if_missing: bool
    latest_version_only: bool
    _pb_comparator: PBComparator = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._pb_comparator = self.comparator.construct_pb_comparator()

    def to_bytes(self) -> bytes:
        return (
            MessageWriter()
            .bytes_field(1, self.column_family)
            .bytes_field(2, self.column_qualifier)
            .varint(3, _require(self.compare_op, "compare_op"))
            .message(4, self._pb_comparator)
            .boolean(5, self.filter_if_missing)
            .boolean(6, self.latest_version_only)
            .getvalue()
        )

    def construct_pb(self) -> SingleColumnValueFilter:
        """Check the compare operation and return this filter as an embeddable message."""
        if not _is_valid_compare_type(int(self.compare_op)):
            raise ValueError("invalid compare operation specified")
        return self

    def construct_pb_filter(self) -> PBFilter:
        return _envelope("SingleColumnValueFilter", self.to_bytes())


@dataclass
class SingleColumnValueExcludeFilter(Filter):
    """Like SingleColumnValueFilter, but leaves out the tested column."""

    single_column_value_filter: SingleColumnValueFilter | None

    def construct_pb_filter(self) -> PBFilter:
        payload = (
            MessageWriter()
            .message(
                1,
                _require(
                    self.single_column_value_filter, "single_column_value_filter"
                ),
            )
            .getvalue()
        )
        return _envelope("SingleColumnValueExcludeFilter", payload)


@dataclass
class SkipFilter(Filter):
    """Skips whole rows when any cell is filtered by the inner filter."""

    filter: Filter
    _pb_filter: PBFilter = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._pb_filter = _wrapped(self.filter)

    def construct_pb_filter(self) -> PBFilter:
        payload = MessageWriter().message(1, self._pb_filter).getvalue()
        return _envelope("SkipFilter", payload)


@dataclass
class TimestampsFilter(Filter):
    """Keeps only cells with one of the given timestamps."""

    timestamps: list[int] = field(default_factory=list)

    def construct_pb_filter(self) -> PBFilter:
        writer = MessageWriter()
        if self.timestamps:
            packed = b"".join(encode_varint(int(ts)) for ts in self.timestamps)
            writer.bytes_field(1, packed)
        return _envelope("TimestampsFilter", writer.getvalue())


@dataclass
class ValueFilter(Filter):
    """Compares cell values."""

    compare_filter: CompareFilter | None

    def construct_pb_filter(self) -> PBFilter:
        return _envelope("ValueFilter", _compare_payload(self.compare_filter))


@dataclass
class WhileMatchFilter(Filter):
    """Stops the scan as soon as the inner filter filters a row."""

    filter: Filter
    _pb_filter: PBFilter = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._pb_filter = _wrapped(self.filter)

    def construct_pb_filter(self) -> PBFilter:
        payload = MessageWriter().message(1, self._pb_filter).getvalue()
        return _envelope("WhileMatchFilter", payload)


@dataclass
class AllFilter(Filter):
    """Filters out every row."""

    def construct_pb_filter(self) -> PBFilter:
        return _envelope("FilterAllFilter", b"")


@dataclass
class RowRange(Filter):
    """A range of row keys with inclusive or exclusive bounds."""

    start_row: bytes | None
    stop_row: bytes | None
    start_row_inclusive: bool
    stop_row_inclusive: bool

    def to_bytes(self) -> bytes:
        return (
            MessageWriter()
            .bytes_field(1, self.start_row)
            .boolean(2, self.start_row_inclusive)
            .bytes_field(3, self.stop_row)
            .boolean(4, self.stop_row_inclusive)
            .getvalue()
        )

    def construct_pb_filter(self) -> PBFilter:
        return _envelope("RowRange", self.to_bytes())


@dataclass
class MultiRowRangeFilter(Filter):
    """Selects rows falling in any of several row ranges."""

    row_range_list: list[RowRange] = field(default_factory=list)

    def construct_pb_filter(self) -> PBFilter:
        writer = MessageWriter()
        for row_range in self.row_range_list:
            writer.message(1, row_range)
        return _envelope("MultiRowRangeFilter", writer.getvalue())