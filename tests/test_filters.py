import struct

import pytest

from hbasekit.filter.comparator import (
    BinaryComparator,
    BitComparator,
    ByteArrayComparable,
    SubstringComparator,
)
from hbasekit.filter.filters import (
    AllFilter,
    BytesBytesPair,
    ColumnCountGetFilter,
    ColumnPaginationFilter,
    ColumnPrefixFilter,
    ColumnRangeFilter,
    CompareFilter,
    CompareType,
    DependentColumnFilter,
    FamilyFilter,
    FilterList,
    FirstKeyOnlyFilter,
    FirstKeyValueMatchingQualifiersFilter,
    FuzzyRowFilter,
    InclusiveStopFilter,
    KeyOnlyFilter,
    ListOperator,
    MultipleColumnPrefixFilter,
    MultiRowRangeFilter,
    PageFilter,
    PrefixFilter,
    QualifierFilter,
    RandomRowFilter,
    RowFilter,
    RowRange,
    SingleColumnValueExcludeFilter,
    SingleColumnValueFilter,
    SkipFilter,
    TimestampsFilter,
    ValueFilter,
    WhileMatchFilter,
    Wrapper,
)

PATH = "org.apache.hadoop.hbase.filter."


def _read_varint(buf, pos):
    value = 0
    shift = 0
    while True:
        byte = buf[pos]
        pos += 1
        value |= (byte & 0x7F) << shift
        if byte < 0x80:
            return value, pos
        shift += 7


def _decode(buf):
    fields = []
    pos = 0
    while pos < len(buf):
        key, pos = _read_varint(buf, pos)
        num, wire = key >> 3, key & 7
        if wire == 0:
            value, pos = _read_varint(buf, pos)
        elif wire == 2:
            length, pos = _read_varint(buf, pos)
            value = bytes(buf[pos : pos + length])
            pos += length
        elif wire == 5:
            value = bytes(buf[pos : pos + 4])
            pos += 4
        else:
            raise AssertionError(f"unexpected wire type {wire}")
        fields.append((num, value))
    return fields


def _comparator():
    return BinaryComparator(ByteArrayComparable(b"val"))


def _compare_filter():
    return CompareFilter(CompareType.EQUAL, _comparator())


def test_prefix_filter_envelope():
    pb = PrefixFilter(b"ab").construct_pb_filter()
    assert pb.name == PATH + "PrefixFilter"
    assert _decode(pb.serialized_filter) == [(1, b"ab")]


def test_envelope_round_trip():
    pb = PrefixFilter(b"row").construct_pb_filter()
    assert _decode(pb.to_bytes()) == [
        (1, (PATH + "PrefixFilter").encode()),
        (2, pb.serialized_filter),
    ]


def test_filter_list_serializes_operator_and_children():
    children = [PrefixFilter(b"a"), KeyOnlyFilter(True)]
    flist = FilterList(ListOperator.MUST_PASS_ONE, *children)
    pb = flist.construct_pb_filter()
    assert pb.name == PATH + "FilterList"
    fields = _decode(pb.serialized_filter)
    assert fields[0] == (1, int(ListOperator.MUST_PASS_ONE))
    assert [value for num, value in fields[1:]] == [
        c.construct_pb_filter().to_bytes() for c in children
    ]


def test_filter_list_add_filters_appends():
    flist = FilterList(ListOperator.MUST_PASS_ALL)
    flist.add_filters(PageFilter(10))
    flist.add_filters(AllFilter(), FirstKeyOnlyFilter())
    assert [f.name for f in flist.filters] == [
        PATH + "PageFilter",
        PATH + "FilterAllFilter",
        PATH + "FirstKeyOnlyFilter",
    ]


@pytest.mark.parametrize("op", [0, 3, -1])
def test_filter_list_invalid_operator(op):
    with pytest.raises(ValueError, match="invalid operator"):
        FilterList(op, PrefixFilter(b"a")).construct_pb_filter()


def test_filter_list_propagates_child_errors():
    with pytest.raises(ValueError):
        FilterList(ListOperator.MUST_PASS_ALL, FilterList(5))


def test_column_count_get_filter():
    pb = ColumnCountGetFilter(7).construct_pb_filter()
    assert pb.name == PATH + "ColumnCountGetFilter"
    assert _decode(pb.serialized_filter) == [(1, 7)]


def test_column_pagination_filter_skips_missing_offset():
    pb = ColumnPaginationFilter(5, 2, None).construct_pb_filter()
    assert _decode(pb.serialized_filter) == [(1, 5), (2, 2)]
    pb = ColumnPaginationFilter(5, 2, b"col").construct_pb_filter()
    assert _decode(pb.serialized_filter) == [(1, 5), (2, 2), (3, b"col")]


def test_column_prefix_filter_requires_prefix():
    with pytest.raises(ValueError):
        ColumnPrefixFilter(None).construct_pb_filter()
    pb = ColumnPrefixFilter(b"q").construct_pb_filter()
    assert _decode(pb.serialized_filter) == [(1, b"q")]


def test_column_range_filter_fields():
    pb = ColumnRangeFilter(b"a", b"z", True, False).construct_pb_filter()
    assert pb.name == PATH + "ColumnRangeFilter"
    assert _decode(pb.serialized_filter) == [(1, b"a"), (2, 1), (3, b"z"), (4, 0)]


def test_compare_filter_embeds_comparator():
    cf = _compare_filter()
    fields = _decode(cf.to_bytes())
    assert fields == [
        (1, int(CompareType.EQUAL)),
        (2, _comparator().construct_pb_comparator().to_bytes()),
    ]
    pb = cf.construct_pb_filter()
    assert pb.name == PATH + "CompareFilter"
    assert pb.serialized_filter == cf.to_bytes()


def test_compare_filter_rejects_bad_comparator_at_construction():
    with pytest.raises(ValueError):
        CompareFilter(CompareType.EQUAL, BitComparator(9, ByteArrayComparable(b"x")))


@pytest.mark.parametrize(
    "cls,name",
    [
        (FamilyFilter, "FamilyFilter"),
        (QualifierFilter, "QualifierFilter"),
        (RowFilter, "RowFilter"),
        (ValueFilter, "ValueFilter"),
    ],
)
def test_compare_based_filters(cls, name):
    cf = _compare_filter()
    pb = cls(cf).construct_pb_filter()
    assert pb.name == PATH + name
    assert _decode(pb.serialized_filter) == [(1, cf.to_bytes())]


def test_compare_based_filter_requires_compare_filter():
    with pytest.raises(ValueError):
        RowFilter(None).construct_pb_filter()


def test_dependent_column_filter():
    cf = _compare_filter()
    pb = DependentColumnFilter(cf, b"cf", b"q", True).construct_pb_filter()
    assert _decode(pb.serialized_filter) == [
        (1, cf.to_bytes()),
        (2, b"cf"),
        (3, b"q"),
        (4, 1),
    ]
    with pytest.raises(ValueError):
        DependentColumnFilter(None, b"cf", b"q", True).construct_pb_filter()


@pytest.mark.parametrize(
    "cls,name",
    [
        (Wrapper, "FilterWrapper"),
        (SkipFilter, "SkipFilter"),
        (WhileMatchFilter, "WhileMatchFilter"),
    ],
)
def test_wrapping_filters(cls, name):
    inner = PrefixFilter(b"p")
    pb = cls(inner).construct_pb_filter()
    assert pb.name == PATH + name
    assert _decode(pb.serialized_filter) == [(1, inner.construct_pb_filter().to_bytes())]


def test_wrapping_filter_raises_on_invalid_inner():
    with pytest.raises(ValueError):
        Wrapper(FilterList(9))


def test_empty_filters():
    assert FirstKeyOnlyFilter().construct_pb_filter().name == PATH + "FirstKeyOnlyFilter"
    assert FirstKeyOnlyFilter().construct_pb_filter().serialized_filter == b""
    assert AllFilter().construct_pb_filter().name == PATH + "FilterAllFilter"
    assert AllFilter().construct_pb_filter().serialized_filter == b""


def test_first_key_value_matching_qualifiers():
    pb = FirstKeyValueMatchingQualifiersFilter([b"a", b"", b"c"]).construct_pb_filter()
    assert _decode(pb.serialized_filter) == [(1, b"a"), (1, b""), (1, b"c")]


def test_fuzzy_row_filter():
    pairs = [BytesBytesPair(b"k1", b"\x00\x01"), BytesBytesPair(b"k2", b"\x01\x00")]
    pb = FuzzyRowFilter(pairs).construct_pb_filter()
    decoded = [_decode(value) for _, value in _decode(pb.serialized_filter)]
    assert decoded == [
        [(1, b"k1"), (2, b"\x00\x01")],
        [(1, b"k2"), (2, b"\x01\x00")],
    ]


def test_bytes_bytes_pair_requires_both():
    with pytest.raises(ValueError):
        BytesBytesPair(None, b"x").to_bytes()


def test_inclusive_stop_and_key_only():
    pb = InclusiveStopFilter(b"stop").construct_pb_filter()
    assert _decode(pb.serialized_filter) == [(1, b"stop")]
    pb = KeyOnlyFilter(False).construct_pb_filter()
    assert _decode(pb.serialized_filter) == [(1, 0)]


def test_multiple_column_prefix_filter():
    pb = MultipleColumnPrefixFilter([b"a", b"b"]).construct_pb_filter()
    assert _decode(pb.serialized_filter) == [(1, b"a"), (1, b"b")]


def test_page_filter_large_value():
    size = 1 << 40
    pb = PageFilter(size).construct_pb_filter()
    assert _decode(pb.serialized_filter) == [(1, size)]


def test_random_row_filter_float():
    pb = RandomRowFilter(0.25).construct_pb_filter()
    (num, raw), = _decode(pb.serialized_filter)
    assert num == 1
    assert struct.unpack("<f", raw)[0] == 0.25


def test_single_column_value_filter_fields():
    scvf = SingleColumnValueFilter(
        b"cf", b"q", CompareType.GREATER, SubstringComparator("x"), True, False
    )
    fields = _decode(scvf.to_bytes())
    assert fields == [
        (1, b"cf"),
        (2, b"q"),
        (3, int(CompareType.GREATER)),
        (4, SubstringComparator("x").construct_pb_comparator().to_bytes()),
        (5, 1),
        (6, 0),
    ]
    assert scvf.construct_pb() is scvf
    assert scvf.construct_pb_filter().serialized_filter == scvf.to_bytes()


def test_single_column_value_filter_construct_pb_validates():
    scvf = SingleColumnValueFilter(b"cf", b"q", 7, _comparator(), False, False)
    with pytest.raises(ValueError, match="invalid compare operation"):
        scvf.construct_pb()


def test_single_column_value_exclude_filter():
    scvf = SingleColumnValueFilter(
        b"cf", b"q", CompareType.EQUAL, _comparator(), False, True
    )
    pb = SingleColumnValueExcludeFilter(scvf).construct_pb_filter()
    assert pb.name == PATH + "SingleColumnValueExcludeFilter"
    assert _decode(pb.serialized_filter) == [(1, scvf.to_bytes())]


def test_timestamps_filter_is_packed():
    stamps = [1, 2, 300, 1 << 35]
    pb = TimestampsFilter(stamps).construct_pb_filter()
    (num, packed), = _decode(pb.serialized_filter)
    assert num == 1
    values = []
    pos = 0
    while pos < len(packed):
        value, pos = _read_varint(packed, pos)
        values.append(value)
    assert values == stamps
    assert TimestampsFilter([]).construct_pb_filter().serialized_filter == b""


def test_row_range_and_multi_row_range():
    ranges = [RowRange(b"a", b"c", True, False), RowRange(b"x", b"z", False, True)]
    pb = ranges[0].construct_pb_filter()
    assert pb.name == PATH + "RowRange"
    assert _decode(pb.serialized_filter) == [(1, b"a"), (2, 1), (3, b"c"), (4, 0)]
    multi = MultiRowRangeFilter(ranges).construct_pb_filter()
    assert multi.name == PATH + "MultiRowRangeFilter"
    assert [v for _, v in _decode(multi.serialized_filter)] == [
        r.to_bytes() for r in ranges
    ]