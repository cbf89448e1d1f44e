# hbasekit

Client-side building blocks for talking to HBase:

- **Filters and comparators** (`hbasekit.filter.filters`,
  `hbasekit.filter.comparator`) that serialize to the protobuf `Filter` and
  `Comparator` envelopes HBase region servers expect. The small protobuf
  encoder they use lives in `hbasekit.filter.wire` (`MessageWriter`,
  `encode_varint`, `PBFilter`, `PBComparator`).
- **Cell-block compression** (`hbasekit.compression`) with a pure-Python
  snappy codec whose compressor class name matches Hadoop's `SnappyCodec`.
- **Region caches** (`hbasekit.caches`) that map row keys to regions and
  region-server clients to the regions they serve, handling overlapping and
  split regions.

## Installation

```
pip install hbasekit
```

The only runtime dependency is `sortedcontainers`.

## Filters

```python
from hbasekit.filter.comparator import BinaryComparator, ByteArrayComparable
from hbasekit.filter.filters import (
    CompareFilter, CompareType, FilterList, ListOperator, PrefixFilter, RowFilter,
)

row_filter = RowFilter(
    CompareFilter(CompareType.GREATER_OR_EQUAL,
                  BinaryComparator(ByteArrayComparable(b"row-100")))
)
combined = FilterList(ListOperator.MUST_PASS_ALL, PrefixFilter(b"row-"), row_filter)

pb_filter = combined.construct_pb_filter()
payload = pb_filter.to_bytes()   # envelope named org.apache.hadoop.hbase.filter.FilterList
```

Every filter has `construct_pb_filter()`, which returns a `PBFilter` with the
Java class name and the serialized body; every comparator has
`construct_pb_comparator()`, which returns a `PBComparator`.

Validation raises `ValueError`:

- `BitComparator.construct_pb_comparator()` rejects a bitwise operation
  outside `BitwiseOp` (1 to 3).
- `FilterList.construct_pb_filter()` rejects an operator outside
  `ListOperator` (1 or 2).
- `SingleColumnValueFilter.construct_pb()` rejects a compare operation
  outside `CompareType` (0 to 6).
- A missing required field, such as a `PrefixFilter`'s `limit`-style value
  left as `None`, raises when the filter is serialized.

`CompareFilter`, `SingleColumnValueFilter`, `Wrapper`, `SkipFilter` and
`WhileMatchFilter` serialize their comparator or inner filter when they are
created, and `FilterList` serializes filters as they are added, so an error in
the inner object is raised at that point.

## Compression

```python
from hbasekit.compression.codec import new_codec

codec = new_codec("snappy")
out, size = codec.encode(b"test", b"")
assert out == b"\x04\x0ctest" and size == 6

plain, size = codec.decode(out, b"")
assert plain == b"test"
```

`encode` and `decode` append their result to `dst`; a `bytearray` is extended
in place and returned. `chunk_len()` gives the largest uncompressed chunk and
`cell_block_compressor_class()` the server-side class name. The module-level
`compress` and `decompress` functions in `hbasekit.compression.snappy` work on
single snappy blocks.

`new_codec` raises `ValueError` for any name other than `"snappy"`. Corrupt
snappy input raises `hbasekit.compression.snappy.CorruptInputError`, a
subclass of `ValueError`.

## Region caches

```python
from hbasekit.caches import KeyRegionCache, RegionInfo

cache = KeyRegionCache()
region = RegionInfo(
    id=0, namespace=b"", table=b"test",
    name=b"test,,1234567890042.56f833d5569a27c7a43fbf547b4924a4.",
    start_key=b"", stop_key=b"",
)
overlaps, replaced = cache.put(region)
assert replaced and cache.lookup(b"test", b"any-key") is region
```

`KeyRegionCache.put` returns the overlapping regions and whether the new
region was stored. It stores a region only when no region of the same name is
cached and every overlapping region is older (has a smaller `id`); the
replaced regions are removed and marked dead. `lookup(table, key)` takes a
fully qualified table name (`namespace:table` outside the default namespace).

`ClientRegionCache` keeps one client per address: `put(addr, region,
new_client)` returns the existing client for `addr` or calls `new_client()`
to make one. Clients are expected to have an `addr` attribute and a `close()`
method. `client_down` forgets a client and returns its regions, and
`close_all` closes every client and marks its regions unavailable.

## What is not included

This package has no connection layer: it does not open sockets, send RPCs,
talk to ZooKeeper, locate regions in `hbase:meta`, or run gets, puts and
scans. It provides the pieces such a client is built from.

## Running the tests

```
pip install -e ".[test]"
pytest
```