"""Region caches: row key -> region, and region server client -> regions."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from itertools import takewhile
from typing import Any, Callable

from sortedcontainers import SortedDict

log = logging.getLogger(__name__)

_COMMA = b","


def _as_bytes(value: bytes | bytearray | str | None) -> bytes:
    if value is None:
        return b""
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


@dataclass(eq=False)
class RegionInfo:
    """A region of a table, identified by its name and key range.

    Regions compare and hash by identity. An empty stop key means the
    region extends to the end of the table.
    """

    id: int
    namespace: bytes | None
    table: bytes
    name: bytes
    start_key: bytes | None = None
    stop_key: bytes | None = None
    client: Any = field(default=None, repr=False)
    _dead: threading.Event = field(
        default_factory=threading.Event, init=False, repr=False
    )
    _unavailable: bool = field(default=False, init=False, repr=False)
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False
    )

    def __post_init__(self) -> None:
        self.namespace = _as_bytes(self.namespace)
        self.table = _as_bytes(self.table)
        self.name = _as_bytes(self.name)
        self.start_key = _as_bytes(self.start_key)
        self.stop_key = _as_bytes(self.stop_key)

    def mark_dead(self) -> None:
        """Signal that this region is gone so anyone waiting on it can give up."""
        self._dead.set()

    def mark_unavailable(self) -> bool:
        """Mark the region unavailable; return False if it already was."""
        with self._lock:
            if self._unavailable:
                return False
            self._unavailable = True
            return True

    @property
    def dead(self) -> bool:
        return self._dead.is_set()

    @property
    def available(self) -> bool:
        with self._lock:
            return not self._unavailable


def _split_region_name(name: bytes | bytearray) -> tuple[bytes, bytes, bytes]:
    """Split ``table,start_key,rest`` into its three parts.

    The start key may contain commas, so the key ends at the last comma.
    """
    name = bytes(name)
    table_end = name.find(_COMMA)
    if table_end < 0:
        raise ValueError(f"no comma found in region name {name!r}")
    key_end = name.rfind(_COMMA, table_end + 1)
    if key_end < 0:
        raise ValueError(
            f"no comma found in {name!r} after offset {table_end}"
        )
    return name[:table_end], name[table_end + 1 : key_end], name[key_end + 1 :]


def compare_region_names(a: bytes, b: bytes) -> int:
    """Order two region names by table, then start key, then the rest.

    Returns a negative number, zero or a positive number. Unlike a plain
    byte comparison, a shorter table name always sorts first, so the first
    region of a table (empty start key) is found correctly.
    """
    ka = _split_region_name(a)
    kb = _split_region_name(b)
    return (ka > kb) - (ka < kb)


def create_region_search_key(table: bytes, key: bytes | None) -> bytes:
    """Build a key that sorts right after every region of ``table`` starting at ``key``."""
    # ':' sorts after the digits of region ids.
    return _as_bytes(table) + _COMMA + _as_bytes(key) + b",:"


def fully_qualified_table(region: RegionInfo) -> bytes:
    """Return ``namespace:table``, or just the table in the default namespace."""
    if not region.namespace:
        return region.table
    return region.namespace + b":" + region.table


def is_region_overlap(reg_a: RegionInfo, reg_b: RegionInfo) -> bool:
    """Whether two regions of the same table have overlapping key ranges."""
    return (
        reg_a.namespace == reg_b.namespace
        and reg_a.table == reg_b.table
        and (not reg_b.stop_key or reg_a.start_key < reg_b.stop_key)
        and (not reg_a.stop_key or reg_a.stop_key > reg_b.start_key)
    )


class ClientRegionCache:
    """Maps each region server client to the set of regions it serves."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.regions: dict[Any, set[RegionInfo]] = {}

    def put(
        self, addr: str, region: RegionInfo, new_client: Callable[[], Any]
    ) -> Any:
        """Associate ``region`` with the client for ``addr``.

        Returns the cached client for that address, or a new one made by
        ``new_client`` if there is none yet.
        """
        with self._lock:
            for existing, regions in self.regions.items():
                if existing.addr == addr:
                    regions.add(region)
                    log.debug(
                        "region client is already in client's cache: %r", existing
                    )
                    return existing
            client = new_client()
            self.regions[client] = {region}
        log.info("added new region client: %r", client)
        return client

    def delete(self, region: RegionInfo) -> None:
        """Detach ``region`` from the client currently serving it."""
        with self._lock:
            client = region.client
            if client is not None:
                region.client = None
                self.regions.get(client, set()).discard(region)

    def close_all(self) -> None:
        """Mark every region unavailable, detach it and close every client."""
        with self._lock:
            for client, regions in self.regions.items():
                for region in regions:
                    region.mark_unavailable()
                    region.client = None
                client.close()

    def client_down(self, client: Any) -> set[RegionInfo]:
        """Forget ``client`` and return the regions it was serving."""
        with self._lock:
            regions = self.regions.pop(client, None)
        if regions is None:
            return set()
        log.info("removed region client: %r", client)
        return regions


class KeyRegionCache:
    """Regions ordered by region name, for looking up the region of a row key."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self.regions: SortedDict = SortedDict(_split_region_name)

    def __len__(self) -> int:
        return len(self.regions)

    def _seek(self, key: bytes) -> int:
        index = self.regions.bisect_left(key)
        if index < len(self.regions):
            found = self.regions.keys()[index]
            if _split_region_name(found) == _split_region_name(key):
                raise RuntimeError(
                    f"found a region with the exact name of search key {key!r}"
                )
        return index

    def get(self, key: bytes) -> tuple[bytes | None, RegionInfo | None]:
        """Return the name and region sorting right before the search ``key``."""
        with self._lock:
            index = self._seek(key)
            if index == 0:
                return None, None
            return self.regions.peekitem(index - 1)

    def _overlaps(self, region: RegionInfo) -> list[RegionInfo]:
        if not self.regions:
            return []
        key = create_region_search_key(fully_qualified_table(region), region.start_key)
        start = max(self._seek(key) - 1, 0)
        candidates = (self.regions[name] for name in self.regions.islice(start))
        first = next(candidates)
        overlaps = [first] if is_region_overlap(first, region) else []
        overlaps.extend(
            takewhile(lambda other: is_region_overlap(other, region), candidates)
        )
        return overlaps

    def get_overlaps(self, region: RegionInfo) -> list[RegionInfo]:
        """Return the cached regions whose key range overlaps ``region``'s."""
        with self._lock:
            return self._overlaps(region)

    def put(self, region: RegionInfo) -> tuple[list[RegionInfo], bool]:
        """Cache ``region`` unless a region of that name or a younger overlap exists.

        Returns the overlapping regions and whether ``region`` was put. When it
        is put, all overlapping (older) regions are removed and marked dead.
        """
        with self._lock:
            existing = self.regions.get(region.name)
            if existing is not None:
                log.debug("region is already in cache: %r", region)
                return [existing], False
            overlaps = self._overlaps(region)
            if any(other.id > region.id for other in overlaps):
                log.debug(
                    "younger overlapping region in cache: %r overlaps %r",
                    region,
                    overlaps,
                )
                return overlaps, False
            self.regions[region.name] = region
            for other in overlaps:
                self.regions.pop(other.name, None)
                other.mark_dead()
        log.info("added new region %r, replacing %r", region, overlaps)
        return overlaps, True

    def delete(self, region: RegionInfo) -> bool:
        """Remove ``region`` and mark it dead; return whether it was cached."""
        with self._lock:
            removed = self.regions.pop(region.name, None) is not None
        region.mark_dead()
        log.debug("removed region: %r", region)
        return removed

    def lookup(self, table: bytes, key: bytes | None) -> RegionInfo | None:
        """Return the cached region of fully qualified ``table`` holding ``key``."""
        table = _as_bytes(table)
        key = _as_bytes(key)
        _, region = self.get(create_region_search_key(table, key))
        if region is None:
            return None
        if fully_qualified_table(region) != table:
            return None
        if region.stop_key and key >= region.stop_key:
            return None
        return region

    def clear(self) -> None:
        """Drop every cached region."""
        with self._lock:
            self.regions.clear()