"""Snappy block compression as used for HBase cell blocks."""

from __future__ import annotations

from dataclasses import dataclass

# Buffer length used by the Hadoop snappy codec (256 KiB) minus snappy overhead.
_CHUNK_LEN = 256 * 1024 * 5 // 6 - 32

_MAX_BLOCK_SIZE = 65536
_MIN_NON_LITERAL_BLOCK_SIZE = 17
_MAX_DECODED_LEN = 0xFFFFFFFF

_TAG_LITERAL = 0
_TAG_COPY1 = 1
_TAG_COPY2 = 2
_TAG_COPY4 = 3

_COMPRESSOR_CLASS = "org.apache.hadoop.io.compress.SnappyCodec"


class CorruptInputError(ValueError):
    """Raised when snappy-compressed input cannot be decoded."""

    def __init__(self, message: str = "snappy: corrupt input") -> None:
        super().__init__(message)


def _uvarint(value: int) -> bytes:
    out = bytearray()
    while value >= 0x80:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)
    return bytes(out)


def _emit_literal(out: bytearray, literal: bytes) -> None:
    n = len(literal) - 1
    if n < 60:
        out.append(n << 2 | _TAG_LITERAL)
    elif n < 1 << 8:
        out += bytes((60 << 2 | _TAG_LITERAL, n))
    else:
        out += bytes((61 << 2 | _TAG_LITERAL, n & 0xFF, n >> 8))
    out += literal


def _emit_copy(out: bytearray, offset: int, length: int) -> None:
    while length >= 68:
        out += bytes(((64 - 1) << 2 | _TAG_COPY2, offset & 0xFF, offset >> 8))
        length -= 64
    if length > 64:
        out += bytes(((60 - 1) << 2 | _TAG_COPY2, offset & 0xFF, offset >> 8))
        length -= 60
    if length >= 12 or offset >= 2048:
        out += bytes(((length - 1) << 2 | _TAG_COPY2, offset & 0xFF, offset >> 8))
    else:
        out += bytes(
            ((offset >> 8) << 5 | (length - 4) << 2 | _TAG_COPY1, offset & 0xFF)
        )


def _encode_block(out: bytearray, block: bytes) -> None:
    n = len(block)
    seen: dict[bytes, int] = {}
    literal_start = 0
    i = 0
    while i + 4 <= n:
        key = block[i : i + 4]
        candidate = seen.get(key)
        seen[key] = i
        if candidate is None:
            i += 1
            continue
        length = 4
        while i + length < n and block[candidate + length] == block[i + length]:
            length += 1
        if literal_start < i:
            _emit_literal(out, block[literal_start:i])
        _emit_copy(out, i - candidate, length)
        i += length
        literal_start = i
    if literal_start < n:
        _emit_literal(out, block[literal_start:])


def compress(data: bytes | bytearray | None) -> bytes:
    """Compress ``data`` into a snappy block."""
    src = bytes(data or b"")
    if len(src) > _MAX_DECODED_LEN:
        raise ValueError("snappy: decoded block is too large")
    out = bytearray(_uvarint(len(src)))
    for start in range(0, len(src), _MAX_BLOCK_SIZE):
        block = src[start : start + _MAX_BLOCK_SIZE]
        if len(block) < _MIN_NON_LITERAL_BLOCK_SIZE:
            _emit_literal(out, block)
        else:
            _encode_block(out, block)
    return bytes(out)


def _read_header(src: bytes) -> tuple[int, int]:
    value = 0
    shift = 0
    for pos, byte in enumerate(src[:10]):
        value |= (byte & 0x7F) << shift
        if byte < 0x80:
            if value > _MAX_DECODED_LEN:
                raise CorruptInputError()
            return value, pos + 1
        shift += 7
    raise CorruptInputError()


def decompress(data: bytes | bytearray | None) -> bytes:
    """Decompress a snappy block, raising CorruptInputError on bad input."""
    src = bytes(data or b"")
    length, s = _read_header(src)
    n = len(src)
    dst = bytearray(length)
    d = 0
    while s < n:
        tag = src[s]
        kind = tag & 3
        if kind == _TAG_LITERAL:
            x = tag >> 2
            if x < 60:
                size = x + 1
                s += 1
            else:
                extra = x - 59
                if s + 1 + extra > n:
                    raise CorruptInputError()
                size = int.from_bytes(src[s + 1 : s + 1 + extra], "little") + 1
                s += 1 + extra
            if size > length - d or size > n - s:
                raise CorruptInputError()
            dst[d : d + size] = src[s : s + size]
            d += size
            s += size
            continue

        if kind == _TAG_COPY1:
            if s + 2 > n:
                raise CorruptInputError()
            size = 4 + ((tag >> 2) & 7)
            offset = ((tag & 0xE0) << 3) | src[s + 1]
            s += 2
        elif kind == _TAG_COPY2:
            if s + 3 > n:
                raise CorruptInputError()
            size = 1 + (tag >> 2)
            offset = int.from_bytes(src[s + 1 : s + 3], "little")
            s += 3
        else:
            if s + 5 > n:
                raise CorruptInputError()
            size = 1 + (tag >> 2)
            offset = int.from_bytes(src[s + 1 : s + 5], "little")
            s += 5

        if offset <= 0 or offset > d or size > length - d:
            raise CorruptInputError()
        start = d - offset
        if offset >= size:
            dst[d : d + size] = dst[start : start + size]
        else:
            pattern = bytes(dst[start:d])
            dst[d : d + size] = (pattern * (size // offset + 1))[:size]
        d += size

    if d != length:
        raise CorruptInputError()
    return bytes(dst)


def _append(dst: bytes | bytearray | None, chunk: bytes) -> bytes | bytearray:
    if isinstance(dst, bytearray):
        dst += chunk
        return dst
    return bytes(dst or b"") + chunk


@dataclass(frozen=True)
class SnappyCodec:
    """Cell-block codec backed by snappy compression."""

    def encode(
        self, src: bytes | bytearray | None, dst: bytes | bytearray | None = None
    ) -> tuple[bytes | bytearray, int]:
        """Compress ``src`` and append it to ``dst``; return the result and chunk size.

        A bytearray ``dst`` is extended in place and returned.
        """
        chunk = compress(src)
        return _append(dst, chunk), len(chunk)

    def decode(
        self, src: bytes | bytearray | None, dst: bytes | bytearray | None = None
    ) -> tuple[bytes | bytearray, int]:
        """Decompress ``src`` and append it to ``dst``; return the result and chunk size.

        A bytearray ``dst`` is extended in place and returned.
        """
        chunk = decompress(src)
        return _append(dst, chunk), len(chunk)

    def chunk_len(self) -> int:
        """Maximum size of an uncompressed chunk."""
        return _CHUNK_LEN

    def cell_block_compressor_class(self) -> str:
        """Java class name of the matching compressor on the server."""
        return _COMPRESSOR_CLASS