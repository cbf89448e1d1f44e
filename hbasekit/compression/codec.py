"""Cell-block compression codecs."""

from __future__ import annotations

from typing import Callable, Protocol, runtime_checkable

from hbasekit.compression.snappy import SnappyCodec


@runtime_checkable
class Codec(Protocol):
    """Encodes and decodes chunks of Hadoop sequence-file data."""

    def encode(
        self, src: bytes | bytearray | None, dst: bytes | bytearray | None
    ) -> tuple[bytes | bytearray, int]:
        """Compress ``src``, append it to ``dst`` and return it with the chunk size."""

    def decode(
        self, src: bytes | bytearray | None, dst: bytes | bytearray | None
    ) -> tuple[bytes | bytearray, int]:
        """Decompress ``src``, append it to ``dst`` and return it with the chunk size."""

    def chunk_len(self) -> int:
        """Maximum chunk size for this codec."""

    def cell_block_compressor_class(self) -> str:
        """Java class name of the compressor on the server side."""


_CODECS: dict[str, Callable[[], Codec]] = {
    "snappy": SnappyCodec,
}


def new_codec(name: str) -> Codec:
    """Instantiate the codec called ``name``; only ``snappy`` is supported."""
    try:
        factory = _CODECS[name]
    except KeyError:
        raise ValueError(f"unknown compression codec: {name!r}") from None
    return factory()