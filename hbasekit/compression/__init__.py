"""Cell-block compression codecs, with a snappy implementation."""

__all__ = ["codec", "snappy"]