"""Client-side building blocks for HBase: filters, compression and region caches."""

__version__ = "0.1.0"
__all__ = ["caches", "compression", "filter"]