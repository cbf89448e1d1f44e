"""HBase filters and comparators with their protobuf wire encoding."""

__all__ = ["comparator", "filters", "wire"]