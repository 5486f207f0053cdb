"""Byte-size conversions for capacity pool and volume quotas."""

from __future__ import annotations

GIB = 1024**3
TIB = 1024**4

MIN_CAPACITY_POOL_SIZE_BYTES = 4 * TIB
MIN_VOLUME_SIZE_BYTES = 100 * GIB


def bytes_to_tib(size: int) -> int:
    """Convert bytes to whole tebibytes, rounding down."""
    return size // TIB


def tib_to_bytes(size: int) -> int:
    return size * TIB


def bytes_to_gib(size: int) -> int:
    """Convert bytes to whole gibibytes, rounding down."""
    return size // GIB
