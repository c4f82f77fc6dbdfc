"""Min/max bucket downsampling of time series for display."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

DEFAULT_DISPLAY_CAP = 50000


@dataclass(frozen=True)
class SeriesPoint:
    """A value at a timestamp (epoch seconds)."""

    ts: int = 0
    value: float = 0.0


@dataclass(frozen=True)
class BucketMinMax:
    """The lowest and highest point of one bucket."""

    min_ts: int = 0
    min_value: float = 0.0
    max_ts: int = 0
    max_value: float = 0.0


def downsample_bucket_min_max(
    points: Sequence[SeriesPoint],
    pixel_width: int,
    display_cap: int = DEFAULT_DISPLAY_CAP,
) -> list[BucketMinMax]:
    """Reduce ``points`` to at most ``pixel_width`` buckets keeping each bucket's extremes.

    Series no longer than ``display_cap`` are returned one point per bucket.
    """
    if pixel_width < 0 or display_cap < 0:
        raise ValueError("pixel_width and display_cap must not be negative")
    if not points or pixel_width == 0:
        return []

    if len(points) <= display_cap:
        return [BucketMinMax(p.ts, p.value, p.ts, p.value) for p in points]

    count = len(points)
    bucket_count = max(1, min(pixel_width, display_cap // 2))
    buckets: list[BucketMinMax] = []
    for b in range(bucket_count):
        start = b * count // bucket_count
        end = (b + 1) * count // bucket_count
        if start >= end:
            continue
        chunk = points[start:end]
        # min/max return the first of equal values, as required.
        low = min(chunk, key=lambda p: p.value)
        high = max(chunk, key=lambda p: p.value)
        buckets.append(BucketMinMax(low.ts, low.value, high.ts, high.value))
    return buckets