"""
Time-series shaping and display bucketing.

Flattens range-query results, groups series by a label, and resamples
points into the minute/hour/day buckets the charts use.
"""

from typing import Dict, List, Sequence, Tuple

import numpy as np
import pandas as pd

from ...models import MetricSample, MetricSeries
from .timeranges import BucketGranularity

UNKNOWN_LABEL = "unknown"


def flatten_series(series_list: Sequence[MetricSeries]) -> Tuple[MetricSample, ...]:
    """All samples from every series, ordered by timestamp."""
    samples = [sample for series in series_list for sample in series.samples]
    samples.sort(key=lambda s: s.timestamp)
    return tuple(samples)


def group_series_by_label(series_list: Sequence[MetricSeries], label: str) -> Dict[str, Tuple[MetricSample, ...]]:
    """
    Merge series sharing the same ``label`` value into one ordered sample run.

    Series without the label are grouped under "unknown".
    """
    grouped: Dict[str, List[MetricSample]] = {}
    for series in series_list:
        key = series.labels.get(label) or UNKNOWN_LABEL
        grouped.setdefault(key, []).extend(series.samples)
    return {
        key: tuple(sorted(samples, key=lambda s: s.timestamp))
        for key, samples in sorted(grouped.items())
    }


def bucket_samples(
    samples: Sequence[MetricSample],
    granularity: BucketGranularity,
    aggregation: str = "mean",
) -> List[MetricSample]:
    """
    Resample points into display buckets.

    Args:
        samples: Chronological samples; NaN/±Inf values are ignored
        granularity: Bucket width (minutes, hours or days)
        aggregation: "mean", "max" or "sum" within each bucket

    Returns:
        One sample per non-empty bucket, timestamped at the bucket start
    """
    agg_func = {"mean": "mean", "avg": "mean", "max": "max", "sum": "sum"}.get(aggregation)
    if agg_func is None:
        raise ValueError(f"Unsupported bucket aggregation: {aggregation}")

    finite = [(s.timestamp, s.value) for s in samples if s.is_finite]
    if not finite:
        return []

    df = pd.DataFrame(finite, columns=["timestamp", "value"])
    df["datetime"] = pd.to_datetime(df["timestamp"], unit="s", utc=True)
    bucketed = (
        df.set_index("datetime")["value"]
        .resample(granularity.pandas_freq)
        .agg(agg_func)
        .dropna()
    )
    # Empty buckets come back as NaN for mean/max and 0 for sum
    if agg_func == "sum":
        counts = df.set_index("datetime")["value"].resample(granularity.pandas_freq).count()
        bucketed = bucketed[counts.reindex(bucketed.index).fillna(0) > 0]

    epoch = pd.Timestamp(0, tz="UTC")
    return [
        MetricSample(timestamp=(ts - epoch) / pd.Timedelta(seconds=1), value=float(value))
        for ts, value in bucketed.items()
    ]


def series_summary(samples: Sequence[MetricSample]) -> Dict[str, float]:
    """Min, max, mean and last value over the finite samples (zeros when empty)."""
    values = np.array([s.value for s in samples if s.is_finite], dtype=float)
    if values.size == 0:
        return {"min": 0.0, "max": 0.0, "mean": 0.0, "last": 0.0}
    return {
        "min": float(values.min()),
        "max": float(values.max()),
        "mean": float(values.mean()),
        "last": float(values[-1]),
    }
