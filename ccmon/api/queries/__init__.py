"""
Metric Query Modules

Organized query utilities split by concern:
- builder.py: PromQuery, the immutable PromQL builder
- convenience.py: named query catalogue used by dashboards and session views
- timeranges.py: presets, step and bucket granularity policy
- labels.py: metric/label name normalization and display labels
- latest.py: scalar and breakdown extraction from instant results
- timeseries.py: series flattening, label grouping and display buckets
"""

from .builder import PromQuery, build
from .timeranges import (
    BucketGranularity, TimeRange, TimeRangePreset, granularity_for_step,
    resolve_time_range, step_for_duration,
)
from .labels import ClaudeCodeLabel, ClaudeCodeMetric, normalize_label_name, normalize_metric_name
from . import convenience

__all__ = [
    'PromQuery',
    'build',
    'convenience',

    # Time ranges
    'BucketGranularity',
    'TimeRange',
    'TimeRangePreset',
    'granularity_for_step',
    'resolve_time_range',
    'step_for_duration',

    # Labels
    'ClaudeCodeLabel',
    'ClaudeCodeMetric',
    'normalize_label_name',
    'normalize_metric_name',
]
