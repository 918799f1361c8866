"""
Time range presets and sampling policy.

Maps a requested time window to the PromQL range literal used inside
``increase(...[range])``, the ``step`` used for range queries, and the
granularity at which chart points are bucketed for display. Steps grow
with the window so a chart never carries more than a few hundred points.
"""

import math
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional

MINUTE = 60
HOUR = 60 * MINUTE
DAY = 24 * HOUR
WEEK = 7 * DAY


class BucketGranularity(str, Enum):
    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"

    @property
    def date_format(self) -> str:
        """strftime format for chart axis labels."""
        return {
            BucketGranularity.MINUTES: "%H:%M",
            BucketGranularity.HOURS: "%b %d %H:%M",
            BucketGranularity.DAYS: "%b %d",
        }[self]

    @property
    def pandas_freq(self) -> str:
        """pandas offset alias used when resampling into buckets."""
        return {
            BucketGranularity.MINUTES: "min",
            BucketGranularity.HOURS: "h",
            BucketGranularity.DAYS: "D",
        }[self]


def step_for_duration(duration_seconds: float) -> int:
    """
    Recommended range-query step for a window of the given length.

    Args:
        duration_seconds: Window length in seconds

    Returns:
        60 below 12h, 300 below 24h, 3600 below 7d, otherwise 86400
    """
    if duration_seconds < 12 * HOUR:
        return MINUTE
    if duration_seconds < DAY:
        return 5 * MINUTE
    if duration_seconds < WEEK:
        return HOUR
    return DAY


def granularity_for_step(step_seconds: float) -> BucketGranularity:
    if step_seconds < HOUR:
        return BucketGranularity.MINUTES
    if step_seconds < DAY:
        return BucketGranularity.HOURS
    return BucketGranularity.DAYS


class TimeRangePreset(str, Enum):
    LAST_15_MINUTES = "15m"
    LAST_1_HOUR = "1h"
    LAST_12_HOURS = "12h"
    LAST_1_DAY = "1d"
    LAST_1_WEEK = "1w"
    LAST_2_WEEKS = "2w"
    LAST_1_MONTH = "1mo"
    CUSTOM = "custom"

    @property
    def display_name(self) -> str:
        return _PRESET_DISPLAY_NAMES[self]

    @property
    def duration(self) -> int:
        """Window length in seconds (custom ranges carry their own)."""
        return _PRESET_DURATIONS.get(self, HOUR)

    @property
    def promql_range(self) -> str:
        return self.value

    @property
    def step(self) -> int:
        return _PRESET_STEPS.get(self, MINUTE)

    @property
    def granularity(self) -> BucketGranularity:
        return granularity_for_step(self.step)


# Fixed constants; the range literal is not derived from the duration
_PRESET_DISPLAY_NAMES = {
    TimeRangePreset.LAST_15_MINUTES: "Past 15 minutes",
    TimeRangePreset.LAST_1_HOUR: "Past 1 hour",
    TimeRangePreset.LAST_12_HOURS: "Past 12 hours",
    TimeRangePreset.LAST_1_DAY: "Past 1 day",
    TimeRangePreset.LAST_1_WEEK: "Past 1 week",
    TimeRangePreset.LAST_2_WEEKS: "Past 2 weeks",
    TimeRangePreset.LAST_1_MONTH: "Past 1 month",
    TimeRangePreset.CUSTOM: "Custom",
}

_PRESET_DURATIONS = {
    TimeRangePreset.LAST_15_MINUTES: 15 * MINUTE,
    TimeRangePreset.LAST_1_HOUR: HOUR,
    TimeRangePreset.LAST_12_HOURS: 12 * HOUR,
    TimeRangePreset.LAST_1_DAY: DAY,
    TimeRangePreset.LAST_1_WEEK: WEEK,
    TimeRangePreset.LAST_2_WEEKS: 2 * WEEK,
    TimeRangePreset.LAST_1_MONTH: 30 * DAY,
}

_PRESET_STEPS = {
    TimeRangePreset.LAST_15_MINUTES: MINUTE,
    TimeRangePreset.LAST_1_HOUR: MINUTE,
    TimeRangePreset.LAST_12_HOURS: 5 * MINUTE,
    TimeRangePreset.LAST_1_DAY: HOUR,
    TimeRangePreset.LAST_1_WEEK: HOUR,
    TimeRangePreset.LAST_2_WEEKS: DAY,
    TimeRangePreset.LAST_1_MONTH: DAY,
}


@dataclass(frozen=True)
class TimeRange:
    """A resolved query window: absolute bounds plus sampling parameters."""

    preset: TimeRangePreset
    start: float
    end: float
    promql_range: str
    step: int
    granularity: BucketGranularity

    @property
    def duration(self) -> float:
        return self.end - self.start

    @property
    def display_name(self) -> str:
        return self.preset.display_name

    @property
    def expected_points(self) -> int:
        return int(self.duration // self.step)

    @classmethod
    def from_preset(cls, preset: TimeRangePreset, now: Optional[float] = None) -> "TimeRange":
        if preset is TimeRangePreset.CUSTOM:
            raise ValueError("Custom ranges need explicit bounds; use TimeRange.custom()")
        end = time.time() if now is None else now
        return cls(
            preset=preset,
            start=end - preset.duration,
            end=end,
            promql_range=preset.promql_range,
            step=preset.step,
            granularity=preset.granularity,
        )

    @classmethod
    def custom(cls, start: float, end: float) -> "TimeRange":
        """
        Build a custom window from explicit epoch-second bounds.

        Raises:
            ValueError: If end is not after start
        """
        if end <= start:
            raise ValueError(f"Invalid custom range: end ({end}) must be after start ({start})")
        duration = end - start
        step = step_for_duration(duration)
        return cls(
            preset=TimeRangePreset.CUSTOM,
            start=start,
            end=end,
            promql_range=f"{max(1, math.ceil(duration))}s",
            step=step,
            granularity=granularity_for_step(step),
        )


def resolve_time_range(
    preset: str,
    start: Optional[float] = None,
    end: Optional[float] = None,
    now: Optional[float] = None,
) -> TimeRange:
    """
    Resolve a preset name (or "custom" with bounds) to a TimeRange.

    Raises:
        ValueError: For unknown presets or custom ranges without valid bounds
    """
    selected = TimeRangePreset(preset)
    if selected is TimeRangePreset.CUSTOM:
        if start is None or end is None:
            raise ValueError("Custom range requires start and end")
        return TimeRange.custom(start, end)
    return TimeRange.from_preset(selected, now=now)
