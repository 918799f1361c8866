"""
Local usage analytics.

Pure functions over a loaded StatsCache: period-over-period comparison,
activity streaks, peak hour, trends and derived averages. Every function
that depends on "today" takes it as a parameter so results are
reproducible in tests.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import List, Optional

import pandas as pd

from .pricing import PricingProvider
from .stats_cache import StatsCache

logger = logging.getLogger("ccmon.insights")

TREND_METRICS = {
    "messages": "message_count",
    "sessions": "session_count",
    "tool_calls": "tool_call_count",
}


def percentage_change(previous: float, current: float) -> Optional[float]:
    """
    Relative change from ``previous`` to ``current`` in percent.

    Returns None when ``previous`` is zero rather than reporting infinite growth.
    """
    if previous == 0:
        return None
    return (current - previous) / previous * 100.0


@dataclass(frozen=True)
class PeriodComparison:
    current_days: int
    previous_days: int
    current_messages: int = 0
    previous_messages: int = 0
    current_sessions: int = 0
    previous_sessions: int = 0
    current_tokens: int = 0
    previous_tokens: int = 0

    @property
    def messages_change(self) -> Optional[float]:
        return percentage_change(self.previous_messages, self.current_messages)

    @property
    def sessions_change(self) -> Optional[float]:
        return percentage_change(self.previous_sessions, self.current_sessions)

    @property
    def tokens_change(self) -> Optional[float]:
        return percentage_change(self.previous_tokens, self.current_tokens)


@dataclass(frozen=True)
class TrendPoint:
    date: str
    value: int


@dataclass(frozen=True)
class PeakActivity:
    most_active_hour: Optional[int] = None
    longest_session_minutes: Optional[float] = None
    current_streak: int = 0
    member_since: Optional[str] = None


@dataclass(frozen=True)
class InsightsSummary:
    last_computed_date: Optional[str]
    total_sessions: int
    total_messages: int
    total_tokens: int
    estimated_cost: float
    active_days: int
    average_messages_per_day: float
    average_sessions_per_day: float
    week_over_week: PeriodComparison
    month_over_month: PeriodComparison
    peak_activity: PeakActivity
    trend: List[TrendPoint] = field(default_factory=list)


def _parse_date(value: str) -> Optional[date]:
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        logger.debug(f"Skipping entry with unparseable date: {value!r}")
        return None


def _daily_frame(stats: StatsCache) -> pd.DataFrame:
    """
    One row per calendar date with messages, sessions and tokens.

    Activity and token entries are joined on date; a date present in only
    one of them gets zeros for the other.
    """
    activity = pd.DataFrame(
        [
            {"day": _parse_date(e.date), "messages": e.message_count, "sessions": e.session_count}
            for e in stats.daily_activity
        ],
        columns=["day", "messages", "sessions"],
    )
    tokens = pd.DataFrame(
        [{"day": _parse_date(e.date), "tokens": e.total_tokens} for e in stats.daily_model_tokens],
        columns=["day", "tokens"],
    )
    activity = activity.dropna(subset=["day"]).groupby("day").sum()
    tokens = tokens.dropna(subset=["day"]).groupby("day").sum()
    return activity.join(tokens, how="outer").fillna(0)


def _window_sums(frame: pd.DataFrame, first: date, last: date) -> pd.Series:
    if frame.empty:
        return pd.Series({"messages": 0, "sessions": 0, "tokens": 0})
    window = frame[(frame.index >= first) & (frame.index <= last)]
    return window[["messages", "sessions", "tokens"]].sum()


def period_comparison(
    stats: StatsCache,
    current_days: int,
    previous_days: int,
    today: Optional[date] = None,
) -> PeriodComparison:
    """
    Compare the most recent ``current_days`` with the ``previous_days`` before them.

    Windows are calendar-based: the current window is
    ``[today - current_days + 1, today]`` and the previous window ends the day
    before it starts. Days without entries count as zero.
    """
    if current_days <= 0 or previous_days <= 0:
        raise ValueError("Comparison windows must be at least one day long")
    today = today or date.today()

    current_start = today - timedelta(days=current_days - 1)
    previous_end = current_start - timedelta(days=1)
    previous_start = previous_end - timedelta(days=previous_days - 1)

    frame = _daily_frame(stats)
    current = _window_sums(frame, current_start, today)
    previous = _window_sums(frame, previous_start, previous_end)

    return PeriodComparison(
        current_days=current_days,
        previous_days=previous_days,
        current_messages=int(current["messages"]),
        previous_messages=int(previous["messages"]),
        current_sessions=int(current["sessions"]),
        previous_sessions=int(previous["sessions"]),
        current_tokens=int(current["tokens"]),
        previous_tokens=int(previous["tokens"]),
    )


def week_over_week(stats: StatsCache, today: Optional[date] = None) -> PeriodComparison:
    return period_comparison(stats, 7, 7, today)


def month_over_month(stats: StatsCache, today: Optional[date] = None) -> PeriodComparison:
    return period_comparison(stats, 30, 30, today)


def current_streak(stats: StatsCache, today: Optional[date] = None) -> int:
    """
    Number of consecutive active days ending today or yesterday.

    A streak whose latest active day is older than yesterday is over and
    counts as 0.
    """
    today = today or date.today()
    active = {d for d in (_parse_date(e.date) for e in stats.daily_activity if e.is_active) if d}
    if not active:
        return 0

    cursor = today if today in active else today - timedelta(days=1)
    streak = 0
    while cursor in active:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def peak_hour(stats: StatsCache) -> Optional[int]:
    """Hour of day (0-23) with the most activity; earliest hour wins ties."""
    best_hour, best_count = None, 0
    for key, count in stats.hour_counts.items():
        try:
            hour = int(key)
        except ValueError:
            continue
        if not 0 <= hour <= 23 or count <= 0:
            continue
        if count > best_count or (count == best_count and best_hour is not None and hour < best_hour):
            best_hour, best_count = hour, count
    return best_hour


def trend_series(stats: StatsCache, days: int, metric: str = "messages") -> List[TrendPoint]:
    """
    The last ``days`` daily activity entries for one metric, oldest first.

    Args:
        stats: Loaded stats cache (activity already in date order)
        days: Number of entries to return
        metric: "messages", "sessions" or "tool_calls"
    """
    attribute = TREND_METRICS.get(metric)
    if attribute is None:
        raise ValueError(f"Unknown trend metric: {metric}")
    if days <= 0:
        return []
    return [TrendPoint(date=e.date, value=getattr(e, attribute)) for e in stats.daily_activity[-days:]]


def active_days(stats: StatsCache) -> int:
    return len(stats.daily_activity)


def average_messages_per_day(stats: StatsCache) -> float:
    days = active_days(stats)
    return stats.total_messages / days if days else 0.0


def average_sessions_per_day(stats: StatsCache) -> float:
    days = active_days(stats)
    return stats.total_sessions / days if days else 0.0


def total_tokens(stats: StatsCache) -> int:
    return sum(usage.total_tokens for usage in stats.model_usage.values())


def estimated_cost(stats: StatsCache, provider: PricingProvider = PricingProvider.ANTHROPIC) -> float:
    """List-price cost of all recorded model usage."""
    return sum(
        provider.calculate_cost(
            model,
            usage.input_tokens,
            usage.output_tokens,
            usage.cache_read_input_tokens,
            usage.cache_creation_input_tokens,
        )
        for model, usage in stats.model_usage.items()
    )


def peak_activity(stats: StatsCache, today: Optional[date] = None) -> PeakActivity:
    longest = stats.longest_session
    member_since = None
    if stats.first_session_date:
        parsed = _parse_date(stats.first_session_date)
        member_since = parsed.isoformat() if parsed else None
    return PeakActivity(
        most_active_hour=peak_hour(stats),
        longest_session_minutes=round(longest.duration_minutes, 1) if longest else None,
        current_streak=current_streak(stats, today),
        member_since=member_since,
    )


def build_insights(
    stats: StatsCache,
    trend_days: int = 30,
    trend_metric: str = "messages",
    provider: PricingProvider = PricingProvider.ANTHROPIC,
    today: Optional[date] = None,
) -> InsightsSummary:
    """Compute every insight the presentation layer shows in one pass."""
    today = today or date.today()
    return InsightsSummary(
        last_computed_date=stats.last_computed_date,
        total_sessions=stats.total_sessions,
        total_messages=stats.total_messages,
        total_tokens=total_tokens(stats),
        estimated_cost=estimated_cost(stats, provider),
        active_days=active_days(stats),
        average_messages_per_day=average_messages_per_day(stats),
        average_sessions_per_day=average_sessions_per_day(stats),
        week_over_week=week_over_week(stats, today),
        month_over_month=month_over_month(stats, today),
        peak_activity=peak_activity(stats, today),
        trend=trend_series(stats, trend_days, trend_metric),
    )
