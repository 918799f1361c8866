"""
Dashboard Configuration

Display formatting for costs, token counts and durations, plus the cost
thresholds used to colour session rows.
"""

from decimal import Decimal
from typing import Any, Union

Number = Union[int, float, Decimal]

# Session cost thresholds in USD for colour coding
# Format: [low_threshold, medium_threshold, high_threshold]
# Colors: blue (cheap) -> green (normal) -> yellow (expensive) -> red (very expensive)
COST_THRESHOLDS = [0.10, 1.00, 5.00]


def get_cost_status(cost: Number) -> str:
    """
    Determine the status level of a session cost.

    Args:
        cost: Cost in USD

    Returns:
        Status string: 'low', 'normal', 'high', 'critical' or 'no_data'
    """
    if not cost:
        return 'no_data'
    value = float(cost)
    if value < COST_THRESHOLDS[0]:
        return 'low'
    elif value < COST_THRESHOLDS[1]:
        return 'normal'
    elif value < COST_THRESHOLDS[2]:
        return 'high'
    return 'critical'


def format_cost(cost: Number) -> str:
    """Format USD with more decimals for small amounts: $1.23, $0.045, $0.0012."""
    value = float(cost)
    if value >= 1.0:
        return f"${value:.2f}"
    elif value >= 0.01:
        return f"${value:.3f}"
    return f"${value:.4f}"


def format_tokens(count: Number) -> str:
    """Compact token count: 1.25M, 12.3K, 512."""
    value = float(count)
    if value >= 1_000_000:
        return f"{value / 1_000_000:.2f}M"
    elif value >= 1_000:
        return f"{value / 1_000:.1f}K"
    return f"{value:.0f}"


def format_duration(seconds: Number) -> str:
    """Active time as '2h 15m', '45m 30s' or '12s'."""
    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours > 0:
        return f"{hours}h {minutes}m"
    elif minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def format_metric_value(value: Any, unit: str) -> str:
    """
    Format a KPI value for its unit.

    Args:
        value: Raw metric value
        unit: "USD", "tokens", "seconds" or "count"

    Returns:
        Formatted string, '—' when the value is missing or not numeric
    """
    if value is None or value == '':
        return '—'
    try:
        num_val = float(value)
    except (ValueError, TypeError):
        return '—'

    if unit == "USD":
        return format_cost(num_val)
    elif unit == "tokens":
        return format_tokens(num_val)
    elif unit == "seconds":
        return format_duration(num_val)
    return f"{num_val:.0f}"
