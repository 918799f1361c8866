"""
ccmon Insights Module

Analytics over Claude Code's local stats cache file: period comparisons,
streaks, trends and list-price cost estimates. Nothing here talks to the
metrics backend.
"""

from .analytics import build_insights, percentage_change, period_comparison
from .pricing import PricingProvider
from .stats_cache import StatsCache, StatsCacheError, StatsCacheLoader

__all__ = [
    "build_insights",
    "percentage_change",
    "period_comparison",
    "PricingProvider",
    "StatsCache",
    "StatsCacheError",
    "StatsCacheLoader",
]
