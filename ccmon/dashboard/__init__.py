"""
ccmon Dashboard Module

Dashboard-mode aggregation (KPIs, series, breakdowns) and session-level
merging, kept in plain Python for easy debugging and testing.
"""

from .controller import DashboardController
from .sessions import SessionMetricsService, merge_results

__all__ = ["DashboardController", "SessionMetricsService", "merge_results"]
