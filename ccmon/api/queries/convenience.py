"""
Named query catalogue.

Every query the dashboards and session views issue is defined here so
callers never assemble PromQL by hand. Range arguments are PromQL range
literals ("15m", "1d", ...); ``filters`` are extra exact-match label
filters applied to the inner selector (empty values are ignored).
"""

from typing import Dict, Optional

from .builder import PromQuery
from .constants import (
    ACTIVE_TIME, COMMIT_COUNT, COST_USAGE, DEFAULT_RATE_WINDOW, LABEL_MODEL,
    LABEL_SESSION_ID, LABEL_TYPE, LINES_ADDED, LINES_OF_CODE, LINES_REMOVED,
    PULL_REQUEST_COUNT, SESSION_COUNT, TOKEN_USAGE,
)
from .utils import clean_filters

Filters = Optional[Dict[str, str]]


def _metric(name: str, filters: Filters) -> PromQuery:
    return PromQuery(name).with_labels(clean_filters(filters))


# Tokens

def tokens_rate(window: str = DEFAULT_RATE_WINDOW, filters: Filters = None) -> str:
    return _metric(TOKEN_USAGE, filters).rate(window).sum().build()


def tokens_rate_by_model(window: str = DEFAULT_RATE_WINDOW, filters: Filters = None) -> str:
    return _metric(TOKEN_USAGE, filters).rate(window).sum(by=[LABEL_MODEL]).build()


def tokens_rate_by_type(window: str = DEFAULT_RATE_WINDOW, filters: Filters = None) -> str:
    return _metric(TOKEN_USAGE, filters).rate(window).sum(by=[LABEL_TYPE]).build()


def total_tokens(range_: str, filters: Filters = None) -> str:
    return _metric(TOKEN_USAGE, filters).increase(range_).sum().build()


def tokens_by_model(range_: str, filters: Filters = None) -> str:
    return _metric(TOKEN_USAGE, filters).increase(range_).sum(by=[LABEL_MODEL]).build()


def tokens_by_type(range_: str, filters: Filters = None) -> str:
    return _metric(TOKEN_USAGE, filters).increase(range_).sum(by=[LABEL_TYPE]).build()


# Cost

def cost_rate(window: str = DEFAULT_RATE_WINDOW, filters: Filters = None) -> str:
    return _metric(COST_USAGE, filters).rate(window).sum().build()


def cost_rate_by_model(window: str = DEFAULT_RATE_WINDOW, filters: Filters = None) -> str:
    return _metric(COST_USAGE, filters).rate(window).sum(by=[LABEL_MODEL]).build()


def cost_per_interval(step_seconds: int, filters: Filters = None) -> str:
    """Cost incurred within each range-query step, for cost-per-bucket charts."""
    return _metric(COST_USAGE, filters).increase(f"{int(step_seconds)}s").sum().build()


def total_cost(range_: str, filters: Filters = None) -> str:
    return _metric(COST_USAGE, filters).increase(range_).sum().build()


def cost_by_model(range_: str, filters: Filters = None) -> str:
    return _metric(COST_USAGE, filters).increase(range_).sum(by=[LABEL_MODEL]).build()


# Activity

def active_time(range_: str, filters: Filters = None) -> str:
    return _metric(ACTIVE_TIME, filters).increase(range_).sum().build()


def session_count(range_: str, filters: Filters = None) -> str:
    return _metric(SESSION_COUNT, filters).increase(range_).sum().build()


def lines_of_code(line_type: str, range_: str, filters: Filters = None) -> str:
    return _metric(LINES_OF_CODE, filters).with_label(LABEL_TYPE, line_type).increase(range_).sum().build()


def lines_added(range_: str, filters: Filters = None) -> str:
    return lines_of_code(LINES_ADDED, range_, filters)


def lines_removed(range_: str, filters: Filters = None) -> str:
    return lines_of_code(LINES_REMOVED, range_, filters)


def commit_count(range_: str, filters: Filters = None) -> str:
    return _metric(COMMIT_COUNT, filters).increase(range_).sum().build()


def pr_count(range_: str, filters: Filters = None) -> str:
    return _metric(PULL_REQUEST_COUNT, filters).increase(range_).sum().build()


# Per-session breakdowns

def cost_by_session(range_: str, filters: Filters = None) -> str:
    return _metric(COST_USAGE, filters).increase(range_).sum(by=[LABEL_SESSION_ID]).build()


def tokens_by_session_and_type(range_: str, filters: Filters = None) -> str:
    return _metric(TOKEN_USAGE, filters).increase(range_).sum(by=[LABEL_SESSION_ID, LABEL_TYPE]).build()


def tokens_by_session_and_model(range_: str, filters: Filters = None) -> str:
    return _metric(TOKEN_USAGE, filters).increase(range_).sum(by=[LABEL_SESSION_ID, LABEL_MODEL]).build()


def active_time_by_session(range_: str, filters: Filters = None) -> str:
    return _metric(ACTIVE_TIME, filters).increase(range_).sum(by=[LABEL_SESSION_ID]).build()
