#!/usr/bin/env python3
"""
ccmon Value Objects: immutable results handed to the presentation layer

Paradigm: query → decode → aggregate
- MetricSample / MetricSeries: decoded Prometheus instant and range results
- SessionRecord: one Claude Code session merged from several per-session queries
- DashboardData: KPI totals, chart series and breakdowns for one time range
- ConnectionStatus: backend reachability as last observed

Notes:
- Everything here is a frozen dataclass; aggregation builds new objects.
- Sample values keep NaN/±Inf as floats; they are only coerced at the edges.
"""

import math
import os
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .api.queries.timeranges import TimeRange


class TokenType(str, Enum):
    INPUT = "input"
    OUTPUT = "output"
    CACHE_READ = "cacheRead"
    CACHE_CREATION = "cacheCreation"

    @property
    def display_name(self) -> str:
        return {
            TokenType.INPUT: "Input",
            TokenType.OUTPUT: "Output",
            TokenType.CACHE_READ: "Cache Read",
            TokenType.CACHE_CREATION: "Cache Creation",
        }[self]

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional["TokenType"]:
        try:
            return cls(raw)
        except ValueError:
            return None


def empty_token_breakdown() -> Dict[TokenType, int]:
    return {token_type: 0 for token_type in TokenType}


@dataclass(frozen=True)
class MetricSample:
    """A single decoded sample. ``value`` may be NaN or ±Inf."""
    timestamp: float
    value: float
    labels: Dict[str, str] = field(default_factory=dict)

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.value)


@dataclass(frozen=True)
class MetricSeries:
    """A range-query series: one label set, samples in chronological order."""
    labels: Dict[str, str]
    samples: Tuple[MetricSample, ...] = ()

    @property
    def latest_value(self) -> Optional[float]:
        return self.samples[-1].value if self.samples else None

    def label(self, name: str, default: str = "unknown") -> str:
        return self.labels.get(name, default)


@dataclass(frozen=True)
class SessionRecord:
    """
    Usage attributed to one session over the queried range.

    ``total_tokens`` is always the sum of ``tokens_by_type``; it is not
    stored separately so the two can never disagree.
    """
    session_id: str
    total_cost: Decimal = Decimal("0")
    tokens_by_type: Dict[TokenType, int] = field(default_factory=empty_token_breakdown)
    tokens_by_model: Dict[str, int] = field(default_factory=dict)
    active_time: float = 0.0
    project_path: Optional[str] = None

    @property
    def total_tokens(self) -> int:
        return sum(self.tokens_by_type.values())

    @property
    def project_name(self) -> Optional[str]:
        if not self.project_path:
            return None
        return os.path.basename(self.project_path.rstrip("/")) or self.project_path

    @property
    def cost_per_token(self) -> Optional[float]:
        if self.total_tokens <= 0:
            return None
        return float(self.total_cost) / self.total_tokens

    @property
    def cost_per_minute(self) -> Optional[float]:
        if self.active_time <= 0:
            return None
        return float(self.total_cost) / (self.active_time / 60.0)

    @property
    def tokens_per_minute(self) -> Optional[float]:
        if self.active_time <= 0:
            return None
        return self.total_tokens / (self.active_time / 60.0)

    @property
    def truncated_session_id(self) -> str:
        if len(self.session_id) <= 16:
            return self.session_id
        return f"{self.session_id[:8]}...{self.session_id[-4:]}"


UNKNOWN_PROJECT = "Unknown"


@dataclass(frozen=True)
class ProjectCostSummary:
    project_path: str
    total_cost: Decimal
    total_tokens: int
    session_count: int
    total_active_time: float

    @property
    def project_name(self) -> str:
        if self.project_path == UNKNOWN_PROJECT:
            return UNKNOWN_PROJECT
        return os.path.basename(self.project_path.rstrip("/")) or self.project_path


class SessionFetchStatus(str, Enum):
    OK = "ok"
    PARTIAL = "partial"
    NO_SESSIONS = "no_sessions"
    CONNECTION_FAILED = "connection_failed"


@dataclass(frozen=True)
class SessionFetchResult:
    status: SessionFetchStatus
    sessions: Tuple[SessionRecord, ...] = ()
    failed_queries: Tuple[str, ...] = ()
    message: Optional[str] = None

    @property
    def has_warning(self) -> bool:
        return self.status is SessionFetchStatus.PARTIAL

    @property
    def total_cost(self) -> Decimal:
        return sum((s.total_cost for s in self.sessions), Decimal("0"))

    @property
    def total_tokens(self) -> int:
        return sum(s.total_tokens for s in self.sessions)


@dataclass(frozen=True)
class DashboardData:
    """Everything one dashboard refresh produces for a single time range."""
    time_range: Optional[TimeRange] = None

    # KPI totals
    total_tokens: float = 0.0
    total_cost: float = 0.0
    total_active_time: float = 0.0
    session_count: float = 0.0
    lines_added: float = 0.0
    lines_removed: float = 0.0
    commit_count: float = 0.0
    pr_count: float = 0.0

    # Chart series
    tokens_series: Tuple[MetricSample, ...] = ()
    cost_rate_series: Tuple[MetricSample, ...] = ()
    cost_series: Tuple[MetricSample, ...] = ()
    tokens_by_model_series: Dict[str, Tuple[MetricSample, ...]] = field(default_factory=dict)
    tokens_by_type_series: Dict[str, Tuple[MetricSample, ...]] = field(default_factory=dict)

    # Breakdowns
    cost_by_model: Dict[str, float] = field(default_factory=dict)
    tokens_by_type: Dict[str, float] = field(default_factory=dict)
    model_breakdown: Dict[str, float] = field(default_factory=dict)

    failed_queries: Tuple[str, ...] = ()

    @property
    def warning(self) -> Optional[str]:
        if not self.failed_queries:
            return None
        return partial_failure_message(self.failed_queries, DASHBOARD_QUERY_COUNT)


# Number of queries issued per dashboard refresh
DASHBOARD_QUERY_COUNT = 16


def partial_failure_message(failed: List[str], total: int) -> str:
    return f"partial data: {len(failed)}/{total} queries failed, [{', '.join(failed)}]"


class ConnectionState(str, Enum):
    UNKNOWN = "unknown"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


@dataclass(frozen=True)
class ConnectionStatus:
    state: ConnectionState = ConnectionState.UNKNOWN
    version: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def connected(cls, version: str) -> "ConnectionStatus":
        return cls(ConnectionState.CONNECTED, version=version)

    @classmethod
    def disconnected(cls, error: str) -> "ConnectionStatus":
        return cls(ConnectionState.DISCONNECTED, error=error)

    @classmethod
    def connecting(cls) -> "ConnectionStatus":
        return cls(ConnectionState.CONNECTING)

    @property
    def is_connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    @property
    def display_text(self) -> str:
        if self.state is ConnectionState.CONNECTED:
            return f"Connected (v{self.version})"
        if self.state is ConnectionState.DISCONNECTED:
            return f"Disconnected: {self.error}"
        if self.state is ConnectionState.CONNECTING:
            return "Connecting..."
        return "Unknown"
