#!/usr/bin/env python3
"""
ccmon API Schemas - Pydantic Models for Prometheus Responses and API Output
"""

import math
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

T = TypeVar("T")


# Prometheus HTTP API envelopes

class PrometheusResponse(BaseModel, Generic[T]):
    status: str
    data: Optional[T] = None
    errorType: Optional[str] = None
    error: Optional[str] = None
    warnings: Optional[List[str]] = None

    @property
    def is_success(self) -> bool:
        return self.status == "success"


class PrometheusMetricResult(BaseModel):
    """One series in a vector (``value``) or matrix (``values``) result."""

    metric: Dict[str, str] = Field(default_factory=dict)
    value: Optional[List[Any]] = None
    values: Optional[List[List[Any]]] = None

    @field_validator("value")
    @classmethod
    def _check_pair(cls, v):
        if v is not None and len(v) != 2:
            raise ValueError("sample must be a [timestamp, value] pair")
        return v


class PrometheusQueryData(BaseModel):
    resultType: str
    result: List[PrometheusMetricResult] = Field(default_factory=list)


class BuildInfo(BaseModel):
    version: str
    revision: str = ""
    branch: str = ""
    buildUser: str = ""
    buildDate: str = ""
    goVersion: str = ""


class PrometheusTarget(BaseModel):
    labels: Dict[str, str] = Field(default_factory=dict)
    scrapePool: Optional[str] = None
    scrapeUrl: Optional[str] = None
    health: Optional[str] = None
    lastError: Optional[str] = None
    lastScrape: Optional[str] = None


class TargetsData(BaseModel):
    activeTargets: List[PrometheusTarget] = Field(default_factory=list)
    droppedTargets: Optional[List[Dict[str, Any]]] = None


# ccmon API output

def _json_float(value: Optional[float]) -> Optional[float]:
    """NaN and the infinities have no JSON spelling; emit null instead."""
    if value is None or not math.isfinite(value):
        return None
    return value


class SamplePoint(BaseModel):
    timestamp: float
    value: Optional[float]

    @field_validator("value", mode="before")
    @classmethod
    def _finite(cls, v):
        return _json_float(v)


class SeriesOut(BaseModel):
    name: str
    labels: Dict[str, str] = Field(default_factory=dict)
    points: List[SamplePoint] = Field(default_factory=list)
    summary: Optional[Dict[str, float]] = None


class TimeRangeOut(BaseModel):
    preset: str
    display_name: str
    start: float
    end: float
    range: str
    step: int
    granularity: str


class ConnectionStatusOut(BaseModel):
    state: str
    version: Optional[str] = None
    error: Optional[str] = None
    is_connected: bool
    display_text: str


class DashboardOut(BaseModel):
    time_range: TimeRangeOut
    total_tokens: float
    total_cost: float
    total_active_time: float
    session_count: float
    lines_added: float
    lines_removed: float
    commit_count: float
    pr_count: float
    tokens_series: List[SamplePoint]
    cost_rate_series: List[SamplePoint]
    cost_series: List[SamplePoint]
    tokens_by_model_series: List[SeriesOut]
    tokens_by_type_series: List[SeriesOut]
    cost_by_model: Dict[str, float]
    tokens_by_type: Dict[str, float]
    model_breakdown: Dict[str, float]
    failed_queries: List[str]
    warning: Optional[str] = None
    refreshed_at: Optional[float] = None
    formatted: Dict[str, str] = Field(default_factory=dict)


class SessionOut(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    session_id: str
    truncated_session_id: str
    total_cost: str
    total_tokens: int
    tokens_by_type: Dict[str, int]
    tokens_by_model: Dict[str, int]
    active_time: float
    project_path: Optional[str] = None
    project_name: Optional[str] = None
    cost_per_token: Optional[float] = None
    cost_per_minute: Optional[float] = None
    tokens_per_minute: Optional[float] = None
    cost_status: str = "no_data"
    formatted_cost: str = ""
    formatted_tokens: str = ""
    formatted_active_time: str = ""


class SessionsOut(BaseModel):
    status: str
    message: Optional[str] = None
    failed_queries: List[str] = Field(default_factory=list)
    sessions: List[SessionOut] = Field(default_factory=list)
    total_cost: str = "0"
    total_tokens: int = 0
    highest_cost_session: Optional[str] = None
    most_tokens_session: Optional[str] = None
    longest_session: Optional[str] = None


class ProjectCostOut(BaseModel):
    project: str
    total_cost: str
    session_count: int
    total_tokens: int


class PeriodComparisonOut(BaseModel):
    current_days: int
    previous_days: int
    current_messages: int
    previous_messages: int
    current_sessions: int
    previous_sessions: int
    current_tokens: int
    previous_tokens: int
    messages_change: Optional[float] = None
    sessions_change: Optional[float] = None
    tokens_change: Optional[float] = None


class TrendPointOut(BaseModel):
    date: str
    value: int


class PeakActivityOut(BaseModel):
    most_active_hour: Optional[int] = None
    longest_session_minutes: Optional[float] = None
    current_streak: int = 0
    member_since: Optional[str] = None


class InsightsOut(BaseModel):
    last_computed_date: Optional[str] = None
    total_sessions: int
    total_messages: int
    total_tokens: int
    estimated_cost: float
    active_days: int
    average_messages_per_day: float
    average_sessions_per_day: float
    week_over_week: PeriodComparisonOut
    month_over_month: PeriodComparisonOut
    peak_activity: PeakActivityOut
    trend: List[TrendPointOut]
