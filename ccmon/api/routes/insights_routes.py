#!/usr/bin/env python3
"""
Insights Routes - Local Stats Cache Analytics
"""

import logging
from dataclasses import asdict

from fastapi import APIRouter, HTTPException, Query, status

from ...insights.analytics import InsightsSummary, PeriodComparison, build_insights
from ...insights.stats_cache import StatsCacheError
from ..dependencies import ServiceContainer
from ..schemas import InsightsOut, PeakActivityOut, PeriodComparisonOut, TrendPointOut

logger = logging.getLogger("ccmon.server")


def _comparison_out(comparison: PeriodComparison) -> PeriodComparisonOut:
    return PeriodComparisonOut(
        **asdict(comparison),
        messages_change=comparison.messages_change,
        sessions_change=comparison.sessions_change,
        tokens_change=comparison.tokens_change,
    )


def insights_out(summary: InsightsSummary) -> InsightsOut:
    return InsightsOut(
        last_computed_date=summary.last_computed_date,
        total_sessions=summary.total_sessions,
        total_messages=summary.total_messages,
        total_tokens=summary.total_tokens,
        estimated_cost=summary.estimated_cost,
        active_days=summary.active_days,
        average_messages_per_day=summary.average_messages_per_day,
        average_sessions_per_day=summary.average_sessions_per_day,
        week_over_week=_comparison_out(summary.week_over_week),
        month_over_month=_comparison_out(summary.month_over_month),
        peak_activity=PeakActivityOut(**asdict(summary.peak_activity)),
        trend=[TrendPointOut(date=p.date, value=p.value) for p in summary.trend],
    )


def _stats_error(e: StatsCacheError) -> HTTPException:
    if e.missing:
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.message)


def create_insights_routes(deps: ServiceContainer) -> APIRouter:
    """Create local analytics routes."""
    router = APIRouter()
    loader = deps.stats_loader

    @router.get("/api/insights", response_model=InsightsOut)
    def get_insights(
        days: int = Query(30, ge=1, le=365, description="Trend length in days"),
        metric: str = Query("messages", description="Trend metric: messages, sessions or tool_calls"),
    ):
        try:
            stats = loader.load()
        except StatsCacheError as e:
            logger.warning(f"Insights unavailable: {e.message}")
            raise _stats_error(e)

        try:
            summary = build_insights(stats, trend_days=days, trend_metric=metric, provider=deps.pricing_provider)
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
        return insights_out(summary)

    @router.post("/api/insights/refresh")
    def refresh_insights():
        """Reread the stats cache file from disk."""
        try:
            stats = loader.refresh()
        except StatsCacheError as e:
            logger.warning(f"Stats cache refresh failed: {e.message}")
            raise _stats_error(e)
        return {
            "status": "refreshed",
            "last_computed_date": stats.last_computed_date,
            "active_days": len(stats.daily_activity),
        }

    return router
