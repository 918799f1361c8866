#!/usr/bin/env python3
"""
Dashboard Routes - KPIs, Chart Series and Breakdowns
"""

import logging
from typing import Dict, List, Sequence

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...dashboard.config import format_metric_value
from ...dashboard.controller import DashboardController
from ...models import DashboardData, MetricSample
from ..dependencies import ServiceContainer
from ..queries.constants import LABEL_MODEL, LABEL_TYPE
from ..queries.labels import create_friendly_label
from ..queries.timeranges import TimeRange, TimeRangePreset
from ..queries.timeseries import bucket_samples, series_summary
from ..schemas import DashboardOut, SamplePoint, SeriesOut, TimeRangeOut

logger = logging.getLogger("ccmon.server")

# Route name -> (DashboardData field, grouping label or None)
SERIES_FIELDS = {
    "tokens": ("tokens_series", None),
    "cost_rate": ("cost_rate_series", None),
    "cost": ("cost_series", None),
    "tokens_by_model": ("tokens_by_model_series", LABEL_MODEL),
    "tokens_by_type": ("tokens_by_type_series", LABEL_TYPE),
}

# KPI field -> display unit
KPI_UNITS = {
    "total_tokens": "tokens",
    "total_cost": "USD",
    "total_active_time": "seconds",
    "session_count": "count",
    "lines_added": "count",
    "lines_removed": "count",
    "commit_count": "count",
    "pr_count": "count",
}


def time_range_out(time_range: TimeRange) -> TimeRangeOut:
    return TimeRangeOut(
        preset=time_range.preset.value,
        display_name=time_range.display_name,
        start=time_range.start,
        end=time_range.end,
        range=time_range.promql_range,
        step=time_range.step,
        granularity=time_range.granularity.value,
    )


def _points(samples: Sequence[MetricSample]) -> List[SamplePoint]:
    return [SamplePoint(timestamp=s.timestamp, value=s.value) for s in samples]


def _series_out(label_name: str, key: str, samples: Sequence[MetricSample]) -> SeriesOut:
    labels = {label_name: key}
    return SeriesOut(name=create_friendly_label(labels), labels=labels, points=_points(samples))


def _grouped(label_name: str, series: Dict[str, Sequence[MetricSample]]) -> List[SeriesOut]:
    return [_series_out(label_name, key, samples) for key, samples in series.items()]


def dashboard_out(data: DashboardData, refreshed_at=None) -> DashboardOut:
    return DashboardOut(
        time_range=time_range_out(data.time_range),
        total_tokens=data.total_tokens,
        total_cost=data.total_cost,
        total_active_time=data.total_active_time,
        session_count=data.session_count,
        lines_added=data.lines_added,
        lines_removed=data.lines_removed,
        commit_count=data.commit_count,
        pr_count=data.pr_count,
        tokens_series=_points(data.tokens_series),
        cost_rate_series=_points(data.cost_rate_series),
        cost_series=_points(data.cost_series),
        tokens_by_model_series=_grouped(LABEL_MODEL, data.tokens_by_model_series),
        tokens_by_type_series=_grouped(LABEL_TYPE, data.tokens_by_type_series),
        cost_by_model=data.cost_by_model,
        tokens_by_type=data.tokens_by_type,
        model_breakdown=data.model_breakdown,
        failed_queries=list(data.failed_queries),
        warning=data.warning,
        refreshed_at=refreshed_at,
        formatted={field: format_metric_value(getattr(data, field), unit) for field, unit in KPI_UNITS.items()},
    )


async def _refresh(controller: DashboardController, time_range: TimeRange) -> DashboardData:
    """Refresh for the requested range; 503 while the backend is unreachable."""
    if time_range.preset is not TimeRangePreset.CUSTOM:
        controller.current_range = time_range.preset
    data = await controller.refresh(time_range)
    if not controller.connection_status.is_connected:
        detail = controller.error_message or controller.connection_status.display_text
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)
    return data


def create_dashboard_routes(deps: ServiceContainer) -> APIRouter:
    """Create dashboard-mode routes."""
    router = APIRouter()
    controller = deps.controller

    @router.get("/api/dashboard", response_model=DashboardOut)
    async def get_dashboard(time_range: TimeRange = Depends(deps.time_range)):
        """KPI totals, chart series and breakdowns for one time range."""
        logger.debug(f"Dashboard requested for {time_range.display_name}")
        data = await _refresh(controller, time_range)
        if data.warning:
            logger.warning(f"Dashboard served with {data.warning}")
        return dashboard_out(data, controller.last_refresh)

    @router.get("/api/dashboard/series/{name}", response_model=List[SeriesOut])
    async def get_series(
        name: str,
        time_range: TimeRange = Depends(deps.time_range),
        aggregation: str = Query("mean", description="Bucket aggregation: mean, max or sum"),
    ):
        """One chart series resampled into display buckets for the range granularity."""
        if name not in SERIES_FIELDS:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Unknown series '{name}', expected one of: {', '.join(SERIES_FIELDS)}",
            )
        field_name, label_name = SERIES_FIELDS[name]
        data = await _refresh(controller, time_range)
        raw = getattr(data, field_name)

        try:
            if label_name is None:
                buckets = bucket_samples(raw, time_range.granularity, aggregation)
                return [SeriesOut(name=name, points=_points(buckets), summary=series_summary(buckets))]

            result = []
            for key, samples in raw.items():
                buckets = bucket_samples(samples, time_range.granularity, aggregation)
                out = _series_out(label_name, key, buckets)
                result.append(out.model_copy(update={"summary": series_summary(buckets)}))
            return result
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    return router
