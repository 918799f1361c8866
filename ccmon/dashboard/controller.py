"""
Dashboard Controller

Main controller class that prepares dashboard data for a time range.
Every query in DASHBOARD_QUERIES is issued concurrently; one failing query
leaves its field at the empty default and is reported in
``DashboardData.failed_queries`` instead of failing the whole refresh.
"""

import asyncio
import logging
import time
from dataclasses import replace
from typing import Any, Dict, List, Optional

from ..api.errors import ConnectionFailedError, MetricsClientError
from ..api.prometheus_client import MetricsClient
from ..api.queries import convenience
from ..api.queries.constants import LABEL_MODEL, LABEL_TYPE
from ..api.queries.latest import breakdown_by_label, scalar_value
from ..api.queries.timeranges import TimeRange, TimeRangePreset
from ..api.queries.timeseries import flatten_series, group_series_by_label
from ..api.queries.utils import clean_filters, finite_or_zero
from ..models import ConnectionStatus, DashboardData

logger = logging.getLogger("ccmon.dashboard")

# Declarative query catalogue. "kind" selects how the result is fetched and
# shaped:
#   total      instant query, single KPI value clamped to >= 0
#   series     range query, all samples flattened in time order
#   grouped    range query, samples grouped per "label" value
#   breakdown  instant query, summed per "label" value
DASHBOARD_QUERIES: List[Dict[str, Any]] = [
    # Summary KPIs
    {"name": "total tokens", "field": "total_tokens", "kind": "total",
     "query": lambda r, f: convenience.total_tokens(r.promql_range, f)},
    {"name": "total cost", "field": "total_cost", "kind": "total",
     "query": lambda r, f: convenience.total_cost(r.promql_range, f)},
    {"name": "active time", "field": "total_active_time", "kind": "total",
     "query": lambda r, f: convenience.active_time(r.promql_range, f)},
    {"name": "session count", "field": "session_count", "kind": "total",
     "query": lambda r, f: convenience.session_count(r.promql_range, f)},
    {"name": "lines added", "field": "lines_added", "kind": "total",
     "query": lambda r, f: convenience.lines_added(r.promql_range, f)},
    {"name": "lines removed", "field": "lines_removed", "kind": "total",
     "query": lambda r, f: convenience.lines_removed(r.promql_range, f)},
    {"name": "commits", "field": "commit_count", "kind": "total",
     "query": lambda r, f: convenience.commit_count(r.promql_range, f)},
    {"name": "pull requests", "field": "pr_count", "kind": "total",
     "query": lambda r, f: convenience.pr_count(r.promql_range, f)},

    # Chart series
    {"name": "cost rate series", "field": "cost_rate_series", "kind": "series",
     "query": lambda r, f: convenience.cost_rate(filters=f)},
    {"name": "cost series", "field": "cost_series", "kind": "series",
     "query": lambda r, f: convenience.cost_per_interval(r.step, f)},
    {"name": "tokens series", "field": "tokens_series", "kind": "series",
     "query": lambda r, f: convenience.tokens_rate(filters=f)},
    {"name": "tokens by model series", "field": "tokens_by_model_series", "kind": "grouped",
     "label": LABEL_MODEL, "query": lambda r, f: convenience.tokens_rate_by_model(filters=f)},
    {"name": "tokens by type series", "field": "tokens_by_type_series", "kind": "grouped",
     "label": LABEL_TYPE, "query": lambda r, f: convenience.tokens_rate_by_type(filters=f)},

    # Breakdowns
    {"name": "cost by model", "field": "cost_by_model", "kind": "breakdown",
     "label": LABEL_MODEL, "positive_only": True,
     "query": lambda r, f: convenience.cost_by_model(r.promql_range, f)},
    {"name": "tokens by type", "field": "tokens_by_type", "kind": "breakdown",
     "label": LABEL_TYPE, "positive_only": True,
     "query": lambda r, f: convenience.tokens_by_type(r.promql_range, f)},
    {"name": "model breakdown", "field": "model_breakdown", "kind": "breakdown",
     "label": LABEL_MODEL,
     "query": lambda r, f: convenience.tokens_by_model(r.promql_range, f)},
]


class DashboardController:
    """
    Dashboard-mode aggregation plus backend connection tracking.

    Holds the last DashboardData so the HTTP layer and the auto-refresh loop
    can share it; every refresh replaces it with a new immutable object.
    """

    def __init__(
        self,
        client: MetricsClient,
        label_filters: Optional[Dict[str, str]] = None,
        default_range: TimeRangePreset = TimeRangePreset.LAST_15_MINUTES,
    ):
        self.client = client
        self.label_filters = clean_filters(label_filters)
        self.current_range = default_range
        self.connection_status = ConnectionStatus()
        self.discovered_metrics: List[str] = []
        self.dashboard_data = DashboardData()
        self.last_refresh: Optional[float] = None
        self.error_message: Optional[str] = None

    async def check_connection(self) -> ConnectionStatus:
        """Probe the backend and, when reachable, rediscover Claude Code metrics."""
        self.connection_status = ConnectionStatus.connecting()
        try:
            build_info = await self.client.check_connection()
        except MetricsClientError as e:
            logger.warning(f"Prometheus not reachable: {e}")
            self.connection_status = ConnectionStatus.disconnected(str(e))
            self.error_message = str(e)
            return self.connection_status

        self.connection_status = ConnectionStatus.connected(build_info.version)
        self.error_message = None
        logger.info(f"Connected to Prometheus v{build_info.version}")
        await self.discover_metrics()
        return self.connection_status

    async def discover_metrics(self) -> List[str]:
        try:
            self.discovered_metrics = await self.client.discover_metric_names()
        except MetricsClientError as e:
            # Discovery only feeds the smoke-test view
            logger.warning(f"Failed to discover metrics: {e}")
        return self.discovered_metrics

    async def refresh(self, time_range: Optional[TimeRange] = None) -> DashboardData:
        """
        Refresh the stored dashboard data.

        While disconnected the connection is re-probed first; if it is still
        down the previous data is returned unchanged.
        """
        if not self.connection_status.is_connected:
            await self.check_connection()
            if not self.connection_status.is_connected:
                return self.dashboard_data

        if time_range is None:
            time_range = TimeRange.from_preset(self.current_range)

        data, errors = await self._fetch(time_range)

        if errors and len(errors) == len(DASHBOARD_QUERIES) and all(
            isinstance(e, ConnectionFailedError) for e in errors
        ):
            message = str(errors[0])
            logger.error(f"All dashboard queries failed, marking backend disconnected: {message}")
            self.connection_status = ConnectionStatus.disconnected(message)
            self.error_message = message
            return self.dashboard_data

        self.dashboard_data = data
        self.last_refresh = time.time()
        self.error_message = data.warning
        return data

    async def fetch_dashboard(self, time_range: TimeRange) -> DashboardData:
        """Run the full query catalogue for a time range without touching stored state."""
        data, _ = await self._fetch(time_range)
        return data

    async def _fetch(self, time_range: TimeRange):
        logger.debug(f"Fetching dashboard for {time_range.display_name}")
        outcomes = await asyncio.gather(
            *(self._run_query(entry, time_range) for entry in DASHBOARD_QUERIES),
            return_exceptions=True,
        )

        values: Dict[str, Any] = {}
        failed: List[str] = []
        errors: List[BaseException] = []
        for entry, outcome in zip(DASHBOARD_QUERIES, outcomes):
            if isinstance(outcome, Exception):
                logger.error(f"Dashboard query '{entry['name']}' failed: {outcome}")
                failed.append(entry["name"])
                errors.append(outcome)
                continue
            values[entry["field"]] = outcome

        data = replace(DashboardData(time_range=time_range), failed_queries=tuple(failed), **values)
        logger.debug(f"Dashboard prepared: {len(values)}/{len(DASHBOARD_QUERIES)} queries succeeded")
        return data, errors

    async def _run_query(self, entry: Dict[str, Any], time_range: TimeRange) -> Any:
        query = entry["query"](time_range, self.label_filters)
        kind = entry["kind"]

        if kind == "total":
            return finite_or_zero(scalar_value(await self.client.query(query)))
        if kind == "breakdown":
            samples = await self.client.query(query)
            return breakdown_by_label(samples, entry["label"], entry.get("positive_only", False))

        series = await self.client.query_range(query, time_range.start, time_range.end, time_range.step)
        if kind == "series":
            return flatten_series(series)
        if kind == "grouped":
            return group_series_by_label(series, entry["label"])
        raise ValueError(f"Unknown dashboard query kind: {kind}")
