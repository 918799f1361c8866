#!/usr/bin/env python3
"""
ccmon API Dependencies - Service Container for Route Factories
"""

import logging
from typing import Optional

from fastapi import HTTPException, Query, status

from ..core.config import MonitorConfig
from ..dashboard.controller import DashboardController
from ..dashboard.history import FileSessionHistoryProvider, SessionHistoryProvider
from ..dashboard.sessions import SessionMetricsService
from ..insights.stats_cache import StatsCacheLoader
from .prometheus_client import MetricsClient
from .queries.timeranges import TimeRange, resolve_time_range

logger = logging.getLogger("ccmon.server")


class ServiceContainer:
    """
    Everything the routes need, built once from configuration.

    Tests construct it with fakes for any of the collaborators.
    """

    def __init__(
        self,
        config: MonitorConfig,
        client: Optional[MetricsClient] = None,
        history_provider: Optional[SessionHistoryProvider] = None,
        stats_loader: Optional[StatsCacheLoader] = None,
    ):
        self.config = config
        self.client = client or MetricsClient(
            config.prometheus_url,
            timeout=config.request_timeout,
            cache_ttl=config.cache_ttl,
        )
        filters = config.label_filters()

        if history_provider is None and config.enable_project_lookup:
            history_provider = FileSessionHistoryProvider(config.history_file)
        self.history_provider = history_provider

        self.controller = DashboardController(
            self.client,
            label_filters=filters,
            default_range=config.default_time_range,
        )
        self.sessions = SessionMetricsService(
            self.client,
            history_provider=self.history_provider,
            label_filters=filters,
        )
        self.stats_loader = stats_loader or StatsCacheLoader(config.stats_cache_file)
        self.pricing_provider = config.pricing_provider

    def time_range(
        self,
        range: Optional[str] = Query(None, description="Preset: 15m, 1h, 12h, 1d, 1w, 2w, 1mo or custom"),
        start: Optional[float] = Query(None, description="Custom range start (unix seconds)"),
        end: Optional[float] = Query(None, description="Custom range end (unix seconds)"),
    ) -> TimeRange:
        """Resolve the ``range``/``start``/``end`` query parameters, 422 on bad input."""
        preset = range or self.controller.current_range.value
        try:
            return resolve_time_range(preset, start, end)
        except ValueError as e:
            logger.debug(f"Rejected time range {preset!r}: {e}")
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
