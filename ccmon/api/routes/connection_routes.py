#!/usr/bin/env python3
"""
Connection Routes - Backend Status, Discovery and Health
"""

import logging
import time

from fastapi import APIRouter, HTTPException, status

from ...models import ConnectionStatus
from ..dependencies import ServiceContainer
from ..errors import MetricsClientError
from ..queries.labels import normalize_metric_name
from ..schemas import ConnectionStatusOut

logger = logging.getLogger("ccmon.server")


def connection_status_out(connection: ConnectionStatus) -> ConnectionStatusOut:
    return ConnectionStatusOut(
        state=connection.state.value,
        version=connection.version,
        error=connection.error,
        is_connected=connection.is_connected,
        display_text=connection.display_text,
    )


def create_connection_routes(deps: ServiceContainer) -> APIRouter:
    """Create backend connection and smoke-test routes."""
    router = APIRouter()
    controller = deps.controller

    @router.get("/health")
    def health():
        return {"status": "ok", "timestamp": int(time.time())}

    @router.get("/api/status")
    def get_status():
        """Connection state plus when the dashboard was last refreshed."""
        return {
            "connection": connection_status_out(controller.connection_status),
            "prometheus_url": deps.config.prometheus_url,
            "current_range": controller.current_range.value,
            "refresh_interval": deps.config.refresh_interval,
            "last_refresh": controller.last_refresh,
            "error": controller.error_message,
            "label_filters": controller.label_filters,
        }

    @router.post("/api/connection/check", response_model=ConnectionStatusOut)
    async def check_connection():
        """Re-probe the backend (explicit retry after a connection failure)."""
        connection = await controller.check_connection()
        logger.info(f"Connection check: {connection.display_text}")
        return connection_status_out(connection)

    @router.get("/api/metrics/discover")
    async def discover_metrics():
        """Claude Code metric names the backend knows about, with their canonical form."""
        try:
            names = await deps.client.discover_metric_names()
        except MetricsClientError as e:
            logger.warning(f"Metric discovery failed: {e}")
            raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

        metrics = []
        for name in names:
            canonical = normalize_metric_name(name)
            metrics.append({
                "name": name,
                "metric": canonical.value if canonical else None,
                "display_name": canonical.display_name if canonical else name,
            })
        return {"count": len(metrics), "metrics": metrics}

    @router.get("/api/targets")
    async def get_targets():
        """Scrape targets as reported by the backend."""
        try:
            targets = await deps.client.get_targets()
        except MetricsClientError as e:
            logger.warning(f"Target listing failed: {e}")
            raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

        return {
            "targets": [
                {
                    "scrape_url": t.scrapeUrl,
                    "health": t.health,
                    "last_error": t.lastError or None,
                    "labels": t.labels,
                }
                for t in targets.activeTargets
            ]
        }

    return router
