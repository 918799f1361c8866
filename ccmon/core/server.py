#!/usr/bin/env python3
"""
ccmon FastAPI application factory
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from .. import __version__
from ..api.dependencies import ServiceContainer
from ..api.routes.connection_routes import create_connection_routes
from ..api.routes.dashboard_routes import create_dashboard_routes
from ..api.routes.insights_routes import create_insights_routes
from ..api.routes.session_routes import create_session_routes
from ..tasks.refresher import AutoRefresher
from .config import MonitorConfig

logger = logging.getLogger("ccmon.server")


def create_app(
    config: MonitorConfig,
    deps: Optional[ServiceContainer] = None,
    auto_refresh: bool = True,
) -> FastAPI:
    """
    Build the application.

    Args:
        config: Loaded configuration
        deps: Pre-built service container (tests pass one with fakes)
        auto_refresh: Start the periodic dashboard refresh on startup
    """
    deps = deps or ServiceContainer(config)
    refresher = AutoRefresher(deps.controller.refresh, config.refresh_interval)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"ccmon v{__version__} using Prometheus at {config.prometheus_url}")
        await deps.controller.check_connection()
        if auto_refresh:
            refresher.start()
        yield
        await refresher.stop()
        logger.info("ccmon shut down")

    app = FastAPI(
        title="ccmon",
        description="Claude Code usage metrics: dashboard, sessions and local insights",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.deps = deps
    app.state.refresher = refresher

    app.include_router(create_connection_routes(deps))
    app.include_router(create_dashboard_routes(deps))
    app.include_router(create_session_routes(deps))
    app.include_router(create_insights_routes(deps))

    return app
