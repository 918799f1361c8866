#!/usr/bin/env python3
"""
Session Routes - Per-Session Usage and Project Roll-ups
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends

from ...dashboard.config import format_cost, format_duration, format_tokens, get_cost_status
from ...dashboard.sessions import (
    costs_by_project, highest_cost_session, longest_session, most_tokens_session,
)
from ...models import SessionFetchResult, SessionRecord
from ..dependencies import ServiceContainer
from ..queries.timeranges import TimeRange
from ..schemas import ProjectCostOut, SessionOut, SessionsOut

logger = logging.getLogger("ccmon.server")


def session_out(session: SessionRecord) -> SessionOut:
    return SessionOut(
        session_id=session.session_id,
        truncated_session_id=session.truncated_session_id,
        total_cost=str(session.total_cost),
        total_tokens=session.total_tokens,
        tokens_by_type={token_type.value: count for token_type, count in session.tokens_by_type.items()},
        tokens_by_model=session.tokens_by_model,
        active_time=session.active_time,
        project_path=session.project_path,
        project_name=session.project_name,
        cost_per_token=session.cost_per_token,
        cost_per_minute=session.cost_per_minute,
        tokens_per_minute=session.tokens_per_minute,
        cost_status=get_cost_status(session.total_cost),
        formatted_cost=format_cost(session.total_cost),
        formatted_tokens=format_tokens(session.total_tokens),
        formatted_active_time=format_duration(session.active_time),
    )


def _session_id(session: Optional[SessionRecord]) -> Optional[str]:
    return session.session_id if session else None


def sessions_out(result: SessionFetchResult) -> SessionsOut:
    return SessionsOut(
        status=result.status.value,
        message=result.message,
        failed_queries=list(result.failed_queries),
        sessions=[session_out(s) for s in result.sessions],
        total_cost=str(result.total_cost),
        total_tokens=result.total_tokens,
        highest_cost_session=_session_id(highest_cost_session(result.sessions)),
        most_tokens_session=_session_id(most_tokens_session(result.sessions)),
        longest_session=_session_id(longest_session(result.sessions)),
    )


def create_session_routes(deps: ServiceContainer) -> APIRouter:
    """Create session-merge routes."""
    router = APIRouter()

    @router.get("/api/sessions", response_model=SessionsOut)
    async def get_sessions(time_range: TimeRange = Depends(deps.time_range)):
        """
        Sessions active in the range. Always 200: partial failures and an
        unreachable backend are reported through ``status`` and ``message``.
        """
        result = await deps.sessions.fetch_sessions(time_range)
        logger.debug(f"Sessions for {time_range.display_name}: {result.status.value}, {len(result.sessions)} sessions")
        return sessions_out(result)

    @router.get("/api/sessions/projects", response_model=List[ProjectCostOut])
    async def get_project_costs(time_range: TimeRange = Depends(deps.time_range)):
        """Session cost rolled up per project, most expensive first."""
        result = await deps.sessions.fetch_sessions(time_range)
        return [
            ProjectCostOut(
                project=summary.project_name,
                total_cost=str(summary.total_cost),
                session_count=summary.session_count,
                total_tokens=summary.total_tokens,
            )
            for summary in costs_by_project(result.sessions)
        ]

    return router
