"""
Session Metrics

Fetches the four per-session queries concurrently and merges them into one
SessionRecord per session id. A session that shows up in any of the four
results is kept; fields it has no data for stay at zero.
"""

import asyncio
import logging
import math
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple

from ..api.prometheus_client import MetricsClient
from ..api.queries import convenience
from ..api.queries.constants import LABEL_MODEL, LABEL_SESSION_ID, LABEL_TYPE
from ..api.queries.timeranges import TimeRange
from ..models import (
    UNKNOWN_PROJECT, MetricSample, ProjectCostSummary, SessionFetchResult,
    SessionFetchStatus, SessionRecord, TokenType, empty_token_breakdown,
    partial_failure_message,
)
from .history import SessionHistoryProvider

logger = logging.getLogger("ccmon.dashboard")

# Display names used in partial-failure warnings, in query order
QUERY_COST = "cost"
QUERY_TOKENS_BY_TYPE = "tokens by type"
QUERY_TOKENS_BY_MODEL = "tokens by model"
QUERY_ACTIVE_TIME = "active time"
SESSION_QUERIES = [QUERY_COST, QUERY_TOKENS_BY_TYPE, QUERY_TOKENS_BY_MODEL, QUERY_ACTIVE_TIME]

NO_SESSIONS_MESSAGE = "No sessions found in the selected time range."
CONNECTION_FAILED_MESSAGE = "Unable to reach metrics backend. Please check your connection or try again."


def _finite_non_negative(value: float) -> Optional[float]:
    if not math.isfinite(value):
        return None
    return max(0.0, value)


def merge_results(
    cost_results: Sequence[MetricSample],
    type_results: Sequence[MetricSample],
    model_results: Sequence[MetricSample],
    active_results: Sequence[MetricSample],
) -> List[SessionRecord]:
    """
    Merge per-session query results into session records.

    Args:
        cost_results: ``sum by (session_id)`` cost samples
        type_results: ``sum by (session_id, type)`` token samples
        model_results: ``sum by (session_id, model)`` token samples
        active_results: ``sum by (session_id)`` active-time samples

    Returns:
        One record per distinct non-empty session id, sorted by session id.
        Non-finite values are ignored, negative values clamp to zero and
        token types outside the known set are dropped.
    """
    session_ids = set()
    for sample in (*cost_results, *type_results, *model_results, *active_results):
        sid = sample.labels.get(LABEL_SESSION_ID)
        if sid:
            session_ids.add(sid)

    if not session_ids:
        return []

    costs: Dict[str, Decimal] = {sid: Decimal("0") for sid in session_ids}
    by_type: Dict[str, Dict[TokenType, int]] = {sid: empty_token_breakdown() for sid in session_ids}
    by_model: Dict[str, Dict[str, int]] = {sid: {} for sid in session_ids}
    active: Dict[str, float] = {sid: 0.0 for sid in session_ids}

    for sample in cost_results:
        sid = sample.labels.get(LABEL_SESSION_ID)
        value = _finite_non_negative(sample.value)
        if sid in costs and value is not None:
            costs[sid] = Decimal(str(value))

    for sample in type_results:
        sid = sample.labels.get(LABEL_SESSION_ID)
        token_type = TokenType.parse(sample.labels.get(LABEL_TYPE))
        value = _finite_non_negative(sample.value)
        if sid in by_type and token_type is not None and value is not None:
            by_type[sid][token_type] += int(value)

    for sample in model_results:
        sid = sample.labels.get(LABEL_SESSION_ID)
        model = sample.labels.get(LABEL_MODEL)
        value = _finite_non_negative(sample.value)
        if sid in by_model and model and value is not None:
            by_model[sid][model] = by_model[sid].get(model, 0) + int(value)

    for sample in active_results:
        sid = sample.labels.get(LABEL_SESSION_ID)
        value = _finite_non_negative(sample.value)
        if sid in active and value is not None:
            active[sid] = value

    return [
        SessionRecord(
            session_id=sid,
            total_cost=costs[sid],
            tokens_by_type=by_type[sid],
            tokens_by_model=by_model[sid],
            active_time=active[sid],
        )
        for sid in sorted(session_ids)
    ]


def with_project_paths(sessions: Sequence[SessionRecord], paths: Dict[str, str]) -> List[SessionRecord]:
    """Attach project paths; sessions without a known path are left unchanged."""
    enriched = []
    for session in sessions:
        path = paths.get(session.session_id)
        if path:
            session = SessionRecord(
                session_id=session.session_id,
                total_cost=session.total_cost,
                tokens_by_type=session.tokens_by_type,
                tokens_by_model=session.tokens_by_model,
                active_time=session.active_time,
                project_path=path,
            )
        enriched.append(session)
    return enriched


# Top sessions

def highest_cost_session(sessions: Sequence[SessionRecord]) -> Optional[SessionRecord]:
    return max(sessions, key=lambda s: s.total_cost, default=None)


def most_tokens_session(sessions: Sequence[SessionRecord]) -> Optional[SessionRecord]:
    return max(sessions, key=lambda s: s.total_tokens, default=None)


def longest_session(sessions: Sequence[SessionRecord]) -> Optional[SessionRecord]:
    return max(sessions, key=lambda s: s.active_time, default=None)


def costs_by_project(sessions: Sequence[SessionRecord]) -> List[ProjectCostSummary]:
    """Roll sessions up by project path (missing paths under "Unknown"), most expensive first."""
    totals: Dict[str, Tuple[Decimal, int, int, float]] = {}
    for session in sessions:
        key = session.project_path or UNKNOWN_PROJECT
        cost, tokens, count, active_time = totals.get(key, (Decimal("0"), 0, 0, 0.0))
        totals[key] = (
            cost + session.total_cost,
            tokens + session.total_tokens,
            count + 1,
            active_time + session.active_time,
        )

    summaries = [
        ProjectCostSummary(
            project_path=path,
            total_cost=cost,
            total_tokens=tokens,
            session_count=count,
            total_active_time=active_time,
        )
        for path, (cost, tokens, count, active_time) in totals.items()
    ]
    summaries.sort(key=lambda s: (-s.total_cost, s.project_path))
    return summaries


class SessionMetricsService:
    """Session-level view: four concurrent queries merged per session id."""

    def __init__(
        self,
        client: MetricsClient,
        history_provider: Optional[SessionHistoryProvider] = None,
        label_filters: Optional[Dict[str, str]] = None,
    ):
        self.client = client
        self.history_provider = history_provider
        self.label_filters = label_filters or {}
        self._last_successful: Tuple[SessionRecord, ...] = ()

    @property
    def last_successful_sessions(self) -> Tuple[SessionRecord, ...]:
        return self._last_successful

    async def fetch_sessions(self, time_range: TimeRange) -> SessionFetchResult:
        """
        Fetch and merge session metrics for a time range.

        Returns:
            SessionFetchResult with status:
            - connection_failed: all four queries failed; sessions are the
              last successful merge
            - no_sessions: the queries succeeded but matched no session
            - partial: some queries failed, at least one session merged
            - ok: everything succeeded
        """
        range_ = time_range.promql_range
        filters = self.label_filters
        queries = [
            (QUERY_COST, convenience.cost_by_session(range_, filters)),
            (QUERY_TOKENS_BY_TYPE, convenience.tokens_by_session_and_type(range_, filters)),
            (QUERY_TOKENS_BY_MODEL, convenience.tokens_by_session_and_model(range_, filters)),
            (QUERY_ACTIVE_TIME, convenience.active_time_by_session(range_, filters)),
        ]

        outcomes = await asyncio.gather(
            *(self.client.query(query) for _, query in queries),
            return_exceptions=True,
        )

        results: Dict[str, List[MetricSample]] = {}
        failures: List[str] = []
        for (name, _), outcome in zip(queries, outcomes):
            if isinstance(outcome, Exception):
                logger.error(f"Session query '{name}' failed: {outcome}")
                failures.append(name)
                results[name] = []
            else:
                results[name] = outcome

        if len(failures) == len(queries):
            logger.warning("All session queries failed, serving last successful sessions")
            return SessionFetchResult(
                status=SessionFetchStatus.CONNECTION_FAILED,
                sessions=self._last_successful,
                failed_queries=tuple(failures),
                message=CONNECTION_FAILED_MESSAGE,
            )

        merged = merge_results(
            results[QUERY_COST],
            results[QUERY_TOKENS_BY_TYPE],
            results[QUERY_TOKENS_BY_MODEL],
            results[QUERY_ACTIVE_TIME],
        )

        if not merged:
            return SessionFetchResult(
                status=SessionFetchStatus.NO_SESSIONS,
                failed_queries=tuple(failures),
                message=NO_SESSIONS_MESSAGE,
            )

        if self.history_provider is not None:
            merged = await self._enrich(merged)

        self._last_successful = tuple(merged)
        logger.debug(f"Merged {len(merged)} sessions for range {range_}")

        if failures:
            return SessionFetchResult(
                status=SessionFetchStatus.PARTIAL,
                sessions=tuple(merged),
                failed_queries=tuple(failures),
                message=partial_failure_message(failures, len(queries)),
            )
        return SessionFetchResult(status=SessionFetchStatus.OK, sessions=tuple(merged))

    async def _enrich(self, sessions: List[SessionRecord]) -> List[SessionRecord]:
        loop = asyncio.get_running_loop()
        session_ids = [s.session_id for s in sessions]
        try:
            paths = await loop.run_in_executor(None, self.history_provider.project_paths, session_ids)
        except Exception as e:
            logger.warning(f"Project lookup failed, continuing without project paths: {e}")
            return sessions
        return with_project_paths(sessions, paths)
