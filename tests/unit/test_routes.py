"""Unit tests for the HTTP routes

The application is built around a mocked metrics client and a temporary
stats file; the lifespan (and so the auto-refresh task) is not started.
"""
import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from conftest import sample, series

from ccmon.api.dependencies import ServiceContainer
from ccmon.api.errors import ConnectionFailedError, QueryError
from ccmon.api.queries import convenience
from ccmon.api.schemas import BuildInfo, PrometheusTarget, TargetsData
from ccmon.core.config import MonitorConfig
from ccmon.core.server import create_app
from ccmon.dashboard.history import StaticSessionHistoryProvider
from ccmon.insights.stats_cache import StatsCacheLoader


def make_metrics_client(instant=None, ranged=None, connect_error=None):
    instant = instant or {}
    ranged = ranged or {}
    client = MagicMock()

    async def query(q, at=None):
        answer = instant.get(str(q), [])
        if isinstance(answer, Exception):
            raise answer
        return answer

    async def query_range(q, start, end, step):
        return ranged.get(str(q), [])

    client.query = AsyncMock(side_effect=query)
    client.query_range = AsyncMock(side_effect=query_range)
    if connect_error:
        client.check_connection = AsyncMock(side_effect=connect_error)
    else:
        client.check_connection = AsyncMock(return_value=BuildInfo(version="2.48.0"))
    client.discover_metric_names = AsyncMock(return_value=[
        "claude_code.token.usage",
        "claude_code_cost_usage_USD_total",
        "claude_code_unreleased_total",
    ])
    client.get_targets = AsyncMock(return_value=TargetsData(activeTargets=[
        PrometheusTarget(labels={"job": "otel"}, scrapeUrl="http://otel:8889/metrics", health="up", lastError=""),
    ]))
    return client


def make_app(metrics_client, stats_path, projects=None):
    config = MonitorConfig()
    deps = ServiceContainer(
        config,
        client=metrics_client,
        history_provider=StaticSessionHistoryProvider(projects or {}),
        stats_loader=StatsCacheLoader(stats_path),
    )
    return TestClient(create_app(config, deps=deps, auto_refresh=False))


@pytest.fixture
def http(stats_file):
    client = make_metrics_client(
        instant={
            convenience.total_cost("1h"): [sample(1.5)],
            convenience.total_tokens("1h"): [sample(2_500_000)],
            convenience.cost_by_session("1h"): [sample(1.25, session_id="s1"), sample(0.05, session_id="s2")],
            convenience.tokens_by_session_and_type("1h"): [
                sample(1000, session_id="s1", type="input"),
                sample(9000, session_id="s2", type="cacheRead"),
            ],
            convenience.active_time_by_session("1h"): [sample(150, session_id="s1")],
        },
        ranged={
            convenience.tokens_rate_by_type(): [
                series([(1_700_000_000, 1.0), (1_700_000_060, 3.0)], type="input"),
            ],
            convenience.cost_rate(): [series([(1_700_000_000, 0.5)])],
        },
    )
    return make_app(client, stats_file, projects={"s1": "/home/me/ccmon"})


class TestConnectionRoutes:
    def test_health(self, http):
        response = http.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_status_before_first_check(self, http):
        body = http.get("/api/status").json()
        assert body["connection"]["state"] == "unknown"
        assert body["current_range"] == "15m"
        assert body["last_refresh"] is None

    def test_connection_check(self, http):
        body = http.post("/api/connection/check").json()
        assert body["is_connected"] is True
        assert body["display_text"] == "Connected (v2.48.0)"

    def test_discover(self, http):
        body = http.get("/api/metrics/discover").json()
        assert body["count"] == 3
        first = body["metrics"][0]
        assert first["metric"] == "claude_code_token_usage"
        assert first["display_name"] == "Tokens"
        assert body["metrics"][2]["metric"] is None

    def test_targets(self, http):
        target = http.get("/api/targets").json()["targets"][0]
        assert target["health"] == "up"
        assert target["last_error"] is None

    def test_targets_backend_down(self, stats_file):
        client = make_metrics_client()
        client.get_targets = AsyncMock(side_effect=ConnectionFailedError("refused"))
        response = make_app(client, stats_file).get("/api/targets")
        assert response.status_code == 503


class TestDashboardRoutes:
    def test_dashboard(self, http):
        response = http.get("/api/dashboard", params={"range": "1h"})

        assert response.status_code == 200
        body = response.json()
        assert body["time_range"]["range"] == "1h"
        assert body["total_cost"] == 1.5
        assert body["formatted"]["total_cost"] == "$1.50"
        assert body["formatted"]["total_tokens"] == "2.50M"
        assert body["tokens_by_type_series"][0]["name"] == "Input"
        assert body["warning"] is None

    def test_dashboard_selects_current_range(self, http):
        http.get("/api/dashboard", params={"range": "1d"})
        assert http.get("/api/status").json()["current_range"] == "1d"

    def test_dashboard_disconnected(self, stats_file):
        client = make_metrics_client(connect_error=ConnectionFailedError("refused"))
        response = make_app(client, stats_file).get("/api/dashboard")

        assert response.status_code == 503
        assert "refused" in response.json()["detail"]

    def test_dashboard_partial_failure(self, stats_file):
        client = make_metrics_client(instant={convenience.total_cost("1h"): QueryError("boom")})
        body = make_app(client, stats_file).get("/api/dashboard", params={"range": "1h"}).json()

        assert body["failed_queries"] == ["total cost"]
        assert body["warning"].startswith("partial data: 1/16")

    def test_unknown_range(self, http):
        assert http.get("/api/dashboard", params={"range": "3y"}).status_code == 422

    def test_custom_range(self, http):
        response = http.get("/api/dashboard", params={"range": "custom", "start": 1_000_000, "end": 1_003_600})
        assert response.status_code == 200
        assert response.json()["time_range"]["range"] == "3600s"

    def test_custom_range_without_bounds(self, http):
        assert http.get("/api/dashboard", params={"range": "custom"}).status_code == 422

    def test_bucketed_series(self, http):
        response = http.get("/api/dashboard/series/tokens_by_type", params={"range": "1h"})

        assert response.status_code == 200
        series_out = response.json()
        assert series_out[0]["labels"] == {"type": "input"}
        assert [p["value"] for p in series_out[0]["points"]] == [1.0, 3.0]
        assert series_out[0]["summary"]["max"] == 3.0

    def test_single_series(self, http):
        series_out = http.get("/api/dashboard/series/cost_rate", params={"range": "1h"}).json()
        assert series_out[0]["name"] == "cost_rate"
        assert series_out[0]["points"][0]["value"] == 0.5

    def test_unknown_series(self, http):
        assert http.get("/api/dashboard/series/latency").status_code == 404

    def test_bad_bucket_aggregation(self, http):
        response = http.get("/api/dashboard/series/tokens", params={"range": "1h", "aggregation": "median"})
        assert response.status_code == 422


class TestSessionRoutes:
    def test_sessions(self, http):
        body = http.get("/api/sessions", params={"range": "1h"}).json()

        assert body["status"] == "ok"
        assert body["total_cost"] == "1.30"
        assert body["highest_cost_session"] == "s1"
        assert body["most_tokens_session"] == "s2"
        assert body["longest_session"] == "s1"

        s1 = body["sessions"][0]
        assert s1["session_id"] == "s1"
        assert s1["project_name"] == "ccmon"
        assert s1["tokens_by_type"]["input"] == 1000
        assert s1["formatted_cost"] == "$1.25"
        assert s1["formatted_active_time"] == "2m 30s"
        assert s1["cost_status"] == "high"

    def test_sessions_partial(self, stats_file):
        client = make_metrics_client(instant={
            convenience.cost_by_session("1h"): [sample(1.0, session_id="s1")],
            convenience.active_time_by_session("1h"): QueryError("boom"),
        })
        response = make_app(client, stats_file).get("/api/sessions", params={"range": "1h"})

        assert response.status_code == 200
        assert response.json()["status"] == "partial"
        assert response.json()["failed_queries"] == ["active time"]

    def test_sessions_empty(self, stats_file):
        body = make_app(make_metrics_client(), stats_file).get("/api/sessions").json()
        assert body["status"] == "no_sessions"
        assert body["sessions"] == []

    def test_projects(self, http):
        projects = http.get("/api/sessions/projects", params={"range": "1h"}).json()
        assert [p["project"] for p in projects] == ["ccmon", "Unknown"]
        assert projects[0]["total_cost"] == "1.25"


class TestInsightsRoutes:
    def test_insights(self, http):
        response = http.get("/api/insights", params={"days": 2})

        assert response.status_code == 200
        body = response.json()
        assert body["total_sessions"] == 10
        assert body["active_days"] == 4
        assert len(body["trend"]) == 2
        assert body["peak_activity"]["most_active_hour"] == 14
        assert body["estimated_cost"] == pytest.approx(5.1)

    def test_insights_trend_metric(self, http):
        body = http.get("/api/insights", params={"days": 1, "metric": "sessions"}).json()
        assert body["trend"][0]["value"] == 3

    def test_insights_bad_metric(self, http):
        assert http.get("/api/insights", params={"metric": "lines"}).status_code == 422

    def test_missing_stats_file(self, tmp_path):
        response = make_app(make_metrics_client(), tmp_path / "absent.json").get("/api/insights")
        assert response.status_code == 404

    def test_malformed_stats_file(self, tmp_path):
        path = tmp_path / "stats-cache.json"
        path.write_text("{broken")
        response = make_app(make_metrics_client(), path).get("/api/insights")
        assert response.status_code == 422

    def test_undecodable_stats_file(self, tmp_path):
        path = tmp_path / "stats-cache.json"
        path.write_bytes(b'{"version": 1, "lastComputedDate": "\xff\xfe"}')
        response = make_app(make_metrics_client(), path).get("/api/insights")
        assert response.status_code == 422

    def test_refresh_rereads_file(self, http, stats_file, stats_payload):
        http.get("/api/insights")
        stats_payload["totalSessions"] = 11
        stats_file.write_text(json.dumps(stats_payload))

        assert http.post("/api/insights/refresh").json()["status"] == "refreshed"
        assert http.get("/api/insights").json()["total_sessions"] == 11
