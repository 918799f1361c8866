"""Pytest configuration and shared fixtures"""
import json
from datetime import date, timedelta
from unittest.mock import MagicMock

import pytest

from ccmon.models import MetricSample, MetricSeries


def sample(value, timestamp=1700000000.0, **labels):
    """Build a MetricSample with labels given as keyword arguments."""
    return MetricSample(timestamp=timestamp, value=value, labels=labels)


def series(points, **labels):
    """Build a MetricSeries from (timestamp, value) pairs."""
    return MetricSeries(
        labels=labels,
        samples=tuple(MetricSample(timestamp=ts, value=v, labels=labels) for ts, v in points),
    )


def mock_response(payload):
    """urlopen() stand-in returning ``payload`` (dict, or raw bytes)."""
    body = payload if isinstance(payload, bytes) else json.dumps(payload).encode()
    response = MagicMock()
    response.read.return_value = body
    response.__enter__.return_value = response
    return response


def vector_payload(*results):
    """Prometheus instant-query envelope; each result is (labels, value_str)."""
    return {
        "status": "success",
        "data": {
            "resultType": "vector",
            "result": [{"metric": labels, "value": [1700000000.0, value]} for labels, value in results],
        },
    }


def matrix_payload(*results):
    """Prometheus range-query envelope; each result is (labels, [(ts, value_str), ...])."""
    return {
        "status": "success",
        "data": {
            "resultType": "matrix",
            "result": [{"metric": labels, "values": [list(p) for p in points]} for labels, points in results],
        },
    }


TODAY = date(2025, 1, 31)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def stats_payload():
    """A realistic stats-cache.json document (camelCase, as written by Claude Code)."""
    def day(offset):
        return (TODAY - timedelta(days=offset)).isoformat()

    return {
        "version": 1,
        "lastComputedDate": TODAY.isoformat(),
        # Deliberately out of order; the loader sorts by date
        "dailyActivity": [
            {"date": day(0), "messageCount": 30, "sessionCount": 3, "toolCallCount": 12},
            {"date": day(2), "messageCount": 10, "sessionCount": 1, "toolCallCount": 4},
            {"date": day(1), "messageCount": 20, "sessionCount": 2, "toolCallCount": 8},
            {"date": day(8), "messageCount": 40, "sessionCount": 4, "toolCallCount": 16},
        ],
        "dailyModelTokens": [
            {"date": day(0), "tokensByModel": {"claude-sonnet-4-5-20250929": 1000}},
            {"date": day(1), "tokensByModel": {"claude-sonnet-4-5-20250929": 500, "claude-haiku-4-5": 500}},
            {"date": day(8), "tokensByModel": {"claude-opus-4-5-20251101": 4000}},
        ],
        "modelUsage": {
            "claude-sonnet-4-5-20250929": {
                "inputTokens": 1_000_000,
                "outputTokens": 100_000,
                "cacheReadInputTokens": 2_000_000,
                "cacheCreationInputTokens": 0,
                "webSearchRequests": 0,
                "costUSD": 0,
                "contextWindow": 0,
            },
        },
        "totalSessions": 10,
        "totalMessages": 100,
        "longestSession": {
            "sessionId": "sess-longest",
            "duration": 5_400_000,
            "messageCount": 42,
            "timestamp": "2025-01-20T10:00:00.000Z",
        },
        "firstSessionDate": "2024-11-02T09:15:00.000Z",
        "hourCounts": {"9": 5, "14": 12, "22": 3},
    }


@pytest.fixture
def stats_file(tmp_path, stats_payload):
    path = tmp_path / "stats-cache.json"
    path.write_text(json.dumps(stats_payload))
    return path
