"""Unit tests for dashboard display formatting"""
from decimal import Decimal

import pytest

from ccmon.dashboard.config import (
    format_cost, format_duration, format_metric_value, format_tokens, get_cost_status,
)


class TestFormatCost:
    @pytest.mark.parametrize("cost,expected", [
        (12.346, "$12.35"),
        (1.0, "$1.00"),
        (0.045, "$0.045"),
        (0.0012, "$0.0012"),
        (Decimal("0.5"), "$0.500"),
    ])
    def test_precision_by_magnitude(self, cost, expected):
        assert format_cost(cost) == expected


class TestFormatTokens:
    @pytest.mark.parametrize("count,expected", [
        (1_250_000, "1.25M"),
        (12_345, "12.3K"),
        (512, "512"),
        (0, "0"),
    ])
    def test_compact(self, count, expected):
        assert format_tokens(count) == expected


class TestFormatDuration:
    @pytest.mark.parametrize("seconds,expected", [
        (8100, "2h 15m"),
        (2730, "45m 30s"),
        (12, "12s"),
        (12.9, "12s"),
    ])
    def test_units(self, seconds, expected):
        assert format_duration(seconds) == expected


class TestCostStatus:
    @pytest.mark.parametrize("cost,expected", [
        (0, "no_data"),
        (0.05, "low"),
        (0.5, "normal"),
        (2.0, "high"),
        (Decimal("7.5"), "critical"),
    ])
    def test_thresholds(self, cost, expected):
        assert get_cost_status(cost) == expected


class TestFormatMetricValue:
    def test_by_unit(self):
        assert format_metric_value(1.5, "USD") == "$1.50"
        assert format_metric_value(2_000_000, "tokens") == "2.00M"
        assert format_metric_value(90, "seconds") == "1m 30s"
        assert format_metric_value(3.0, "count") == "3"

    def test_missing_values(self):
        assert format_metric_value(None, "USD") == "—"
        assert format_metric_value("abc", "count") == "—"
