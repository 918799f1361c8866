"""Unit tests for the PromQL query builder and named query catalogue"""
import pytest

from ccmon.api.queries import convenience
from ccmon.api.queries.builder import PromQuery, build
from ccmon.api.queries.constants import COST_USAGE, TOKEN_USAGE
from ccmon.api.queries.utils import clean_filters, escape_label_value


class TestBuild:
    """Test query string rendering"""

    def test_bare_metric(self):
        assert build("up") == "up"

    def test_filters_are_sorted_by_label_name(self):
        query = build("m", {"model": "x", "app_version": "1.0"})
        assert query == 'm{app_version="1.0",model="x"}'

    def test_filter_insertion_order_does_not_matter(self):
        a = build(TOKEN_USAGE, {"model": "sonnet", "terminal_type": "vscode", "app_version": "2.0"},
                  ("increase", "1h"), ("sum", ["type"]))
        b = build(TOKEN_USAGE, {"app_version": "2.0", "terminal_type": "vscode", "model": "sonnet"},
                  ("increase", "1h"), ("sum", ["type"]))
        assert a == b

    def test_full_layout(self):
        query = build(COST_USAGE, {"model": "opus"}, ("increase", "1h"), ("sum", ["session_id", "model"]))
        assert query == 'sum by (session_id,model) (increase(claude_code_cost_usage_USD_total{model="opus"}[1h]))'

    def test_group_by_keeps_caller_order(self):
        query = build("m", None, ("rate", "5m"), ("sum", ["type", "model"]))
        assert query == "sum by (type,model) (rate(m[5m]))"

    def test_aggregation_without_group_by(self):
        assert build("m", None, ("increase", "1d"), ("sum", [])) == "sum(increase(m[1d]))"

    def test_label_values_are_escaped(self):
        query = build("m", {"project": 'C:\\code "x"'})
        assert query == 'm{project="C:\\\\code \\"x\\""}'

    def test_unknown_range_function_raises(self):
        with pytest.raises(ValueError, match="Unsupported range function"):
            build("m", None, ("delta", "5m"))

    def test_unknown_aggregation_raises(self):
        with pytest.raises(ValueError, match="Unsupported aggregation"):
            build("m", None, None, ("max", []))


class TestPromQuery:
    """Test the immutable combinator API"""

    def test_combinators_return_new_instances(self):
        base = PromQuery("m")
        filtered = base.with_label("model", "x")
        assert base.labels == ()
        assert filtered.labels == (("model", "x"),)

    def test_with_labels_merges_and_sorts(self):
        query = PromQuery("m").with_label("z", "1").with_labels({"a": "2"})
        assert query.labels == (("a", "2"), ("z", "1"))

    def test_equal_queries_compare_equal(self):
        a = PromQuery("m").with_labels({"a": "1", "b": "2"}).increase("1h").sum(by=["a"])
        b = PromQuery("m").with_labels({"b": "2", "a": "1"}).increase("1h").sum(by=["a"])
        assert a == b
        assert str(a) == str(b)

    def test_build_matches_module_function(self):
        query = PromQuery(TOKEN_USAGE).with_label("type", "input").rate("5m").avg()
        assert query.build() == build(TOKEN_USAGE, {"type": "input"}, ("rate", "5m"), ("avg", []))

    def test_with_labels_none_is_noop(self):
        base = PromQuery("m")
        assert base.with_labels(None) is base


class TestConvenienceQueries:
    """Test the named query catalogue"""

    def test_total_tokens(self):
        assert convenience.total_tokens("1h") == "sum(increase(claude_code_token_usage_tokens_total[1h]))"

    def test_cost_by_session(self):
        assert convenience.cost_by_session("1d") == \
            "sum by (session_id) (increase(claude_code_cost_usage_USD_total[1d]))"

    def test_tokens_by_session_and_type(self):
        assert convenience.tokens_by_session_and_type("1h") == \
            "sum by (session_id,type) (increase(claude_code_token_usage_tokens_total[1h]))"

    def test_lines_added_filters_on_type(self):
        assert convenience.lines_added("1h") == \
            'sum(increase(claude_code_lines_of_code_count_total{type="added"}[1h]))'

    def test_cost_per_interval_uses_step_seconds(self):
        assert convenience.cost_per_interval(300) == \
            "sum(increase(claude_code_cost_usage_USD_total[300s]))"

    def test_rate_queries_use_default_window(self):
        assert convenience.tokens_rate_by_model() == \
            "sum by (model) (rate(claude_code_token_usage_tokens_total[5m]))"
        assert convenience.cost_rate_by_model("1m") == \
            "sum by (model) (rate(claude_code_cost_usage_USD_total[1m]))"

    def test_empty_filters_are_not_applied(self):
        query = convenience.total_cost("1h", {"model": "", "terminal_type": "vscode"})
        assert query == 'sum(increase(claude_code_cost_usage_USD_total{terminal_type="vscode"}[1h]))'


class TestUtils:
    def test_escape_label_value(self):
        assert escape_label_value('a"b') == 'a\\"b'
        assert escape_label_value("a\\b") == "a\\\\b"

    def test_clean_filters(self):
        assert clean_filters(None) == {}
        assert clean_filters({"a": "", "b": "x"}) == {"b": "x"}
