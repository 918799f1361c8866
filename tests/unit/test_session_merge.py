"""Unit tests for session-merge aggregation

Tests merge_results and the session roll-up helpers as pure functions.
"""
import math
from decimal import Decimal

from conftest import sample

from ccmon.dashboard.sessions import (
    costs_by_project, highest_cost_session, longest_session, merge_results,
    most_tokens_session, with_project_paths,
)
from ccmon.models import UNKNOWN_PROJECT, SessionRecord, TokenType


class TestMergeResults:
    """Union of session ids across the four per-session queries"""

    def test_union_of_sessions_with_zero_defaults(self):
        """A session present in any query is kept; missing fields stay zero"""
        cost = [sample(1.25, session_id="A")]
        by_type = [
            sample(100, session_id="A", type="input"),
            sample(300, session_id="C", type="input"),
        ]
        active = [sample(600, session_id="C")]

        sessions = merge_results(cost, by_type, [], active)

        assert [s.session_id for s in sessions] == ["A", "C"]
        a, c = sessions
        assert a.active_time == 0
        assert a.total_tokens == 100
        assert a.total_cost == Decimal("1.25")
        assert c.total_cost == 0
        assert c.active_time == 600

    def test_all_inputs_empty(self):
        assert merge_results([], [], [], []) == []

    def test_output_sorted_by_session_id(self):
        cost = [sample(1, session_id=sid) for sid in ("zeta", "alpha", "mid")]
        sessions = merge_results(cost, [], [], [])
        assert [s.session_id for s in sessions] == ["alpha", "mid", "zeta"]

    def test_unknown_token_types_are_dropped(self):
        by_type = [
            sample(10, session_id="A", type="input"),
            sample(99, session_id="A", type="reasoning"),
        ]
        session = merge_results([], by_type, [], [])[0]
        assert session.total_tokens == 10
        assert set(session.tokens_by_type) == set(TokenType)

    def test_total_tokens_is_sum_of_type_breakdown(self):
        by_type = [
            sample(10, session_id="A", type="input"),
            sample(20, session_id="A", type="output"),
            sample(30, session_id="A", type="cacheRead"),
            sample(40, session_id="A", type="cacheCreation"),
        ]
        session = merge_results([], by_type, [], [])[0]
        assert session.total_tokens == 100
        assert session.tokens_by_type[TokenType.CACHE_CREATION] == 40

    def test_model_tokens_do_not_affect_total(self):
        by_model = [sample(500, session_id="A", model="claude-opus-4-5")]
        session = merge_results([], [], by_model, [])[0]
        assert session.tokens_by_model == {"claude-opus-4-5": 500}
        assert session.total_tokens == 0

    def test_non_finite_values_are_ignored(self):
        cost = [sample(math.nan, session_id="A")]
        by_type = [sample(math.inf, session_id="A", type="input")]
        active = [sample(-math.inf, session_id="A")]

        session = merge_results(cost, by_type, [], active)[0]

        assert session.total_cost == 0
        assert session.total_tokens == 0
        assert session.active_time == 0

    def test_negative_values_clamp_to_zero(self):
        session = merge_results([sample(-0.5, session_id="A")], [], [], [sample(-10, session_id="A")])[0]
        assert session.total_cost == 0
        assert session.active_time == 0

    def test_samples_without_session_id_are_ignored(self):
        sessions = merge_results([sample(5.0), sample(1.0, session_id="")], [], [], [])
        assert sessions == []

    def test_cost_is_exact_decimal(self):
        session = merge_results([sample(0.1, session_id="A")], [], [], [])[0]
        assert session.total_cost == Decimal("0.1")


class TestSessionRecord:
    def test_derived_rates(self):
        session = SessionRecord(
            session_id="A",
            total_cost=Decimal("3"),
            tokens_by_type={TokenType.INPUT: 600, TokenType.OUTPUT: 0,
                            TokenType.CACHE_READ: 0, TokenType.CACHE_CREATION: 0},
            active_time=120,
        )
        assert session.cost_per_token == 3 / 600
        assert session.cost_per_minute == 1.5
        assert session.tokens_per_minute == 300

    def test_rates_are_none_without_activity(self):
        session = SessionRecord(session_id="A")
        assert session.cost_per_token is None
        assert session.cost_per_minute is None
        assert session.tokens_per_minute is None

    def test_truncated_session_id(self):
        assert SessionRecord(session_id="short").truncated_session_id == "short"
        long_id = "0123456789abcdef-ghij"
        assert SessionRecord(session_id=long_id).truncated_session_id == "01234567...ghij"

    def test_project_name(self):
        assert SessionRecord(session_id="A", project_path="/home/me/code/ccmon/").project_name == "ccmon"
        assert SessionRecord(session_id="A").project_name is None


class TestRollups:
    def _sessions(self):
        return [
            SessionRecord(session_id="A", total_cost=Decimal("2.00"), active_time=60, project_path="/p/one"),
            SessionRecord(session_id="B", total_cost=Decimal("0.50"), active_time=900,
                          tokens_by_type={TokenType.INPUT: 5000}),
            SessionRecord(session_id="C", total_cost=Decimal("1.00"), project_path="/p/one"),
        ]

    def test_top_sessions(self):
        sessions = self._sessions()
        assert highest_cost_session(sessions).session_id == "A"
        assert most_tokens_session(sessions).session_id == "B"
        assert longest_session(sessions).session_id == "B"

    def test_top_sessions_empty(self):
        assert highest_cost_session([]) is None
        assert longest_session([]) is None

    def test_costs_by_project(self):
        summaries = costs_by_project(self._sessions())

        assert [s.project_path for s in summaries] == ["/p/one", UNKNOWN_PROJECT]
        assert summaries[0].total_cost == Decimal("3.00")
        assert summaries[0].session_count == 2
        assert summaries[0].project_name == "one"
        assert summaries[1].project_name == UNKNOWN_PROJECT

    def test_with_project_paths(self):
        sessions = [SessionRecord(session_id="A"), SessionRecord(session_id="B")]
        enriched = with_project_paths(sessions, {"A": "/work/api"})
        assert enriched[0].project_path == "/work/api"
        assert enriched[1].project_path is None
