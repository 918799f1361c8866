"""
Metric and label name normalization.

Claude Code metrics reach Prometheus under several spellings depending on
the exporter: plain OpenTelemetry dotted names ("claude_code.token.usage"),
underscored names, and counter names carrying unit and ``_total`` suffixes.
This module maps any of them back to one canonical metric and provides
the display names used by the presentation layer.
"""

import logging
from enum import Enum
from typing import Dict, List, Optional

logger = logging.getLogger("ccmon.client")


class ClaudeCodeMetric(str, Enum):
    SESSION_COUNT = "claude_code_session_count"
    LINES_OF_CODE = "claude_code_lines_of_code_count"
    PULL_REQUEST_COUNT = "claude_code_pull_request_count"
    COMMIT_COUNT = "claude_code_commit_count"
    COST_USAGE = "claude_code_cost_usage"
    TOKEN_USAGE = "claude_code_token_usage"
    CODE_EDIT_DECISION = "claude_code_code_edit_tool_decision"
    ACTIVE_TIME = "claude_code_active_time"

    @property
    def display_name(self) -> str:
        return _METRIC_DISPLAY_NAMES[self]

    @property
    def unit(self) -> str:
        return _METRIC_UNITS.get(self, "count")

    @property
    def search_patterns(self) -> List[str]:
        """All spellings worth trying when looking this metric up by name."""
        dotted = self.value.replace("_", ".")
        return [self.value, dotted, f"{self.value}_total", f"{dotted}_total"]


_METRIC_DISPLAY_NAMES = {
    ClaudeCodeMetric.SESSION_COUNT: "Sessions",
    ClaudeCodeMetric.LINES_OF_CODE: "Lines of Code",
    ClaudeCodeMetric.PULL_REQUEST_COUNT: "Pull Requests",
    ClaudeCodeMetric.COMMIT_COUNT: "Commits",
    ClaudeCodeMetric.COST_USAGE: "Cost (USD)",
    ClaudeCodeMetric.TOKEN_USAGE: "Tokens",
    ClaudeCodeMetric.CODE_EDIT_DECISION: "Code Edit Decisions",
    ClaudeCodeMetric.ACTIVE_TIME: "Active Time",
}

_METRIC_UNITS = {
    ClaudeCodeMetric.COST_USAGE: "USD",
    ClaudeCodeMetric.TOKEN_USAGE: "tokens",
    ClaudeCodeMetric.ACTIVE_TIME: "seconds",
}

# Exporter spellings that differ from the canonical name by more than
# a dot/underscore swap
PROMETHEUS_VARIANTS: Dict[str, ClaudeCodeMetric] = {
    "claude_code_session_count_total": ClaudeCodeMetric.SESSION_COUNT,
    "claude_code_lines_of_code_count_total": ClaudeCodeMetric.LINES_OF_CODE,
    "claude_code_pull_request_count_total": ClaudeCodeMetric.PULL_REQUEST_COUNT,
    "claude_code_commit_count_total": ClaudeCodeMetric.COMMIT_COUNT,
    "claude_code_cost_usage_USD_total": ClaudeCodeMetric.COST_USAGE,
    "claude_code_token_usage_tokens_total": ClaudeCodeMetric.TOKEN_USAGE,
    "claude_code_code_edit_tool_decision_total": ClaudeCodeMetric.CODE_EDIT_DECISION,
    "claude_code_active_time_seconds_total": ClaudeCodeMetric.ACTIVE_TIME,
    "claude_code_active_time_total": ClaudeCodeMetric.ACTIVE_TIME,
    "claude_code.session.count": ClaudeCodeMetric.SESSION_COUNT,
    "claude_code.lines_of_code.count": ClaudeCodeMetric.LINES_OF_CODE,
    "claude_code.pull_request.count": ClaudeCodeMetric.PULL_REQUEST_COUNT,
    "claude_code.commit.count": ClaudeCodeMetric.COMMIT_COUNT,
    "claude_code.cost.usage": ClaudeCodeMetric.COST_USAGE,
    "claude_code.token.usage": ClaudeCodeMetric.TOKEN_USAGE,
    "claude_code.code_edit_tool.decision": ClaudeCodeMetric.CODE_EDIT_DECISION,
    "claude_code.active_time.total": ClaudeCodeMetric.ACTIVE_TIME,
}


class ClaudeCodeLabel(str, Enum):
    SESSION_ID = "session_id"
    ACCOUNT_UUID = "user_account_uuid"
    ORGANIZATION_ID = "organization_id"
    TERMINAL_TYPE = "terminal_type"
    APP_VERSION = "app_version"
    MODEL = "model"
    TYPE = "type"
    DECISION = "decision"


LABEL_DOT_VARIANTS: Dict[str, ClaudeCodeLabel] = {
    "session.id": ClaudeCodeLabel.SESSION_ID,
    "user.account_uuid": ClaudeCodeLabel.ACCOUNT_UUID,
    "organization.id": ClaudeCodeLabel.ORGANIZATION_ID,
    "terminal.type": ClaudeCodeLabel.TERMINAL_TYPE,
    "app.version": ClaudeCodeLabel.APP_VERSION,
}


def _lookup_metric(name: str) -> Optional[ClaudeCodeMetric]:
    try:
        return ClaudeCodeMetric(name)
    except ValueError:
        return PROMETHEUS_VARIANTS.get(name)


def normalize_metric_name(name: str) -> Optional[ClaudeCodeMetric]:
    """
    Map any exporter spelling of a Claude Code metric to its canonical form.

    Args:
        name: Metric name as seen in Prometheus, e.g. "claude_code.token.usage"

    Returns:
        The canonical metric, or None for unrelated metrics
    """
    metric = _lookup_metric(name)
    if metric is None:
        metric = _lookup_metric(name.replace(".", "_"))
    return metric


def normalize_label_name(name: str) -> Optional[ClaudeCodeLabel]:
    """Map a dotted or underscored label name to its canonical label."""
    if name in LABEL_DOT_VARIANTS:
        return LABEL_DOT_VARIANTS[name]
    try:
        return ClaudeCodeLabel(name.replace(".", "_"))
    except ValueError:
        return None


def normalize_labels(labels: Dict[str, str]) -> Dict[str, str]:
    """Rewrite known dotted label names to their canonical underscored form."""
    normalized = {}
    for key, value in labels.items():
        label = normalize_label_name(key)
        normalized[label.value if label else key] = value
    return normalized


TOKEN_TYPE_DISPLAY_NAMES = {
    "input": "Input",
    "output": "Output",
    "cacheRead": "Cache Read",
    "cacheCreation": "Cache Creation",
}


def create_friendly_label(labels: Dict[str, str]) -> str:
    """
    Create a user-friendly series label from a label set.

    Model names are shown as-is, token types use their display names, and
    anything else falls back to ``key=value`` pairs.
    """
    if ClaudeCodeLabel.MODEL.value in labels:
        return labels[ClaudeCodeLabel.MODEL.value]
    if ClaudeCodeLabel.TYPE.value in labels:
        token_type = labels[ClaudeCodeLabel.TYPE.value]
        return TOKEN_TYPE_DISPLAY_NAMES.get(token_type, token_type)
    if not labels:
        return "total"
    return ", ".join(f"{key}={labels[key]}" for key in sorted(labels))
