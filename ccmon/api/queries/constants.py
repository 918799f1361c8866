"""
Query constants and metric name mappings.

Centralized metric and label names exported by Claude Code's
OpenTelemetry pipeline, as they appear after the Prometheus exporter
has applied its unit and ``_total`` suffixes.
"""

# Counter metrics as scraped by Prometheus
TOKEN_USAGE = "claude_code_token_usage_tokens_total"
COST_USAGE = "claude_code_cost_usage_USD_total"
ACTIVE_TIME = "claude_code_active_time_seconds_total"
SESSION_COUNT = "claude_code_session_count_total"
LINES_OF_CODE = "claude_code_lines_of_code_count_total"
COMMIT_COUNT = "claude_code_commit_count_total"
PULL_REQUEST_COUNT = "claude_code_pull_request_count_total"

# Label names
LABEL_SESSION_ID = "session_id"
LABEL_MODEL = "model"
LABEL_TYPE = "type"
LABEL_TERMINAL_TYPE = "terminal_type"
LABEL_APP_VERSION = "app_version"

# lines_of_code "type" label values
LINES_ADDED = "added"
LINES_REMOVED = "removed"

# Default sliding window for rate() series
DEFAULT_RATE_WINDOW = "5m"
