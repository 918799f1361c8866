"""
Stats cache schema and loader.

Claude Code keeps a pre-aggregated usage summary in
``~/.claude/stats-cache.json``. It is read-only here: loaded on demand,
kept in memory until ``refresh()``, and never mutated.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger("ccmon.insights")

DEFAULT_STATS_CACHE_PATH = Path.home() / ".claude" / "stats-cache.json"


class StatsCacheError(Exception):
    """The stats cache file is missing or cannot be parsed."""

    def __init__(self, message: str, missing: bool = False):
        super().__init__(message)
        self.message = message
        self.missing = missing


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class DailyActivity(_Frozen):
    date: str
    message_count: int = Field(0, alias="messageCount")
    session_count: int = Field(0, alias="sessionCount")
    tool_call_count: int = Field(0, alias="toolCallCount")

    @property
    def is_active(self) -> bool:
        return self.message_count > 0 or self.session_count > 0


class DailyModelTokens(_Frozen):
    date: str
    tokens_by_model: Dict[str, int] = Field(default_factory=dict, alias="tokensByModel")

    @property
    def total_tokens(self) -> int:
        return sum(self.tokens_by_model.values())


class ModelUsage(_Frozen):
    input_tokens: int = Field(0, alias="inputTokens")
    output_tokens: int = Field(0, alias="outputTokens")
    cache_read_input_tokens: int = Field(0, alias="cacheReadInputTokens")
    cache_creation_input_tokens: int = Field(0, alias="cacheCreationInputTokens")
    web_search_requests: int = Field(0, alias="webSearchRequests")
    cost_usd: float = Field(0.0, alias="costUSD")
    context_window: int = Field(0, alias="contextWindow")

    @property
    def total_tokens(self) -> int:
        return (
            self.input_tokens
            + self.output_tokens
            + self.cache_read_input_tokens
            + self.cache_creation_input_tokens
        )


class LongestSession(_Frozen):
    session_id: str = Field("", alias="sessionId")
    # Milliseconds
    duration: int = 0
    message_count: int = Field(0, alias="messageCount")
    timestamp: Optional[str] = None

    @property
    def duration_minutes(self) -> float:
        return self.duration / 60_000


class StatsCache(_Frozen):
    version: int = 1
    last_computed_date: Optional[str] = Field(None, alias="lastComputedDate")
    daily_activity: List[DailyActivity] = Field(default_factory=list, alias="dailyActivity")
    daily_model_tokens: List[DailyModelTokens] = Field(default_factory=list, alias="dailyModelTokens")
    model_usage: Dict[str, ModelUsage] = Field(default_factory=dict, alias="modelUsage")
    total_sessions: int = Field(0, alias="totalSessions")
    total_messages: int = Field(0, alias="totalMessages")
    longest_session: Optional[LongestSession] = Field(None, alias="longestSession")
    first_session_date: Optional[str] = Field(None, alias="firstSessionDate")
    hour_counts: Dict[str, int] = Field(default_factory=dict, alias="hourCounts")

    @field_validator("daily_activity", "daily_model_tokens")
    @classmethod
    def _chronological(cls, entries):
        # Trend and streak calculations rely on date order; ISO dates sort lexically
        return sorted(entries, key=lambda e: e.date)


def parse_stats_cache(raw: str) -> StatsCache:
    """
    Parse stats cache JSON text.

    Raises:
        StatsCacheError: If the text is not JSON or does not match the schema
    """
    try:
        return StatsCache.model_validate_json(raw)
    except ValidationError as e:
        raise StatsCacheError(f"Failed to parse stats cache: {e.error_count()} validation error(s): {e}") from e


class StatsCacheLoader:
    """Loads the stats cache on first use and keeps it until refreshed."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else DEFAULT_STATS_CACHE_PATH
        self._stats: Optional[StatsCache] = None
        self._lock = threading.Lock()

    @property
    def file_exists(self) -> bool:
        return self.path.exists()

    def load(self) -> StatsCache:
        """
        Return the cached summary, reading the file on first call.

        Raises:
            StatsCacheError: If the file is missing, unreadable or malformed
        """
        with self._lock:
            if self._stats is None:
                self._stats = self._read()
            return self._stats

    def refresh(self) -> StatsCache:
        """Drop the in-memory copy and reread the file."""
        with self._lock:
            self._stats = None
        return self.load()

    def _read(self) -> StatsCache:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = f.read()
        except FileNotFoundError as e:
            raise StatsCacheError(
                f"Stats cache file not found at {self.path}. Use Claude Code to generate usage data.",
                missing=True,
            ) from e
        except UnicodeDecodeError as e:
            raise StatsCacheError(f"Stats cache file is not valid UTF-8: {e}") from e
        except OSError as e:
            raise StatsCacheError(f"Failed to load stats cache: {e}") from e

        stats = parse_stats_cache(raw)
        logger.info(
            f"Loaded stats cache v{stats.version}: {len(stats.daily_activity)} active days, "
            f"{stats.total_sessions} sessions"
        )
        return stats


def dump_stats_cache(stats: StatsCache) -> str:
    """Serialize back to the on-disk camelCase form (used by fixtures and exports)."""
    return json.dumps(stats.model_dump(by_alias=True, exclude_none=True), indent=2)
