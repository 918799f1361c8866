"""
Session history lookup.

Claude Code appends one JSON line per prompt to ``~/.claude/history.jsonl``
with the session id, project directory and a millisecond timestamp. This
module maps session ids to the project directory they last ran in.
"""

import logging
import threading
from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple

from pydantic import BaseModel, ValidationError

logger = logging.getLogger("ccmon.dashboard")

DEFAULT_HISTORY_PATH = Path.home() / ".claude" / "history.jsonl"


class HistoryEntry(BaseModel):
    sessionId: str
    project: str
    timestamp: int


class SessionHistoryProvider:
    """Interface for session id → project path lookups."""

    def project_paths(self, session_ids: Iterable[str]) -> Dict[str, str]:
        raise NotImplementedError

    def project_path(self, session_id: str) -> Optional[str]:
        return self.project_paths([session_id]).get(session_id)


class StaticSessionHistoryProvider(SessionHistoryProvider):
    """Provider backed by a fixed mapping."""

    def __init__(self, mapping: Optional[Dict[str, str]] = None):
        self.mapping = dict(mapping or {})

    def project_paths(self, session_ids: Iterable[str]) -> Dict[str, str]:
        return {sid: self.mapping[sid] for sid in session_ids if sid in self.mapping}


class FileSessionHistoryProvider(SessionHistoryProvider):
    """
    Provider reading Claude Code's ``history.jsonl``.

    The file is parsed once and cached until ``invalidate_cache()``.
    Malformed lines are skipped; when a session appears on several lines the
    entry with the latest timestamp wins.
    """

    def __init__(self, history_path: Optional[Path] = None):
        self.history_path = Path(history_path) if history_path else DEFAULT_HISTORY_PATH
        self._cache: Optional[Dict[str, Tuple[str, int]]] = None
        self._lock = threading.Lock()

    def project_paths(self, session_ids: Iterable[str]) -> Dict[str, str]:
        mapping = self._load_if_needed()
        return {sid: mapping[sid][0] for sid in session_ids if sid in mapping}

    def invalidate_cache(self) -> None:
        with self._lock:
            self._cache = None

    def _load_if_needed(self) -> Dict[str, Tuple[str, int]]:
        with self._lock:
            if self._cache is None:
                self._cache = self._read_history()
            return self._cache

    def _read_history(self) -> Dict[str, Tuple[str, int]]:
        mapping: Dict[str, Tuple[str, int]] = {}
        if not self.history_path.exists():
            logger.debug(f"History file not found: {self.history_path}")
            return mapping

        skipped = 0
        try:
            with open(self.history_path, "r", encoding="utf-8", errors="replace") as f:
                for line in f:
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        entry = HistoryEntry.model_validate_json(line)
                    except ValidationError:
                        skipped += 1
                        continue
                    existing = mapping.get(entry.sessionId)
                    if existing is None or entry.timestamp > existing[1]:
                        mapping[entry.sessionId] = (entry.project, entry.timestamp)
        except OSError as e:
            logger.warning(f"Could not read history file {self.history_path}: {e}")
            return mapping

        if skipped:
            logger.debug(f"Skipped {skipped} malformed history lines")
        logger.info(f"Loaded project paths for {len(mapping)} sessions from {self.history_path}")
        return mapping
