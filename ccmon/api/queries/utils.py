"""
Query utility functions.

Shared helpers for rendering label filters and decoding the string-encoded
sample values Prometheus returns.
"""

import logging
import math
from typing import Any, Dict, Optional

logger = logging.getLogger("ccmon.client")

_SPECIAL_VALUES = {
    "NaN": math.nan,
    "+Inf": math.inf,
    "Inf": math.inf,
    "-Inf": -math.inf,
}


def escape_label_value(value: str) -> str:
    """Escape backslashes and double quotes inside a label matcher value."""
    return str(value).replace("\\", "\\\\").replace('"', '\\"')


def parse_sample_value(raw: Any) -> Optional[float]:
    """
    Decode a Prometheus sample value.

    Prometheus encodes floats as JSON strings so that NaN and the infinities
    survive JSON; those decode to the matching float specials.

    Args:
        raw: The string (or number) from a ``[timestamp, "value"]`` pair

    Returns:
        Float value, or None when the value cannot be parsed
    """
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return float(raw)
    if not isinstance(raw, str):
        return None
    if raw in _SPECIAL_VALUES:
        return _SPECIAL_VALUES[raw]
    try:
        return float(raw)
    except ValueError:
        logger.debug(f"Unparseable sample value: {raw!r}")
        return None


def clean_filters(filters: Optional[Dict[str, str]]) -> Dict[str, str]:
    """Drop empty filter values; an empty configured filter means "any"."""
    if not filters:
        return {}
    return {key: value for key, value in filters.items() if value}


def finite_or_zero(value: Optional[float]) -> float:
    """Clamp a KPI value to a finite, non-negative float."""
    if value is None or not math.isfinite(value):
        return 0.0
    return max(0.0, value)
