"""
Instant-vector extraction helpers.

Turns the samples returned by an instant query into the shapes the
aggregation layer needs: a single KPI value or a per-label breakdown.
"""

from typing import Dict, Optional, Sequence

from ...models import MetricSample

UNKNOWN_LABEL = "unknown"


def scalar_value(samples: Sequence[MetricSample]) -> Optional[float]:
    """
    Value of the first returned sample.

    Aggregated KPI queries (``sum(increase(...))``) return at most one series;
    an empty result means no data in the range and yields None.
    """
    if not samples:
        return None
    return samples[0].value


def breakdown_by_label(
    samples: Sequence[MetricSample],
    label: str,
    positive_only: bool = False,
) -> Dict[str, float]:
    """
    Sum sample values per value of ``label``.

    Args:
        samples: Instant query result, e.g. from ``sum by (model) (...)``
        label: Label to group on; series without it go under "unknown"
        positive_only: Drop keys whose value is not strictly positive

    Returns:
        Mapping of label value to summed value; non-finite samples are skipped
    """
    breakdown: Dict[str, float] = {}
    for sample in samples:
        if not sample.is_finite:
            continue
        key = sample.labels.get(label) or UNKNOWN_LABEL
        breakdown[key] = breakdown.get(key, 0.0) + sample.value

    if positive_only:
        breakdown = {key: value for key, value in breakdown.items() if value > 0}
    return breakdown

