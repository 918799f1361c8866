"""
PromQL query builder.

Composes a metric selector, optional label filters, a range function and
an outer aggregation into a query string. Instances are immutable; every
combinator returns a new query so partially built queries can be shared.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Sequence, Tuple

from .utils import escape_label_value

RANGE_FUNCTIONS = ("rate", "irate", "increase", "last_over_time", "max_over_time")
AGGREGATIONS = ("sum", "avg")


@dataclass(frozen=True)
class PromQuery:
    """
    A single PromQL expression of the form ``agg by (...) (fn(metric{...}[dur]))``.

    Label filters are stored as a sorted tuple of pairs, so two queries built
    with the same filters in a different order compare and render equal.
    """

    metric: str
    labels: Tuple[Tuple[str, str], ...] = ()
    range_function: Optional[str] = None
    range_duration: Optional[str] = None
    aggregation: Optional[str] = None
    group_by: Tuple[str, ...] = field(default=())

    def with_label(self, name: str, value: str) -> "PromQuery":
        merged = dict(self.labels)
        merged[name] = value
        return replace(self, labels=tuple(sorted(merged.items())))

    def with_labels(self, labels: Optional[Dict[str, str]]) -> "PromQuery":
        if not labels:
            return self
        merged = dict(self.labels)
        merged.update(labels)
        return replace(self, labels=tuple(sorted(merged.items())))

    def rate(self, duration: str) -> "PromQuery":
        return self._over("rate", duration)

    def irate(self, duration: str) -> "PromQuery":
        return self._over("irate", duration)

    def increase(self, duration: str) -> "PromQuery":
        return self._over("increase", duration)

    def last_over_time(self, duration: str) -> "PromQuery":
        return self._over("last_over_time", duration)

    def max_over_time(self, duration: str) -> "PromQuery":
        return self._over("max_over_time", duration)

    def sum(self, by: Sequence[str] = ()) -> "PromQuery":
        return replace(self, aggregation="sum", group_by=tuple(by))

    def avg(self, by: Sequence[str] = ()) -> "PromQuery":
        return replace(self, aggregation="avg", group_by=tuple(by))

    def _over(self, function: str, duration: str) -> "PromQuery":
        return replace(self, range_function=function, range_duration=duration)

    def build(self) -> str:
        """Render the query string."""
        return build(
            self.metric,
            dict(self.labels),
            (self.range_function, self.range_duration) if self.range_function else None,
            (self.aggregation, list(self.group_by)) if self.aggregation else None,
        )

    def __str__(self) -> str:
        return self.build()


def build(
    metric: str,
    filters: Optional[Dict[str, str]] = None,
    transform: Optional[Tuple[str, str]] = None,
    aggregation: Optional[Tuple[str, List[str]]] = None,
) -> str:
    """
    Build a PromQL expression.

    Args:
        metric: Metric name, e.g. "claude_code_cost_usage_USD_total"
        filters: Exact-match label filters, rendered sorted by label name
        transform: (function, duration) pair, e.g. ("increase", "1h")
        aggregation: (operator, group_by) pair, e.g. ("sum", ["model"]);
            group-by labels keep the caller's order

    Returns:
        Query string, e.g. 'sum by (model) (increase(metric{a="b"}[1h]))'

    Raises:
        ValueError: If the transform or aggregation operator is unknown
    """
    query = metric
    if filters:
        parts = [f'{key}="{escape_label_value(filters[key])}"' for key in sorted(filters)]
        query += "{" + ",".join(parts) + "}"

    if transform is not None:
        function, duration = transform
        if function not in RANGE_FUNCTIONS:
            raise ValueError(f"Unsupported range function: {function}")
        query = f"{function}({query}[{duration}])"

    if aggregation is not None:
        operator, group_by = aggregation
        if operator not in AGGREGATIONS:
            raise ValueError(f"Unsupported aggregation: {operator}")
        if group_by:
            query = f"{operator} by ({','.join(group_by)}) ({query})"
        else:
            query = f"{operator}({query})"

    return query
