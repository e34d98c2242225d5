"""Aggregation of draw counts from the operation history.

Counts are always derived from the history log and never stored beside it,
so undo and bulk clear cannot leave stale totals behind.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Optional, Protocol, Sequence

if TYPE_CHECKING:
    from ..models import Gacha


class WeightedPrize(Protocol):
    id: str
    weight: float
    limit: Optional[int]


class HistoryRecord(Protocol):
    results: dict
    target_id: str


def aggregate(
    prizes: Sequence[WeightedPrize],
    history: Iterable[HistoryRecord],
    target_filter: Optional[str] = None,
) -> dict[str, int]:
    """Fold ``history`` into cumulative per-prize draw counts.

    Parameters
    ----------
    prizes : Sequence[WeightedPrize]
        Current prize list. Each prize id is seeded with ``0``.
    history : Iterable[HistoryRecord]
        Operation records to fold over.
    target_filter : Optional[str], default: None
        When given, only records attributed to this target id are counted.

    Returns
    -------
    dict[str, int]
        Mapping of prize id to cumulative count. Result entries referring to
        prizes that no longer exist are ignored.
    """
    aggregation: dict[str, int] = {prize.id: 0 for prize in prizes}
    for record in history:
        if target_filter is not None and record.target_id != target_filter:
            continue
        for prize_id, count in record.results.items():
            if prize_id in aggregation:
                aggregation[prize_id] += count
    return aggregation


def overall_aggregation(gacha: "Gacha") -> dict[str, int]:
    """Counts across every target; this is what draw limits are checked against."""
    return aggregate(gacha.prizes, gacha.operation_history)


def target_aggregation(gacha: "Gacha", target_id: str) -> dict[str, int]:
    """Counts of the operations attributed to ``target_id``."""
    return aggregate(gacha.prizes, gacha.operation_history, target_filter=target_id)


def total_weight(prizes: Iterable[WeightedPrize]) -> float:
    """Sum of all weights, regardless of category or limit status."""
    return sum((prize.weight for prize in prizes), 0.0)


def relative_probability(weight: float, total: float) -> float:
    """Percentage share of ``weight`` in ``total``; ``0.0`` for an empty pool."""
    if total <= 0:
        return 0.0
    return weight / total * 100


def preview_relative_probability(weight: float, total: float, quantity: int = 1) -> float:
    """Share one new prize of ``weight`` would get once added to a pool of ``total``.

    ``quantity`` prizes of the same weight are added together, as when a
    numbered range is created.
    """
    return relative_probability(weight, total + weight * quantity)


__all__ = [
    "HistoryRecord",
    "WeightedPrize",
    "aggregate",
    "overall_aggregation",
    "preview_relative_probability",
    "relative_probability",
    "target_aggregation",
    "total_weight",
]
