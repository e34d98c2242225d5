"""Read-only views derived from a gacha and its history."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from .db.utils import to_local_time
from .draw.aggregation import relative_probability, total_weight
from .draw.format import PROBABILITY_DIGITS, to_fixed_without_zeros

if TYPE_CHECKING:
    from .models import Gacha, Operation, Prize


@dataclass(frozen=True)
class AggregationRow:
    """One line of an aggregation table.

    Attributes
    ----------
    prize : Prize
        Prize the row describes.
    count : int
        Cumulative draws of the prize in the aggregation.
    probability : str
        Relative probability in percent, formatted for display.
    """

    prize: "Prize"
    count: int
    probability: str


@dataclass(frozen=True)
class HistoryEntry:
    """Display form of one operation record."""

    operation: "Operation"
    timestamp: datetime
    count: int
    target_name: str
    lines: tuple[tuple[str, int], ...]
    """``(prize name, times drawn)`` for prizes that still exist, in prize order."""


def probability_text(prize: "Prize", total: float) -> str:
    """Relative probability of ``prize`` formatted with four decimals at most."""
    if total <= 0:
        return "0.00"
    return to_fixed_without_zeros(relative_probability(prize.weight, total), PROBABILITY_DIGITS)


def aggregation_rows(
    gacha: "Gacha",
    aggregation: dict[str, int],
    include_zero: bool = False,
) -> list[AggregationRow]:
    """Build the rows of an aggregation table in prize order.

    Prizes with a zero count are hidden unless ``include_zero`` is set.
    """
    total = total_weight(gacha.prizes)
    rows = []
    for prize in gacha.prizes:
        count = aggregation.get(prize.id, 0)
        if count == 0 and not include_zero:
            continue
        rows.append(AggregationRow(prize=prize, count=count, probability=probability_text(prize, total)))
    return rows


def history_entries(gacha: "Gacha", target_id: Optional[str] = None) -> list[HistoryEntry]:
    """Return the history newest first, optionally limited to one target."""
    operations = [
        op for op in gacha.operation_history if target_id is None or op.target_id == target_id
    ]
    # Loaded rows come back naive from SQLite while fresh ones are aware, so
    # order by epoch milliseconds instead of comparing datetimes directly.
    operations.sort(key=lambda op: op.timestamp_millis, reverse=True)
    entries = []
    for op in operations:
        lines = tuple(
            (prize.name, op.results[prize.id])
            for prize in gacha.prizes
            if prize.id in op.results
        )
        entries.append(
            HistoryEntry(
                operation=op,
                timestamp=op.timestamp,
                count=op.count,
                target_name=gacha.target_name(op.target_id),
                lines=lines,
            )
        )
    return entries


def describe_entry(entry: HistoryEntry) -> str:
    """Render an entry as the multi-line text shown in the history panel.

    The timestamp is shown in local time.
    """
    header = "実行日時: {ts} - {count}回実行 - 対象者: {target}".format(
        ts=to_local_time(entry.timestamp).strftime("%Y/%m/%d %H:%M:%S"),
        count=entry.count,
        target=entry.target_name,
    )
    body = [f"{name}: {count}回" for name, count in entry.lines]
    return "\n".join([header, *body])


__all__ = [
    "AggregationRow",
    "HistoryEntry",
    "aggregation_rows",
    "describe_entry",
    "history_entries",
    "probability_text",
]
