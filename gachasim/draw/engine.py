"""Weighted batch draw engine with dynamic exclusion of exhausted prizes."""

from __future__ import annotations

import logging
import random as _random
from datetime import datetime, timezone
from typing import Callable, Iterable, Mapping, Optional, Sequence

from ..models import Operation
from ..models.utils import new_id
from .aggregation import HistoryRecord, WeightedPrize, aggregate

logger = logging.getLogger(__name__)

RandomSource = Callable[[], float]
Clock = Callable[[], datetime]
IdFactory = Callable[[], str]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def sample_results(
    prizes: Sequence[WeightedPrize],
    current_counts: Mapping[str, int],
    count: int,
    random: RandomSource = _random.random,
) -> dict[str, int]:
    """Draw up to ``count`` prizes by cumulative-weight selection.

    Parameters
    ----------
    prizes : Sequence[WeightedPrize]
        Prize pool. Candidates are walked in this order.
    current_counts : Mapping[str, int]
        Cumulative draws per prize id as of the start of the batch. The
        mapping is copied; the caller's value is left untouched.
    count : int
        Requested number of individual draws.
    random : Callable[[], float], default: random.random
        Uniform ``[0, 1)`` source.

    Returns
    -------
    dict[str, int]
        Mapping of prize id to times drawn in this batch. Prizes that were
        never drawn are absent.

    Notes
    -----
    Each iteration performs the following steps:

    1. Keep the prizes that are unlimited or still below their limit.
       Stop when none are left.
    2. Sum the weights of those candidates only.
    3. Pick ``r = random() * total`` and walk the candidates, returning the
       first one whose running weight sum is strictly greater than ``r``.
    4. Bump the running count of the drawn prize so later iterations see
       the reduced headroom.

    The candidate set only changes after a successful draw, so a zero total
    weight means no further draw can ever succeed and the loop stops.
    """
    running = {prize.id: current_counts.get(prize.id, 0) for prize in prizes}
    results: dict[str, int] = {}

    for iteration in range(count):
        candidates = [prize for prize in prizes if prize.limit is None or running[prize.id] < prize.limit]
        if not candidates:
            logger.debug(f"All prizes exhausted after {iteration} of {count} draws")
            break

        total = sum((prize.weight for prize in candidates), 0.0)
        if total <= 0:
            logger.debug(f"Candidate weight is zero; skipping remaining {count - iteration} draws")
            break

        r = random() * total
        cumulative = 0.0
        drawn: Optional[WeightedPrize] = None
        for prize in candidates:
            cumulative += prize.weight
            if r < cumulative:
                drawn = prize
                break

        # Rounding can leave r at the very top of the range; nothing is drawn
        # for that iteration.
        if drawn is None:
            continue

        running[drawn.id] += 1
        results[drawn.id] = results.get(drawn.id, 0) + 1

    return results


class GachaDrawEngine:
    """Engine that runs batch draws and emits immutable history records."""

    def __init__(
        self,
        *,
        random: Optional[RandomSource] = None,
        clock: Optional[Clock] = None,
        id_factory: Optional[IdFactory] = None,
    ) -> None:
        """Create a draw engine.

        Parameters
        ----------
        random : Optional[Callable[[], float]], default: None
            Uniform ``[0, 1)`` source. Defaults to :func:`random.random`;
            pass a fixed callable for deterministic tests.
        clock : Optional[Callable[[], datetime]], default: None
            Timestamp source for new records. Defaults to the current UTC time.
        id_factory : Optional[Callable[[], str]], default: None
            Identifier generator for new records. Defaults to UUID4 strings.
        """

        self._random = random or _random.random
        self._clock = clock or _utcnow
        self._id_factory = id_factory or new_id

    def draw(
        self,
        prizes: Sequence[WeightedPrize],
        history: Iterable[HistoryRecord],
        count: int,
        target_id: str,
    ) -> Operation:
        """Run one batch of ``count`` draws and return the new history record.

        Limits are global across targets, so the running counts are seeded
        from the unfiltered aggregation of ``history``.

        Parameters
        ----------
        prizes : Sequence[WeightedPrize]
            Prize pool in draw order.
        history : Iterable[HistoryRecord]
            Full operation history of the gacha.
        count : int
            Requested number of draws; must be a positive integer.
        target_id : str
            Target the batch is attributed to.

        Returns
        -------
        Operation
            New record that is not attached to any gacha or session. Its
            ``count`` is the requested count even when fewer draws happened.

        Raises
        ------
        TypeError
            If ``count`` is not an integer.
        ValueError
            If ``count`` is smaller than one.
        """
        if isinstance(count, bool) or not isinstance(count, int):
            raise TypeError("count must be an integer")
        if count < 1:
            raise ValueError("count must be a positive integer")

        current_counts = aggregate(prizes, history)
        results = sample_results(prizes, current_counts, count, random=self._random)
        operation = Operation(
            id=self._id_factory(),
            count=count,
            results=results,
            timestamp=self._clock(),
            target_id=target_id,
        )
        logger.debug(
            f"Drew {operation.drawn} of {count} requested for target {target_id}"
        )
        return operation


DEFAULT_DRAW_ENGINE = GachaDrawEngine()


def draw(
    prizes: Sequence[WeightedPrize],
    history: Iterable[HistoryRecord],
    count: int,
    target_id: str,
) -> Operation:
    """Run a batch draw with :data:`DEFAULT_DRAW_ENGINE`."""
    return DEFAULT_DRAW_ENGINE.draw(prizes, history, count, target_id)


__all__ = [
    "DEFAULT_DRAW_ENGINE",
    "GachaDrawEngine",
    "draw",
    "sample_results",
]
