from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.orm import Session

from .draw.aggregation import preview_relative_probability, total_weight
from .draw.engine import DEFAULT_DRAW_ENGINE, GachaDrawEngine
from .draw.format import parse_int, parse_limit, parse_weight
from .models import Gacha, Operation, Prize
from .models.utils import NONE_CATEGORY_ID
from .repositories import (
    GachaRepository,
    OperationRepository,
    PrizeRepository,
    TargetRepository,
)

logger = logging.getLogger(__name__)

MAX_NUMBERED_PRIZES = 1000
"""Upper bound on prizes created by one :func:`add_numbered_prizes` call."""


def create_gacha(session: Session, name: Optional[str] = None) -> Gacha:
    """Create a gacha with the ``"none"`` category and a ``"なし"`` target."""
    return GachaRepository(session).create(name)


def pull_gacha(
    session: Session,
    gacha: Gacha,
    count: int,
    target_id: str,
    *,
    engine: Optional[GachaDrawEngine] = None,
) -> Operation:
    """Draw ``count`` prizes for ``target_id`` and append the record to the history.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session.
    gacha : Gacha
        Gacha whose prize pool and history are used.
    count : int
        Requested number of draws (positive).
    target_id : str
        Target the batch is attributed to.
    engine : Optional[GachaDrawEngine], default: None
        Engine override, typically one with a fixed random source in tests.

    Returns
    -------
    Operation
        The persisted history record.

    Raises
    ------
    ValueError
        If ``count`` is smaller than one or ``target_id`` is not a target of
        the gacha.
    """
    if gacha.find_target(target_id) is None:
        raise ValueError(f"Unknown target '{target_id}' in gacha '{gacha.id}'")

    active_engine = engine or DEFAULT_DRAW_ENGINE
    operation = active_engine.draw(gacha.prizes, gacha.operation_history, count, target_id)
    return OperationRepository(session, gacha).create(operation)


def undo_operation(session: Session, gacha: Gacha, operation_id: str) -> None:
    """Remove one batch from the history; aggregations drop its draws."""
    OperationRepository(session, gacha).delete(operation_id)


def clear_operation_history(session: Session, gacha: Gacha) -> int:
    """Bulk undo. Returns the number of removed records."""
    return OperationRepository(session, gacha).clear()


def preview_numbered_prizes(gacha: Gacha, weight: float, start: int, end: int) -> float:
    """Relative probability each prize of a numbered range would get once added.

    Returns ``0.0`` for an empty range.
    """
    quantity = end - start + 1
    if quantity < 1:
        return 0.0
    return preview_relative_probability(weight, total_weight(gacha.prizes), quantity)


def add_numbered_prizes(
    session: Session,
    gacha: Gacha,
    base_name: str,
    start: int,
    end: int,
    weight: float,
    limit: Optional[int] = None,
    category_id: str = NONE_CATEGORY_ID,
) -> list[Prize]:
    """Append prizes named ``f"{base_name}{n}"`` for each ``n`` in ``start..end``.

    All prizes share ``weight``, ``limit`` and ``category_id``.

    Raises
    ------
    ValueError
        If ``start > end``, more than :data:`MAX_NUMBERED_PRIZES` prizes would
        be created, or a field fails validation.
    """
    if start > end:
        raise ValueError("end number must be greater than or equal to start number")
    if end - start + 1 > MAX_NUMBERED_PRIZES:
        raise ValueError(f"At most {MAX_NUMBERED_PRIZES} prizes can be created at once")

    repo = PrizeRepository(session, gacha)
    # Validate everything before touching the pool so a bad field adds nothing.
    prizes = [
        repo.build(f"{base_name}{number}", weight, limit, category_id)
        for number in range(start, end + 1)
    ]
    gacha.prizes.extend(prizes)
    session.flush()
    logger.debug(f"Added {len(prizes)} numbered prizes to gacha {gacha.id}")
    return prizes


def delete_numbered_prizes(
    session: Session, gacha: Gacha, base_name: str, start: int, end: int
) -> int:
    """Remove every prize named ``f"{base_name}{n}"`` for ``n`` in ``start..end``.

    Returns
    -------
    int
        Number of prizes removed. History records are left untouched.
    """
    if start > end:
        raise ValueError("end number must be greater than or equal to start number")

    names = {f"{base_name}{number}" for number in range(start, end + 1)}
    doomed = [prize for prize in gacha.prizes if prize.name in names]
    for prize in doomed:
        gacha.prizes.remove(prize)
    session.flush()
    logger.debug(f"Removed {len(doomed)} numbered prizes from gacha {gacha.id}")
    return len(doomed)


def add_prize_from_form(
    session: Session,
    gacha: Gacha,
    name: str,
    weight: str,
    limit: str = "",
    category_id: str = NONE_CATEGORY_ID,
) -> Optional[Prize]:
    """Create a prize from raw form input.

    Nothing is created when the name is blank or the weight is not a number.
    A blank or non-numeric limit means unlimited.
    """
    parsed_weight = parse_weight(weight)
    if not name.strip() or parsed_weight is None:
        return None
    return PrizeRepository(session, gacha).create(
        name, parsed_weight, parse_limit(limit), category_id
    )


def update_prize_field(
    session: Session, gacha: Gacha, prize_id: str, field: str, raw_value: str
) -> Prize:
    """Apply an inline edit of one prize field from raw form input.

    A blank weight becomes ``0`` and a blank limit removes the limit.
    Non-numeric input for either field, or a blank name, leaves the prize
    unchanged.
    """
    repo = PrizeRepository(session, gacha)
    value: object
    if field == "weight":
        value = parse_weight(raw_value, blank_as_zero=True)
        if value is None:
            return repo.require(prize_id)
    elif field == "limit":
        if raw_value == "":
            value = None
        else:
            value = parse_int(raw_value)
            if value is None:
                return repo.require(prize_id)
    elif field == "name":
        if not raw_value.strip():
            return repo.require(prize_id)
        value = raw_value
    elif field == "category_id":
        value = raw_value
    else:
        raise ValueError(f"Unknown prize field '{field}'")
    return repo.update(prize_id, **{field: value})


def delete_target(
    session: Session,
    gacha: Gacha,
    target_id: str,
    current_target_id: Optional[str] = None,
) -> str:
    """Delete a target and return the id of the target to select next.

    When the selected target is deleted, the last remaining target is
    selected (or the one before it, if the deleted target was last). When
    no targets remain a ``"なし"`` fallback target is created and selected.
    """
    targets = list(gacha.targets)
    next_id = current_target_id
    if target_id == current_target_id and len(targets) > 1:
        next_id = targets[-2].id if targets[-1].id == target_id else targets[-1].id

    fallback = TargetRepository(session, gacha).delete(target_id)
    if fallback is not None:
        return fallback.id
    if next_id is None or gacha.find_target(next_id) is None:
        return gacha.targets[0].id
    return next_id


__all__ = [
    "MAX_NUMBERED_PRIZES",
    "add_numbered_prizes",
    "add_prize_from_form",
    "clear_operation_history",
    "create_gacha",
    "delete_numbered_prizes",
    "delete_target",
    "preview_numbered_prizes",
    "pull_gacha",
    "undo_operation",
    "update_prize_field",
]
