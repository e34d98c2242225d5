"""Per-entity repositories over a SQLAlchemy session.

Each repository exposes create/retrieve/update/delete for one entity type.
Prize, category, target and operation repositories are scoped to a single
gacha because those entities only exist inside one.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Generic, Optional, TypeVar

from sqlalchemy.orm import Session

from .models import Category, Gacha, Operation, Prize, Target
from .models.utils import DEFAULT_GACHA_NAME, NONE_CATEGORY_ID, NONE_LABEL

logger = logging.getLogger(__name__)

T = TypeVar("T", Prize, Category, Target, Operation)


def validate_weight(weight: Any) -> float:
    """Return ``weight`` as a float, rejecting negative or non-finite values."""
    if isinstance(weight, bool) or not isinstance(weight, (int, float)):
        raise ValueError(f"weight must be a number, got {weight!r}")
    if not math.isfinite(weight) or weight < 0:
        raise ValueError(f"weight must be a finite non-negative number, got {weight!r}")
    return float(weight)


def validate_limit(limit: Any) -> Optional[int]:
    """Return ``limit`` unchanged when it is ``None`` or a non-negative int."""
    if limit is None:
        return None
    if isinstance(limit, bool) or not isinstance(limit, int):
        raise ValueError(f"limit must be an integer or None, got {limit!r}")
    if limit < 0:
        raise ValueError(f"limit must be non-negative, got {limit!r}")
    return limit


def _clean_name(name: str) -> str:
    trimmed = name.strip() if name else ""
    if not trimmed:
        raise ValueError("name must not be empty")
    return trimmed


class GachaRepository:
    """Create, look up, rename and delete gachas."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def create(self, name: Optional[str] = None) -> Gacha:
        """Create a gacha with its sentinel category and initial target.

        A blank ``name`` is replaced by ``"ガチャの種類 N"`` where N is the
        number of existing gachas plus one.
        """
        existing = self.list()
        formatted = (name or "").strip() or DEFAULT_GACHA_NAME.format(
            number=len(existing) + 1
        )
        gacha = Gacha(name=formatted, position=Gacha.next_position(self._session))
        gacha.ensure_sentinels()
        self._session.add(gacha)
        self._session.flush()
        logger.debug(f"Created gacha {gacha.id} ({gacha.name})")
        return gacha

    def retrieve(self, gacha_id: str) -> Optional[Gacha]:
        return self._session.get(Gacha, gacha_id)

    def list(self) -> list[Gacha]:
        return Gacha.list_all(self._session)

    def update(self, gacha_id: str, *, name: str) -> Gacha:
        gacha = self.require(gacha_id)
        gacha.name = _clean_name(name)
        self._session.flush()
        return gacha

    def delete(self, gacha_id: str) -> None:
        """Delete a gacha together with everything nested in it."""
        gacha = self.require(gacha_id)
        self._session.delete(gacha)
        self._session.flush()
        logger.debug(f"Deleted gacha {gacha_id}")

    def require(self, gacha_id: str) -> Gacha:
        gacha = self.retrieve(gacha_id)
        if gacha is None:
            raise LookupError(f"Unknown gacha '{gacha_id}'")
        return gacha


class _GachaCollectionRepository(Generic[T]):
    """Shared lookup and ordering helpers for collections owned by a gacha."""

    kind = "item"

    def __init__(self, session: Session, gacha: Gacha) -> None:
        self._session = session
        self._gacha = gacha

    def _items(self) -> list[T]:
        raise NotImplementedError

    def list(self) -> list[T]:
        return list(self._items())

    def retrieve(self, item_id: str) -> Optional[T]:
        return next((item for item in self._items() if item.id == item_id), None)

    def require(self, item_id: str) -> T:
        item = self.retrieve(item_id)
        if item is None:
            raise LookupError(f"Unknown {self.kind} '{item_id}' in gacha '{self._gacha.id}'")
        return item

    def move(self, item_id: str, index: int) -> T:
        """Move an item to ``index`` (clamped to the list bounds)."""
        items = self._items()
        item = self.require(item_id)
        items.remove(item)
        index = max(0, min(index, len(items)))
        items.insert(index, item)
        self._session.flush()
        return item


class PrizeRepository(_GachaCollectionRepository[Prize]):
    """Prize pool of one gacha. List order is the draw walk order."""

    kind = "prize"
    fields = ("name", "weight", "limit", "category_id")

    def _items(self) -> list[Prize]:
        return self._gacha.prizes

    def create(
        self,
        name: str,
        weight: float,
        limit: Optional[int] = None,
        category_id: str = NONE_CATEGORY_ID,
    ) -> Prize:
        prize = self.build(name, weight, limit, category_id)
        self._gacha.prizes.append(prize)
        self._session.flush()
        return prize

    def build(
        self,
        name: str,
        weight: float,
        limit: Optional[int] = None,
        category_id: str = NONE_CATEGORY_ID,
    ) -> Prize:
        """Validate the fields and return a prize not yet added to the pool."""
        self._check_category(category_id)
        return Prize(
            name=_clean_name(name),
            weight=validate_weight(weight),
            limit=validate_limit(limit),
            category_id=category_id,
        )

    def update(self, prize_id: str, **changes: Any) -> Prize:
        """Apply ``changes`` to the prize in place.

        Only ``name``, ``weight``, ``limit`` and ``category_id`` are mutable;
        passing ``limit=None`` makes the prize unlimited.
        """
        unknown = set(changes) - set(self.fields)
        if unknown:
            raise ValueError(f"Cannot update prize fields: {', '.join(sorted(unknown))}")
        prize = self.require(prize_id)
        if "name" in changes:
            prize.name = _clean_name(changes["name"])
        if "weight" in changes:
            prize.weight = validate_weight(changes["weight"])
        if "limit" in changes:
            prize.limit = validate_limit(changes["limit"])
        if "category_id" in changes:
            self._check_category(changes["category_id"])
            prize.category_id = changes["category_id"]
        self._session.flush()
        return prize

    def delete(self, prize_id: str) -> None:
        """Remove the prize. Historical results that mention it are kept."""
        prize = self.require(prize_id)
        self._gacha.prizes.remove(prize)
        self._session.flush()
        logger.debug(f"Deleted prize {prize_id} from gacha {self._gacha.id}")

    def _check_category(self, category_id: str) -> None:
        if self._gacha.find_category(category_id) is None:
            raise ValueError(f"Unknown category '{category_id}'")


class CategoryRepository(_GachaCollectionRepository[Category]):
    kind = "category"

    def _items(self) -> list[Category]:
        return self._gacha.categories

    def create(self, name: str) -> Category:
        category = Category(name=_clean_name(name))
        self._gacha.categories.append(category)
        self._session.flush()
        return category

    def update(self, category_id: str, *, name: str) -> Category:
        category = self.require(category_id)
        category.name = _clean_name(name)
        self._session.flush()
        return category

    def delete(self, category_id: str) -> None:
        """Delete a category and move its prizes to the ``"none"`` sentinel."""
        category = self.require(category_id)
        if category.is_sentinel:
            raise ValueError("The 'none' category cannot be deleted")
        for prize in self._gacha.prizes:
            if prize.category_id == category_id:
                prize.category_id = NONE_CATEGORY_ID
        self._gacha.categories.remove(category)
        self._session.flush()


class TargetRepository(_GachaCollectionRepository[Target]):
    kind = "target"

    def _items(self) -> list[Target]:
        return self._gacha.targets

    def create(self, name: str) -> Target:
        target = Target(name=_clean_name(name))
        self._gacha.targets.append(target)
        self._session.flush()
        return target

    def update(self, target_id: str, *, name: str) -> Target:
        target = self.require(target_id)
        target.name = _clean_name(name)
        self._session.flush()
        return target

    def delete(self, target_id: str) -> Optional[Target]:
        """Delete a target, keeping the target list non-empty.

        Operations attributed to the target are kept and display as
        ``"なし"`` afterwards.

        Returns
        -------
        Optional[Target]
            The fallback target created when the last target was removed,
            otherwise ``None``.
        """
        target = self.require(target_id)
        self._gacha.targets.remove(target)
        fallback: Optional[Target] = None
        if not self._gacha.targets:
            fallback = Target(name=NONE_LABEL)
            self._gacha.targets.append(fallback)
        self._session.flush()
        return fallback


class OperationRepository(_GachaCollectionRepository[Operation]):
    """Append-only draw history. Records are never updated, only removed."""

    kind = "operation"

    def _items(self) -> list[Operation]:
        return self._gacha.operation_history

    def create(self, operation: Operation) -> Operation:
        """Append a record produced by the draw engine."""
        if operation.gacha_id is not None and operation.gacha_id != self._gacha.id:
            raise ValueError("Operation already belongs to another gacha")
        self._gacha.operation_history.append(operation)
        self._session.flush()
        return operation

    def delete(self, operation_id: str) -> None:
        """Undo one batch by removing its record."""
        operation = self.require(operation_id)
        self._gacha.operation_history.remove(operation)
        self._session.flush()
        logger.debug(f"Undid operation {operation_id} in gacha {self._gacha.id}")

    def clear(self) -> int:
        """Bulk undo: drop the whole history and return how many records went."""
        removed = len(self._gacha.operation_history)
        del self._gacha.operation_history[:]
        self._session.flush()
        logger.debug(f"Cleared {removed} operations in gacha {self._gacha.id}")
        return removed

    def move(self, item_id: str, index: int) -> Operation:
        raise ValueError("Operation history order cannot be changed")


__all__ = [
    "CategoryRepository",
    "GachaRepository",
    "OperationRepository",
    "PrizeRepository",
    "TargetRepository",
    "validate_limit",
    "validate_weight",
]
