"""Database model for a gacha configuration and its nested collections."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, Integer, String, func, select
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from .base import Base
from .utils import NONE_CATEGORY_ID, NONE_LABEL, new_id

if TYPE_CHECKING:
    from .operation import Operation
    from .prize import Category, Prize
    from .target import Target


class Gacha(Base):
    """A named gacha type: prize pool, categories, targets and draw history.

    A gacha is the unit of save/load. Deleting it removes every nested
    prize, category, target and operation.
    """

    __tablename__ = "gachas"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    """Primary key (UUID string)."""

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    """Display name of the gacha type."""

    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    """Index of the gacha in the persisted gacha list."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    """Timestamp when the gacha was created."""

    prizes: Mapped[list["Prize"]] = relationship(
        back_populates="gacha",
        cascade="all, delete-orphan",
        order_by="Prize.position",
        collection_class=ordering_list("position"),
    )
    """Prize pool in draw order."""

    categories: Mapped[list["Category"]] = relationship(
        back_populates="gacha",
        cascade="all, delete-orphan",
        order_by="Category.position",
        collection_class=ordering_list("position"),
    )
    """Categories, including the ``"none"`` sentinel."""

    targets: Mapped[list["Target"]] = relationship(
        back_populates="gacha",
        cascade="all, delete-orphan",
        order_by="Target.position",
        collection_class=ordering_list("position"),
    )
    """Draw recipients; never empty once sentinels are ensured."""

    operation_history: Mapped[list["Operation"]] = relationship(
        back_populates="gacha",
        cascade="all, delete-orphan",
        order_by="Operation.position",
        collection_class=ordering_list("position"),
    )
    """Append-only log of batch draws in insertion order."""

    def __init__(
        self,
        *,
        name: str,
        id: Optional[str] = None,
        position: int = 0,
        prizes: Optional[list["Prize"]] = None,
        categories: Optional[list["Category"]] = None,
        targets: Optional[list["Target"]] = None,
        operation_history: Optional[list["Operation"]] = None,
        created_at: Optional[datetime] = None,
    ) -> None:
        # Assign the id eagerly so that nested rows and engine lookups can use
        # it before the first flush.
        self.id = id or new_id()
        self.name = name
        self.position = position
        if prizes is not None:
            self.prizes = prizes
        if categories is not None:
            self.categories = categories
        if targets is not None:
            self.targets = targets
        if operation_history is not None:
            self.operation_history = operation_history
        if created_at is not None:
            self.created_at = created_at

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<Gacha(id={id}, name={name}, prizes={prizes})>".format(
            id=self.id,
            name=self.name,
            prizes=len(self.prizes),
        )

    def ensure_sentinels(self) -> None:
        """Add the ``"none"`` category and a fallback target when missing."""
        from .prize import Category
        from .target import Target

        if self.find_category(NONE_CATEGORY_ID) is None:
            self.categories.insert(0, Category(id=NONE_CATEGORY_ID, name=NONE_LABEL))
        if not self.targets:
            self.targets.append(Target(name=NONE_LABEL))

    def find_category(self, category_id: str) -> Optional["Category"]:
        return next((c for c in self.categories if c.id == category_id), None)

    def find_target(self, target_id: str) -> Optional["Target"]:
        return next((t for t in self.targets if t.id == target_id), None)

    def target_name(self, target_id: Optional[str]) -> str:
        """Return the target's name, or ``"なし"`` when it no longer exists."""
        target = self.find_target(target_id) if target_id is not None else None
        return target.name if target is not None else NONE_LABEL

    def category_name(self, category_id: str) -> str:
        """Return the category's name, or an empty string when unknown."""
        category = self.find_category(category_id)
        return category.name if category is not None else ""

    @classmethod
    def list_all(cls, session: Session) -> list["Gacha"]:
        """Return every gacha in list order."""
        stmt = select(cls).order_by(cls.position, cls.created_at)
        return list(session.scalars(stmt))

    @classmethod
    def next_position(cls, session: Session) -> int:
        """Return the position a newly appended gacha should take."""
        current = session.scalar(select(func.max(cls.position)))
        return 0 if current is None else current + 1


__all__ = ["Gacha"]
