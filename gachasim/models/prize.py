"""Database models for prizes and the categories that group them."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import Float, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base
from .utils import NONE_CATEGORY_ID, new_id

if TYPE_CHECKING:
    from .gacha import Gacha


class Prize(Base):
    """A weighted, optionally limited, categorized drawable item."""

    __tablename__ = "prizes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    """Primary key (UUID string). Immutable once created."""

    gacha_id: Mapped[str] = mapped_column(
        ForeignKey("gachas.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    """Owning gacha."""

    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    """Index within the gacha's prize list; this is the draw walk order."""

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    """Display name."""

    weight: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    """Relative draw weight (non-negative)."""

    limit: Mapped[Optional[int]] = mapped_column("draw_limit", Integer, nullable=True)
    """Maximum cumulative draws across all targets; ``None`` means unlimited."""

    category_id: Mapped[str] = mapped_column(
        String(36), nullable=False, default=NONE_CATEGORY_ID
    )
    """Category identifier within the owning gacha (``"none"`` by default)."""

    gacha: Mapped["Gacha"] = relationship(back_populates="prizes")

    def __init__(
        self,
        *,
        name: str,
        weight: float,
        limit: Optional[int] = None,
        category_id: str = NONE_CATEGORY_ID,
        id: Optional[str] = None,
        gacha: Optional["Gacha"] = None,
    ) -> None:
        self.id = id or new_id()
        self.name = name
        self.weight = weight
        self.limit = limit
        self.category_id = category_id
        if gacha is not None:
            self.gacha = gacha

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<Prize(id={id}, name={name}, weight={weight}, limit={limit})>".format(
            id=self.id,
            name=self.name,
            weight=self.weight,
            limit=self.limit,
        )


class Category(Base):
    """A named grouping of prizes inside one gacha.

    Category ids are only unique within a gacha, so the primary key is the
    ``(gacha_id, id)`` pair. This lets every gacha carry its own ``"none"``
    sentinel row.
    """

    __tablename__ = "categories"

    gacha_id: Mapped[str] = mapped_column(
        ForeignKey("gachas.id", ondelete="CASCADE"),
        primary_key=True,
    )
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    gacha: Mapped["Gacha"] = relationship(back_populates="categories")

    def __init__(self, *, name: str, id: Optional[str] = None) -> None:
        self.id = id or new_id()
        self.name = name

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"<Category(id={self.id}, name={self.name})>"

    @property
    def is_sentinel(self) -> bool:
        return self.id == NONE_CATEGORY_ID


__all__ = ["Prize", "Category"]
