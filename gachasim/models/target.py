from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base
from .utils import new_id

if TYPE_CHECKING:
    from .gacha import Gacha


class Target(Base):
    """Attribution bucket for a batch of draws (e.g. a stream viewer).

    Like categories, target ids are scoped to their gacha: imported gachas
    commonly all use ``"none"`` for the default target.
    """

    __tablename__ = "targets"

    gacha_id: Mapped[str] = mapped_column(
        ForeignKey("gachas.id", ondelete="CASCADE"),
        primary_key=True,
    )
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    gacha: Mapped["Gacha"] = relationship(back_populates="targets")

    def __init__(self, *, name: str, id: Optional[str] = None) -> None:
        self.id = id or new_id()
        self.name = name

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"<Target(id={self.id}, name={self.name})>"


__all__ = ["Target"]
