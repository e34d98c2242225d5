"""Database model for the append-only draw history."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..db.utils import to_epoch_millis
from .base import Base
from .utils import new_id

if TYPE_CHECKING:
    from .gacha import Gacha


class Operation(Base):
    """Immutable record of one batch draw.

    ``results`` maps prize ids to the number of times each prize was drawn
    in the batch. ``count`` is the *requested* draw count, which can exceed
    ``sum(results.values())`` when every prize hit its limit mid-batch.
    """

    __tablename__ = "operations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    """Primary key (UUID string)."""

    gacha_id: Mapped[str] = mapped_column(
        ForeignKey("gachas.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    """Owning gacha."""

    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    """Insertion index in the gacha's history."""

    count: Mapped[int] = mapped_column(Integer, nullable=False)
    """Requested number of draws."""

    results: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    """Mapping of prize id to times drawn in this batch."""

    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    """Creation time of the batch."""

    target_id: Mapped[str] = mapped_column("target", String(36), nullable=False)
    """Target the batch is attributed to. May reference a deleted target."""

    gacha: Mapped["Gacha"] = relationship(back_populates="operation_history")

    def __init__(
        self,
        *,
        count: int,
        results: dict[str, int],
        target_id: str,
        timestamp: Optional[datetime] = None,
        id: Optional[str] = None,
    ) -> None:
        self.id = id or new_id()
        self.count = count
        self.results = dict(results)
        self.target_id = target_id
        self.timestamp = timestamp or datetime.now(timezone.utc)

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<Operation(id={id}, count={count}, target={target}, results={results})>".format(
            id=self.id,
            count=self.count,
            target=self.target_id,
            results=self.results,
        )

    @property
    def drawn(self) -> int:
        """Number of draws that actually happened in the batch."""
        return sum(self.results.values())

    @property
    def timestamp_millis(self) -> int:
        return to_epoch_millis(self.timestamp)


__all__ = ["Operation"]
