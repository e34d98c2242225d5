from __future__ import annotations

from typing import Optional

from sqlalchemy import String, Text, select
from sqlalchemy.orm import Mapped, Session, mapped_column

from .base import Base


class AppSetting(Base):
    """Key/value pair for small pieces of UI state (e.g. the selected gacha)."""

    __tablename__ = "app_settings"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"<AppSetting(key={self.key}, value={self.value})>"

    @classmethod
    def get_value(cls, session: Session, key: str) -> Optional[str]:
        """Return the stored value for ``key`` or ``None``."""

        return session.scalar(select(cls.value).where(cls.key == key))

    @classmethod
    def set_value(cls, session: Session, key: str, value: Optional[str]) -> "AppSetting":
        """Insert or update ``key``."""

        setting = session.get(cls, key)
        if setting is None:
            setting = cls(key=key, value=value)
            session.add(setting)
        else:
            setting.value = value
        return setting


__all__ = ["AppSetting"]
