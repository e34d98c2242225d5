"""Utility helpers for the models package."""

from __future__ import annotations

import uuid

NONE_CATEGORY_ID = "none"
"""Identifier of the sentinel category every gacha carries."""

NONE_LABEL = "なし"
"""Display name used for the sentinel category and the fallback target."""

DEFAULT_GACHA_NAME = "ガチャの種類 {number}"


def new_id() -> str:
    """Return a fresh random identifier (UUID4 string form)."""
    return str(uuid.uuid4())
