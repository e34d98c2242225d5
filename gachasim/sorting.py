"""Display ordering of prize lists.

Names compare the way a Japanese-locale, base-sensitivity, numeric
collation does: case, width, accents/voicing marks and hiragana/katakana
differences are ignored, and digit runs compare by value
(``"景品2" < "景品10"``).
"""

from __future__ import annotations

import re
import unicodedata
from functools import cmp_to_key
from typing import TYPE_CHECKING, Optional

from .models.utils import NONE_CATEGORY_ID

if TYPE_CHECKING:
    from .models import Gacha, Prize

SORT_FIELDS = ("name", "category")

_DIGITS = re.compile(r"(\d+)")
_KATAKANA_START = 0x30A1
_KATAKANA_END = 0x30F6
_KANA_OFFSET = 0x60


def _fold(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    chars = []
    for ch in decomposed:
        if unicodedata.combining(ch):
            continue
        code = ord(ch)
        if _KATAKANA_START <= code <= _KATAKANA_END:
            ch = chr(code - _KANA_OFFSET)
        chars.append(ch)
    return "".join(chars).casefold()


def collation_key(text: str) -> tuple:
    """Return a sort key implementing the collation described above."""
    parts = []
    for chunk in _DIGITS.split(_fold(text)):
        if not chunk:
            continue
        if chunk.isdigit():
            parts.append((0, int(chunk), ""))
        else:
            parts.append((1, 0, chunk))
    return tuple(parts)


def compare_text(left: str, right: str) -> int:
    a, b = collation_key(left), collation_key(right)
    return (a > b) - (a < b)


def sort_prizes(
    gacha: "Gacha",
    order_by: Optional[str] = None,
    descending: bool = False,
) -> list["Prize"]:
    """Return the gacha's prizes in display order.

    Parameters
    ----------
    gacha : Gacha
        Gacha whose prizes are sorted. The stored order is not changed.
    order_by : Optional[str], default: None
        ``"name"``, ``"category"`` or ``None`` for the stored (draw) order.
    descending : bool, default: False
        Reverse the primary ordering.

    Notes
    -----
    When ordering by category, prizes in the ``"none"`` category come last
    in ascending order and first in descending order. Prizes that share a
    category are ordered by name ascending in both directions.
    """
    prizes = list(gacha.prizes)
    if order_by is None:
        return prizes
    if order_by not in SORT_FIELDS:
        raise ValueError(f"Unknown sort field '{order_by}'")

    sign = -1 if descending else 1
    if order_by == "name":
        return sorted(prizes, key=cmp_to_key(lambda a, b: compare_text(a.name, b.name) * sign))

    def by_category(a: "Prize", b: "Prize") -> int:
        a_none = a.category_id == NONE_CATEGORY_ID
        b_none = b.category_id == NONE_CATEGORY_ID
        if a_none and not b_none:
            return sign
        if b_none and not a_none:
            return -sign
        result = compare_text(
            gacha.category_name(a.category_id), gacha.category_name(b.category_id)
        ) * sign
        if result != 0:
            return result
        return compare_text(a.name, b.name)

    return sorted(prizes, key=cmp_to_key(by_category))


__all__ = ["SORT_FIELDS", "collation_key", "compare_text", "sort_prizes"]
