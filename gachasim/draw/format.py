"""Numeric formatting and form-input parsing shared by the draw subsystem."""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

PROBABILITY_DIGITS = 4
"""Decimal places shown for relative probabilities."""

_FLOAT_PREFIX = re.compile(r"\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)")
_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")


def to_fixed_without_zeros(value: Union[float, int, str], digits: int) -> str:
    """Round ``value`` to ``digits`` decimals and drop trailing zeros.

    Rounding is half away from zero on the exact binary value, so
    ``to_fixed_without_zeros(33.333333, 4) == "33.3333"`` and
    ``to_fixed_without_zeros(50.0, 4) == "50"``.

    Parameters
    ----------
    value : float | int | str
        Number to format. Strings are converted with :func:`float`.
    digits : int
        Number of decimal places to keep before trimming.

    Returns
    -------
    str
        Shortest decimal representation of the rounded value.
    """
    number = value if isinstance(value, (int, float)) else float(value)
    quantum = Decimal(1).scaleb(-digits)
    rounded = Decimal(number).quantize(quantum, rounding=ROUND_HALF_UP)
    if rounded.is_zero():
        return "0"
    text = format(rounded, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def parse_float(raw: Optional[str]) -> Optional[float]:
    """Parse the leading decimal number of ``raw``; ``None`` if there is none."""
    if raw is None:
        return None
    match = _FLOAT_PREFIX.match(raw)
    if match is None:
        return None
    return float(match.group(1))


def parse_int(raw: Optional[str]) -> Optional[int]:
    """Parse the leading integer of ``raw``; ``None`` if there is none."""
    if raw is None:
        return None
    match = _INT_PREFIX.match(raw)
    if match is None:
        return None
    return int(match.group(1))


def parse_weight(raw: Optional[str], *, blank_as_zero: bool = False) -> Optional[float]:
    """Parse a weight field.

    A blank field yields ``0.0`` when ``blank_as_zero`` is set (inline edits)
    and ``None`` otherwise (new prize forms, where a weight is required).
    """
    if raw is None or raw.strip() == "":
        return 0.0 if blank_as_zero else None
    return parse_float(raw)


def parse_limit(raw: Optional[str]) -> Optional[int]:
    """Parse a limit field; blank or non-numeric input means unlimited."""
    if raw is None:
        return None
    return parse_int(raw)


def parse_count(raw: Optional[str]) -> int:
    """Parse the custom draw count; blank, invalid or non-positive input is 1."""
    parsed = parse_int(raw)
    if parsed is None or parsed < 1:
        return 1
    return parsed


__all__ = [
    "PROBABILITY_DIGITS",
    "parse_count",
    "parse_float",
    "parse_int",
    "parse_limit",
    "parse_weight",
    "to_fixed_without_zeros",
]
