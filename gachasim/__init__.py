"""Gacha (loot-box) draw simulator with an append-only draw history."""

from .draw import aggregate, draw

__all__ = ["aggregate", "draw"]
