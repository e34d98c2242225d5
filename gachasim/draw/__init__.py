"""Draw and aggregation core of the gacha simulator."""

from .aggregation import (
    aggregate,
    overall_aggregation,
    preview_relative_probability,
    relative_probability,
    target_aggregation,
    total_weight,
)
from .engine import DEFAULT_DRAW_ENGINE, GachaDrawEngine, draw, sample_results
from .format import (
    parse_count,
    parse_limit,
    parse_weight,
    to_fixed_without_zeros,
)

__all__ = [
    "DEFAULT_DRAW_ENGINE",
    "GachaDrawEngine",
    "aggregate",
    "draw",
    "overall_aggregation",
    "parse_count",
    "parse_limit",
    "parse_weight",
    "preview_relative_probability",
    "relative_probability",
    "sample_results",
    "target_aggregation",
    "to_fixed_without_zeros",
    "total_weight",
]
