"""Ratio arithmetic."""

from typing import Optional

from burnswap.config import RATIO_SCALE
from burnswap.errors import RatioOutOfBounds


def compute_target_amount(source_amount: int, ratio: int) -> int:
    """Target units paid for source_amount: floor(source_amount * ratio / RATIO_SCALE).

    Small amounts can floor to zero.
    """
    return source_amount * ratio // RATIO_SCALE


def check_ratio_bounds(
    ratio: int,
    min_ratio: Optional[int] = None,
    max_ratio: Optional[int] = None,
) -> None:
    """Raise RatioOutOfBounds if ratio falls outside the optional bounds."""
    if min_ratio is not None and ratio < min_ratio:
        raise RatioOutOfBounds(f"Ratio {ratio} is below minimum {min_ratio}")
    if max_ratio is not None and ratio > max_ratio:
        raise RatioOutOfBounds(f"Ratio {ratio} is above maximum {max_ratio}")
