"""Reward formulas for challenges.

Stored point values depend on these exact formulas, including the float
order of operations and half-up rounding, so change them only together
with a data migration.
"""

import math
from typing import Optional, Union

Number = Union[int, float]


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties toward positive infinity.

    Python's ``round`` rounds ties to even (``round(2.5) == 2``), which
    would disagree with previously stored values.

    Example:
        >>> round_half_up(2.5)
        3
        >>> round_half_up(41.56921938165306)
        42
    """
    return math.floor(value + 0.5)


def calculate_points(
    level: int,
    reps: Optional[int] = None,
    sets: Optional[int] = None,
    weight: Optional[Number] = None,
    minutes: Optional[Number] = None,
) -> int:
    """Points awarded for completing one part of a challenge.

    Args:
        level: Difficulty level (1-3)
        reps: Repetitions per set, if any
        sets: Number of sets, if any
        weight: Weight in kg, if any
        minutes: Minutes of exercise, if any

    Returns:
        Rounded points per part

    Example:
        >>> calculate_points(1, reps=10, sets=3)
        13
    """
    points = level * 10
    if reps:
        points += reps * 0.1
    if sets:
        points += sets * 0.5
    if weight:
        points += weight * 0.2
    if minutes:
        points += minutes * 0.3
    return round_half_up(points)


def calculate_bonus_points(level: int, frequency: int, duration: int) -> int:
    """Bonus awarded for completing every part of a challenge.

    Example:
        >>> calculate_bonus_points(2, 3, 2)
        42
    """
    return round_half_up(level * frequency ** 1.5 * duration ** 2)
