"""Exercise challenges module.

Provides functionality for:
- Creating challenges and deriving their point rewards
- Opening and closing challenges
- Managing the roster of invited, accepted and completed users
"""

from .manager import ChallengeManager
from .models import Challenge, Participant
from .schemas import (
    ChallengeCreate,
    ChallengeDetails,
    CreatorInfo,
    CreatorType,
)
from .scoring import calculate_bonus_points, calculate_points

__all__ = [
    "ChallengeManager",
    "Challenge",
    "Participant",
    "ChallengeCreate",
    "ChallengeDetails",
    "CreatorInfo",
    "CreatorType",
    "calculate_points",
    "calculate_bonus_points",
]
