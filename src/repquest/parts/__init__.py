"""Challenge parts module.

A challenge is split into one part per (week, day) slot. This module
creates the parts alongside their challenge and tracks which users
completed each one.
"""

from .manager import PartManager
from .models import Part, PartCompletion
from .schemas import ParticipantProgress, PartResponse

__all__ = [
    "PartManager",
    "Part",
    "PartCompletion",
    "ParticipantProgress",
    "PartResponse",
]
