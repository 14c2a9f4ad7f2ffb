"""Peer verification module.

Users submit evidence for a part and name another user to approve it.
"""

from .manager import VerificationManager
from .models import VerificationRequest
from .schemas import VerificationRequestResponse

__all__ = [
    "VerificationManager",
    "VerificationRequest",
    "VerificationRequestResponse",
]
