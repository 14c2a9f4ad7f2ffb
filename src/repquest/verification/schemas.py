"""Pydantic schemas for peer verification."""

from typing import Optional

from pydantic import BaseModel


class VerificationRequestResponse(BaseModel):
    """Schema for verification request responses."""

    id: str
    requester: str
    approver: str
    challenge_id: str
    part_id: str
    evidence: str
    approved: bool
    created_at: str
    approved_at: Optional[str] = None

    model_config = {"from_attributes": True}
