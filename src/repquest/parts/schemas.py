"""Pydantic schemas for challenge parts."""

from pydantic import BaseModel, Field


class PartResponse(BaseModel):
    """Schema for part responses."""

    id: str
    challenge_id: str
    week: int
    day: int
    completers: list[str] = Field(default_factory=list)


class ParticipantProgress(BaseModel):
    """Progress of one roster entry through a challenge."""

    challenge_id: str
    user: str
    accepted: bool
    completed: bool
    parts_completed: int
    total_parts: int
    percent: float
    remaining: int
