"""SQLAlchemy models for exercise challenges.

Tables:
- challenges: Challenge definitions and their open/closed flag
- challenge_participants: Roster entries keyed by (challenge, user)
"""

from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from ..db.models import Base, generate_uuid, utc_now


class Challenge(Base):
    """Challenge model - stores exercise challenge definitions."""

    __tablename__ = "challenges"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    # Creator is a user or a group, never both
    creator: Mapped[str] = mapped_column(String, nullable=False, index=True)
    creator_type: Mapped[str] = mapped_column(String(10), nullable=False)

    # Exercise definition
    exercise: Mapped[str] = mapped_column(String, nullable=False)
    reps: Mapped[Optional[int]] = mapped_column(Integer)
    sets: Mapped[Optional[int]] = mapped_column(Integer)
    weight: Mapped[Optional[float]] = mapped_column(Float)  # kg
    minutes: Mapped[Optional[float]] = mapped_column(Float)

    # Schedule
    frequency: Mapped[int] = mapped_column(Integer, nullable=False)  # days per week
    duration: Mapped[int] = mapped_column(Integer, nullable=False)  # weeks
    level: Mapped[int] = mapped_column(Integer, nullable=False)

    # Rewards
    points: Mapped[int] = mapped_column(Integer, nullable=False)  # per part
    bonus_points: Mapped[int] = mapped_column(Integer, nullable=False)  # whole challenge

    open: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[str] = mapped_column(String(32), default=utc_now)
    updated_at: Mapped[str] = mapped_column(String(32), default=utc_now, onupdate=utc_now)

    __table_args__ = (
        CheckConstraint("creator_type IN ('User', 'Group')", name="ck_challenge_creator_type"),
        CheckConstraint("level BETWEEN 1 AND 3", name="ck_challenge_level"),
    )

    def __repr__(self) -> str:
        return (
            f"<Challenge(id={self.id}, exercise='{self.exercise}', "
            f"{self.frequency}x{self.duration}, open={self.open})>"
        )

    @property
    def total_parts(self) -> int:
        """Number of parts the schedule is split into."""
        return self.frequency * self.duration


class Participant(Base):
    """Roster entry for one user in one challenge."""

    __tablename__ = "challenge_participants"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    challenge_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("challenges.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user: Mapped[str] = mapped_column(String, nullable=False, index=True)

    accepted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Distinct parts of the challenge this user has completed
    parts_completed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    invited_at: Mapped[str] = mapped_column(String(32), default=utc_now)
    completed_at: Mapped[Optional[str]] = mapped_column(String(32))

    # A user can only appear once per roster
    __table_args__ = (
        UniqueConstraint("challenge_id", "user", name="uq_challenge_participant"),
    )

    def __repr__(self) -> str:
        return (
            f"<Participant(challenge_id={self.challenge_id}, user={self.user}, "
            f"accepted={self.accepted}, completed={self.completed})>"
        )
