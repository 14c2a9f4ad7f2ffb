"""SQLAlchemy models for challenge parts.

Tables:
- challenge_parts: One row per (week, day) slot of a challenge
- part_completions: Users who completed a part
"""

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ..db.models import Base, generate_uuid, utc_now


class Part(Base):
    """Part model - one scheduled unit of work within a challenge."""

    __tablename__ = "challenge_parts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    challenge_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("challenges.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    week: Mapped[int] = mapped_column(Integer, nullable=False)  # 1..duration
    day: Mapped[int] = mapped_column(Integer, nullable=False)  # 1..frequency

    # One part per slot
    __table_args__ = (
        UniqueConstraint("challenge_id", "week", "day", name="uq_part_slot"),
    )

    def __repr__(self) -> str:
        return f"<Part(id={self.id}, challenge_id={self.challenge_id}, week={self.week}, day={self.day})>"


class PartCompletion(Base):
    """Completer set entry for a part."""

    __tablename__ = "part_completions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    part_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("challenge_parts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Denormalized so a user's progress can be retracted without a join
    challenge_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("challenges.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user: Mapped[str] = mapped_column(String(200), nullable=False, index=True)

    completed_at: Mapped[str] = mapped_column(String(32), default=utc_now)

    # A user completes a part at most once
    __table_args__ = (
        UniqueConstraint("part_id", "user", name="uq_part_completer"),
    )

    def __repr__(self) -> str:
        return f"<PartCompletion(part_id={self.part_id}, user={self.user})>"
