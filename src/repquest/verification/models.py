"""SQLAlchemy models for peer verification.

Tables:
- verification_requests: Evidence a requester submitted for a part,
  awaiting approval by another user
"""

from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from ..db.models import Base, generate_uuid, utc_now


class VerificationRequest(Base):
    """VerificationRequest model - ties evidence for a part to an approver."""

    __tablename__ = "verification_requests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    requester: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    approver: Mapped[str] = mapped_column(String(200), nullable=False, index=True)

    # Challenge is copied from the part so cascades do not need a join
    challenge_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("challenges.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    part_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("challenge_parts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Opaque reference to externally stored media
    evidence: Mapped[str] = mapped_column(String(500), nullable=False)

    approved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[str] = mapped_column(String(32), default=utc_now)
    approved_at: Mapped[Optional[str]] = mapped_column(String(32))

    __table_args__ = (
        CheckConstraint("requester <> approver", name="ck_verification_distinct_approver"),
    )

    def __repr__(self) -> str:
        return (
            f"<VerificationRequest(id={self.id}, part_id={self.part_id}, "
            f"requester={self.requester}, approved={self.approved})>"
        )
