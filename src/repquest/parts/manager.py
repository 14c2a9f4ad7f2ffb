"""Part manager for scheduling and completing challenge parts."""

import logging
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from ..challenges.manager import ChallengeManager
from ..challenges.models import Challenge
from ..db.sqlite import Database, get_db
from ..errors import (
    ASSOCIATED_CHALLENGE_NOT_FOUND,
    USER_NOT_ACCEPTED,
    ChallengeClosedError,
    PartNotFoundError,
    RosterError,
)
from .models import Part, PartCompletion
from .schemas import ParticipantProgress, PartResponse

logger = logging.getLogger(__name__)


class PartManager:
    """Manages the week/day parts of challenges and who completed them."""

    def __init__(
        self,
        db: Optional[Database] = None,
        challenges: Optional[ChallengeManager] = None,
    ):
        """Initialize part manager.

        Args:
            db: Database instance
            challenges: Challenge manager used for open/roster checks
        """
        self.db = db or get_db()
        self.challenges = challenges or ChallengeManager(self.db)

    def schedule_parts(self, challenge: Challenge, session: Optional[Session] = None) -> list[Part]:
        """Create one cold part per (week, day) slot of a challenge.

        Args:
            challenge: Freshly created challenge
            session: Session the challenge was created in

        Returns:
            Created parts, ``frequency * duration`` of them
        """
        with self.db.use_session(session) as s:
            parts = [
                Part(challenge_id=challenge.id, week=week, day=day)
                for week in range(1, challenge.duration + 1)
                for day in range(1, challenge.frequency + 1)
            ]
            s.add_all(parts)
            s.flush()
            logger.debug("Scheduled %d parts for challenge %s", len(parts), challenge.id)
            return parts

    def get_part(self, part_id: str, session: Optional[Session] = None) -> Optional[Part]:
        """Get a part by ID.

        Args:
            part_id: Part ID

        Returns:
            Part or None
        """
        with self.db.use_session(session) as s:
            return s.get(Part, part_id)

    def list_parts(self, challenge_id: str, session: Optional[Session] = None) -> list[PartResponse]:
        """List a challenge's parts in schedule order with their completers.

        Args:
            challenge_id: Challenge ID

        Returns:
            Parts ordered by week then day; empty for unknown challenges
        """
        with self.db.use_session(session) as s:
            parts = s.execute(
                select(Part)
                .where(Part.challenge_id == challenge_id)
                .order_by(Part.week, Part.day)
            ).scalars().all()

            completers: dict[str, list[str]] = {}
            rows = s.execute(
                select(PartCompletion.part_id, PartCompletion.user)
                .where(PartCompletion.challenge_id == challenge_id)
                .order_by(PartCompletion.completed_at)
            ).all()
            for part_id, user in rows:
                completers.setdefault(part_id, []).append(user)

            return [
                PartResponse(
                    id=p.id,
                    challenge_id=p.challenge_id,
                    week=p.week,
                    day=p.day,
                    completers=completers.get(p.id, []),
                )
                for p in parts
            ]

    def count_parts(self, challenge_id: str, session: Optional[Session] = None) -> int:
        """Count the parts belonging to a challenge."""
        with self.db.use_session(session) as s:
            return s.execute(
                select(func.count()).select_from(Part).where(Part.challenge_id == challenge_id)
            ).scalar() or 0

    def is_completed_by(self, part_id: str, user: str, session: Optional[Session] = None) -> bool:
        """Check whether a user is in a part's completer set."""
        with self.db.use_session(session) as s:
            stmt = select(PartCompletion.id).where(
                PartCompletion.part_id == part_id,
                PartCompletion.user == user,
            )
            return s.execute(stmt).first() is not None

    def complete_part(self, part_id: str, user: str, session: Optional[Session] = None) -> bool:
        """Record that a user completed a part.

        Adding the same user twice has no further effect. After the insert
        the user's roster entry is marked completed once every part of the
        challenge has been completed.

        Args:
            part_id: Part ID
            user: User identity

        Returns:
            True if this call completed the whole challenge for the user

        Raises:
            PartNotFoundError: if the part does not exist
            ChallengeNotFoundError: if the part's challenge is missing
            ChallengeClosedError: if the challenge is not open
            RosterError: if the user is not an accepted participant
        """
        with self.db.use_session(session) as s:
            part = self.get_part(part_id, session=s)
            if part is None:
                raise PartNotFoundError()

            challenge = self.challenges.require_challenge(
                part.challenge_id, session=s, message=ASSOCIATED_CHALLENGE_NOT_FOUND
            )
            if not challenge.open:
                raise ChallengeClosedError()

            participant = self.challenges.get_participant(challenge.id, user, session=s)
            if participant is None or not participant.accepted:
                raise RosterError(USER_NOT_ACCEPTED)

            # Set-if-absent, so concurrent completions count a part once
            result = s.connection().execute(
                sqlite_insert(PartCompletion)
                .values(part_id=part_id, challenge_id=challenge.id, user=user)
                .on_conflict_do_nothing(index_elements=["part_id", "user"])
            )
            counted = result.rowcount > 0

            if counted:
                logger.info("User %s completed part %s (week %d, day %d)", user, part_id, part.week, part.day)

            total = self.count_parts(challenge.id, session=s)
            return self.challenges.record_part_completion(
                s, challenge.id, user, total_parts=total, counted=counted
            )

    def retract_user(self, challenge_id: str, user: str, session: Optional[Session] = None) -> int:
        """Remove a user from every completer set of a challenge.

        Returns:
            Number of completion records removed
        """
        with self.db.use_session(session) as s:
            result = s.execute(
                delete(PartCompletion).where(
                    PartCompletion.challenge_id == challenge_id,
                    PartCompletion.user == user,
                )
            )
            return result.rowcount or 0

    def delete_for_challenge(self, challenge_id: str, session: Optional[Session] = None) -> int:
        """Delete all parts and completion records of a challenge.

        Returns:
            Number of parts removed
        """
        with self.db.use_session(session) as s:
            s.execute(delete(PartCompletion).where(PartCompletion.challenge_id == challenge_id))
            result = s.execute(delete(Part).where(Part.challenge_id == challenge_id))
            return result.rowcount or 0

    def get_progress(
        self, challenge_id: str, user: str, session: Optional[Session] = None
    ) -> Optional[ParticipantProgress]:
        """Get a roster entry's progress through a challenge.

        Args:
            challenge_id: Challenge ID
            user: User identity

        Returns:
            ParticipantProgress, or None if the challenge or entry is missing
        """
        with self.db.use_session(session) as s:
            participant = self.challenges.get_participant(challenge_id, user, session=s)
            if participant is None:
                return None

            total = self.count_parts(challenge_id, session=s)
            done = s.execute(
                select(func.count())
                .select_from(PartCompletion)
                .where(
                    PartCompletion.challenge_id == challenge_id,
                    PartCompletion.user == user,
                )
            ).scalar() or 0

            return ParticipantProgress(
                challenge_id=challenge_id,
                user=user,
                accepted=participant.accepted,
                completed=participant.completed,
                parts_completed=done,
                total_parts=total,
                percent=round(done / total * 100, 1) if total else 0.0,
                remaining=max(0, total - done),
            )
