"""Challenge manager for challenge definitions and rosters."""

import logging
from typing import Iterable, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from ..db.models import utc_now
from ..db.sqlite import Database, get_db
from ..errors import (
    USER_NOT_INVITED,
    USER_NOT_PARTICIPANT,
    ChallengeNotFoundError,
    RosterError,
)
from .models import Challenge, Participant
from .schemas import ChallengeCreate
from .scoring import calculate_bonus_points, calculate_points

logger = logging.getLogger(__name__)


class ChallengeManager:
    """Manages challenge definitions, the open flag and the roster."""

    def __init__(self, db: Optional[Database] = None):
        """Initialize challenge manager.

        Args:
            db: Database instance
        """
        self.db = db or get_db()

    def create_challenge(self, data: ChallengeCreate, session: Optional[Session] = None) -> Challenge:
        """Create a new challenge, closed and with an empty roster.

        Parts are not created here; the caller schedules them in the same
        session so both land in one transaction.

        Args:
            data: Validated challenge creation data
            session: Session to join, or None for a standalone transaction

        Returns:
            Created challenge
        """
        with self.db.use_session(session) as s:
            challenge = Challenge(
                creator=data.creator,
                creator_type=data.creator_type.value,
                exercise=data.exercise,
                reps=data.reps,
                sets=data.sets,
                weight=data.weight,
                minutes=data.minutes,
                frequency=data.frequency,
                duration=data.duration,
                level=data.level,
                points=calculate_points(
                    data.level, data.reps, data.sets, data.weight, data.minutes
                ),
                bonus_points=calculate_bonus_points(data.level, data.frequency, data.duration),
                open=False,
            )
            s.add(challenge)
            s.flush()

            logger.info(
                "Created challenge %s (%s by %s %s)",
                challenge.id,
                challenge.exercise,
                challenge.creator_type,
                challenge.creator,
            )
            return challenge

    def get_challenge(self, challenge_id: str, session: Optional[Session] = None) -> Optional[Challenge]:
        """Get a challenge by ID.

        Args:
            challenge_id: Challenge ID
            session: Session to join

        Returns:
            Challenge or None
        """
        with self.db.use_session(session) as s:
            return s.get(Challenge, challenge_id)

    def require_challenge(
        self,
        challenge_id: str,
        session: Optional[Session] = None,
        message: Optional[str] = None,
    ) -> Challenge:
        """Get a challenge by ID or raise.

        Raises:
            ChallengeNotFoundError: if the challenge does not exist
        """
        challenge = self.get_challenge(challenge_id, session=session)
        if challenge is None:
            raise ChallengeNotFoundError(message) if message else ChallengeNotFoundError()
        return challenge

    def set_open(self, challenge_id: str, is_open: bool, session: Optional[Session] = None) -> Challenge:
        """Open or close a challenge. Setting the current value is a no-op.

        Raises:
            ChallengeNotFoundError: if the challenge does not exist
        """
        with self.db.use_session(session) as s:
            challenge = self.require_challenge(challenge_id, session=s)
            if challenge.open != is_open:
                challenge.open = is_open
                s.flush()
                logger.info("Challenge %s is now %s", challenge_id, "open" if is_open else "closed")
            return challenge

    def delete_challenge(self, challenge_id: str, session: Optional[Session] = None) -> None:
        """Delete a challenge and its roster.

        Parts and verification requests belong to other managers; the
        caller removes them in the same session.

        Raises:
            ChallengeNotFoundError: if the challenge does not exist
        """
        with self.db.use_session(session) as s:
            challenge = self.require_challenge(challenge_id, session=s)
            s.execute(delete(Participant).where(Participant.challenge_id == challenge_id))
            s.delete(challenge)
            s.flush()
            logger.info("Deleted challenge %s", challenge_id)

    def list_challenges(
        self,
        creator: Optional[str] = None,
        open_only: bool = False,
        session: Optional[Session] = None,
    ) -> list[Challenge]:
        """List challenges.

        Args:
            creator: Only challenges created by this user or group
            open_only: Only challenges currently open
            session: Session to join

        Returns:
            List of challenges, newest first
        """
        with self.db.use_session(session) as s:
            stmt = select(Challenge)
            if creator:
                stmt = stmt.where(Challenge.creator == creator)
            if open_only:
                stmt = stmt.where(Challenge.open.is_(True))
            stmt = stmt.order_by(Challenge.created_at.desc())
            return list(s.execute(stmt).scalars().all())

    # ========================================================================
    # Roster
    # ========================================================================

    def invite(
        self,
        challenge_id: str,
        users: Iterable[str],
        session: Optional[Session] = None,
    ) -> list[str]:
        """Add users to the roster, skipping anyone already on it.

        Args:
            challenge_id: Challenge ID
            users: User identities to invite
            session: Session to join

        Returns:
            The users that were newly added

        Raises:
            ChallengeNotFoundError: if the challenge does not exist
        """
        with self.db.use_session(session) as s:
            self.require_challenge(challenge_id, session=s)

            existing = set(
                s.execute(
                    select(Participant.user).where(Participant.challenge_id == challenge_id)
                ).scalars()
            )

            added = []
            for user in users:
                if user in existing:
                    continue
                s.add(Participant(challenge_id=challenge_id, user=user))
                existing.add(user)
                added.append(user)

            s.flush()
            if added:
                logger.info("Invited %d user(s) to challenge %s", len(added), challenge_id)
            return added

    def get_participant(
        self, challenge_id: str, user: str, session: Optional[Session] = None
    ) -> Optional[Participant]:
        """Get the roster entry for a user, accepted or not."""
        with self.db.use_session(session) as s:
            stmt = select(Participant).where(
                Participant.challenge_id == challenge_id,
                Participant.user == user,
            )
            return s.execute(stmt).scalar_one_or_none()

    def accept(self, challenge_id: str, user: str, session: Optional[Session] = None) -> Participant:
        """Mark an invited user as accepted.

        Raises:
            ChallengeNotFoundError: if the challenge does not exist
            RosterError: if the user was never invited
        """
        with self.db.use_session(session) as s:
            self.require_challenge(challenge_id, session=s)
            participant = self.get_participant(challenge_id, user, session=s)
            if participant is None:
                raise RosterError(USER_NOT_INVITED)

            if not participant.accepted:
                participant.accepted = True
                s.flush()
                logger.info("User %s accepted challenge %s", user, challenge_id)
            return participant

    def remove_participant(self, challenge_id: str, user: str, session: Optional[Session] = None) -> None:
        """Drop a user's roster entry entirely.

        Raises:
            ChallengeNotFoundError: if the challenge does not exist
            RosterError: if the user is not on the roster
        """
        with self.db.use_session(session) as s:
            self.require_challenge(challenge_id, session=s)
            participant = self.get_participant(challenge_id, user, session=s)
            if participant is None:
                raise RosterError(USER_NOT_PARTICIPANT)

            s.delete(participant)
            s.flush()
            logger.info("User %s left challenge %s", user, challenge_id)

    def list_participants(
        self,
        challenge_id: str,
        accepted: Optional[bool] = None,
        completed: Optional[bool] = None,
        session: Optional[Session] = None,
    ) -> list[Participant]:
        """List roster entries for a challenge.

        Args:
            challenge_id: Challenge ID
            accepted: Filter on the accepted flag
            completed: Filter on the completed flag
            session: Session to join

        Returns:
            Roster entries in invitation order
        """
        with self.db.use_session(session) as s:
            stmt = select(Participant).where(Participant.challenge_id == challenge_id)
            if accepted is not None:
                stmt = stmt.where(Participant.accepted.is_(accepted))
            if completed is not None:
                stmt = stmt.where(Participant.completed.is_(completed))
            stmt = stmt.order_by(Participant.invited_at, Participant.id)
            return list(s.execute(stmt).scalars().all())

    def get_challenges_for_user(self, user: str, session: Optional[Session] = None) -> list[Challenge]:
        """Get every challenge the user has accepted.

        Args:
            user: User identity

        Returns:
            List of challenges
        """
        with self.db.use_session(session) as s:
            stmt = (
                select(Challenge)
                .join(Participant, Challenge.id == Participant.challenge_id)
                .where(Participant.user == user, Participant.accepted.is_(True))
                .order_by(Challenge.created_at)
            )
            return list(s.execute(stmt).scalars().all())

    def record_part_completion(
        self,
        session: Session,
        challenge_id: str,
        user: str,
        total_parts: int,
        counted: bool,
    ) -> bool:
        """Advance a user's progress and flip ``completed`` when done.

        Both statements are single conditional UPDATEs, so two completions
        racing on the last parts cannot both miss the flip.

        Args:
            session: Session of the surrounding completion
            challenge_id: Challenge ID
            user: User identity
            total_parts: Number of parts in the challenge
            counted: Whether this call added a new completion record

        Returns:
            True if this call marked the challenge completed
        """
        where = (Participant.challenge_id == challenge_id, Participant.user == user)

        if counted:
            session.execute(
                update(Participant)
                .where(*where)
                .values(parts_completed=Participant.parts_completed + 1)
            )

        result = session.execute(
            update(Participant)
            .where(
                *where,
                Participant.accepted.is_(True),
                Participant.completed.is_(False),
                Participant.parts_completed >= total_parts,
            )
            .values(completed=True, completed_at=utc_now())
            .execution_options(synchronize_session="fetch")
        )
        flipped = result.rowcount > 0
        if flipped:
            logger.info("User %s completed challenge %s", user, challenge_id)
        return flipped
