"""Challenge service: the public action and query surface.

Every action returns either a success record (``{"challenge": id}``,
``{"verification_request": id}`` or ``{}``) or ``{"error": message}``;
domain exceptions never escape. Queries return a list of zero or more rows
and treat missing entities as empty results.

Multi-step actions (create, delete, leave) run their steps in one session,
so they are applied all-or-nothing.
"""

import logging
from collections.abc import Iterable
from functools import wraps
from typing import Any, Callable, Optional, TypeVar, Union

from sqlalchemy.exc import SQLAlchemyError

from .challenges.manager import ChallengeManager
from .challenges.schemas import ChallengeCreate, ChallengeDetails, CreatorInfo, CreatorType
from .db.sqlite import Database, get_db
from .errors import USERS_NOT_A_LIST, ChallengeError, ChallengeValidationError
from .parts.manager import PartManager
from .verification.manager import VerificationManager
from .verification.schemas import VerificationRequestResponse

logger = logging.getLogger(__name__)

Result = dict[str, Any]
Rows = list[dict[str, Any]]
Number = Union[int, float]

F = TypeVar("F", bound=Callable[..., Any])

STORAGE_ERROR_PREFIX = "Storage error:"


def _storage_error(exc: SQLAlchemyError) -> str:
    return f"{STORAGE_ERROR_PREFIX} {type(exc).__name__}."


def action(func: F) -> F:
    """Turn domain and storage exceptions into ``{"error": ...}`` records."""

    @wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except ChallengeError as e:
            logger.debug("%s rejected: %s", func.__name__, e.message)
            return {"error": e.message}
        except SQLAlchemyError as e:
            logger.exception("%s failed in storage", func.__name__)
            return {"error": _storage_error(e)}

    return wrapper  # type: ignore[return-value]


def query(func: F) -> F:
    """Report storage failures as a single error row instead of raising."""

    @wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except SQLAlchemyError as e:
            logger.exception("%s failed in storage", func.__name__)
            return [{"error": _storage_error(e)}]

    return wrapper  # type: ignore[return-value]


class ChallengeService:
    """Composes the challenge, part and verification managers."""

    def __init__(self, db: Optional[Database] = None):
        """Initialize the service.

        Args:
            db: Database instance
        """
        self.db = db or get_db()
        self.challenges = ChallengeManager(self.db)
        self.parts = PartManager(self.db, self.challenges)
        self.verifications = VerificationManager(self.db, self.parts, self.challenges)

    # ========================================================================
    # Actions
    # ========================================================================

    @action
    def create_challenge(
        self,
        *,
        creator: Optional[str] = None,
        creator_type: Union[CreatorType, str, None] = None,
        level: Optional[Number] = None,
        exercise: Optional[str] = None,
        reps: Optional[Number] = None,
        sets: Optional[Number] = None,
        weight: Optional[Number] = None,
        minutes: Optional[Number] = None,
        frequency: Optional[Number] = None,
        duration: Optional[Number] = None,
    ) -> Result:
        """Create a closed challenge together with all of its parts."""
        data = ChallengeCreate.parse(
            creator=creator,
            creator_type=creator_type,
            level=level,
            exercise=exercise,
            reps=reps,
            sets=sets,
            weight=weight,
            minutes=minutes,
            frequency=frequency,
            duration=duration,
        )
        with self.db.get_session() as session:
            challenge = self.challenges.create_challenge(data, session=session)
            self.parts.schedule_parts(challenge, session=session)
            return {"challenge": challenge.id}

    @action
    def open_challenge(self, *, challenge: str) -> Result:
        self.challenges.set_open(challenge, True)
        return {}

    @action
    def close_challenge(self, *, challenge: str) -> Result:
        self.challenges.set_open(challenge, False)
        return {}

    @action
    def delete_challenge(self, *, challenge: str) -> Result:
        """Delete a challenge with its parts, completions and requests."""
        with self.db.get_session() as session:
            self.challenges.require_challenge(challenge, session=session)
            requests = self.verifications.delete_for_challenge(challenge, session=session)
            parts = self.parts.delete_for_challenge(challenge, session=session)
            self.challenges.delete_challenge(challenge, session=session)
        logger.debug("Cascade removed %d part(s) and %d request(s)", parts, requests)
        return {}

    @action
    def invite_to_challenge(self, *, challenge: str, users: Iterable[str]) -> Result:
        """Add users to the roster. ``users`` is a collection, never one bare id."""
        if isinstance(users, (str, bytes)) or not isinstance(users, Iterable):
            raise ChallengeValidationError(USERS_NOT_A_LIST, field="users")
        users = list(users)
        if not all(isinstance(u, str) and u for u in users):
            raise ChallengeValidationError(USERS_NOT_A_LIST, field="users")
        self.challenges.invite(challenge, users)
        return {}

    @action
    def accept_challenge(self, *, challenge: str, user: str) -> Result:
        self.challenges.accept(challenge, user)
        return {}

    @action
    def leave_challenge(self, *, challenge: str, user: str) -> Result:
        """Drop the user from the roster and from every completer set."""
        with self.db.get_session() as session:
            self.challenges.remove_participant(challenge, user, session=session)
            self.parts.retract_user(challenge, user, session=session)
        return {}

    @action
    def complete_part(self, *, part: str, user: str) -> Result:
        self.parts.complete_part(part, user)
        return {}

    @action
    def create_verification_request(
        self, *, part: str, requester: str, approver: str, evidence: str
    ) -> Result:
        request = self.verifications.create_request(part, requester, approver, evidence)
        return {"verification_request": request.id}

    @action
    def verify(self, *, part: str, requester: str, approver: Optional[str] = None) -> Result:
        """Approve the pending request ``requester`` made for ``part``.

        Pass ``approver`` to have the designated approver checked here
        instead of by the caller.
        """
        self.verifications.verify(part, requester, approver=approver)
        return {}

    # ========================================================================
    # Queries
    # ========================================================================

    @query
    def is_open(self, *, challenge: str) -> Rows:
        found = self.challenges.get_challenge(challenge)
        return [{"result": bool(found and found.open)}]

    @query
    def is_participant(self, *, challenge: str, user: str) -> Rows:
        participant = self.challenges.get_participant(challenge, user)
        return [{"result": bool(participant and participant.accepted)}]

    @query
    def is_invited(self, *, challenge: str, user: str) -> Rows:
        participant = self.challenges.get_participant(challenge, user)
        return [{"result": participant is not None}]

    @query
    def is_completed_challenge(self, *, challenge: str, user: str) -> Rows:
        participant = self.challenges.get_participant(challenge, user)
        return [{"result": bool(participant and participant.completed)}]

    @query
    def is_completed_part(self, *, part: str, user: str) -> Rows:
        return [{"result": self.parts.is_completed_by(part, user)}]

    @query
    def is_user_creator(self, *, challenge: str, user: str) -> Rows:
        found = self.challenges.get_challenge(challenge)
        return [{
            "result": bool(
                found
                and found.creator_type == CreatorType.USER.value
                and found.creator == user
            )
        }]

    @query
    def is_group_creator(self, *, challenge: str, group: str) -> Rows:
        found = self.challenges.get_challenge(challenge)
        return [{
            "result": bool(
                found
                and found.creator_type == CreatorType.GROUP.value
                and found.creator == group
            )
        }]

    @query
    def get_participants(self, *, challenge: str) -> Rows:
        """Users who accepted the challenge."""
        return [
            {"user": p.user}
            for p in self.challenges.list_participants(challenge, accepted=True)
        ]

    @query
    def get_invitees(self, *, challenge: str) -> Rows:
        """Everyone on the roster, accepted or not."""
        return [{"user": p.user} for p in self.challenges.list_participants(challenge)]

    @query
    def get_completers(self, *, challenge: str) -> Rows:
        return [
            {"user": p.user}
            for p in self.challenges.list_participants(challenge, completed=True)
        ]

    @query
    def get_challenge_details(self, *, challenge: str) -> Rows:
        found = self.challenges.get_challenge(challenge)
        if found is None:
            return []
        return [ChallengeDetails.model_validate(found).model_dump()]

    @query
    def get_creator(self, *, challenge: str) -> Rows:
        found = self.challenges.get_challenge(challenge)
        if found is None:
            return []
        return [CreatorInfo.model_validate(found).model_dump(mode="json")]

    @query
    def get_part_points(self, *, part: str) -> Rows:
        """Points for completing one part, taken from its challenge."""
        with self.db.get_session() as session:
            found = self.parts.get_part(part, session=session)
            if found is None:
                return []
            challenge = self.challenges.get_challenge(found.challenge_id, session=session)
            if challenge is None:
                return []
            return [{"points": challenge.points}]

    @query
    def get_challenge_points(self, *, challenge: str) -> Rows:
        found = self.challenges.get_challenge(challenge)
        if found is None:
            return []
        return [{"bonus_points": found.bonus_points}]

    @query
    def get_challenges(self, *, user: str) -> Rows:
        """Challenges the user has accepted."""
        return [{"challenge": c.id} for c in self.challenges.get_challenges_for_user(user)]

    @query
    def get_associated_challenge(self, *, part: str) -> Rows:
        found = self.parts.get_part(part)
        if found is None:
            return []
        return [{"challenge": found.challenge_id}]

    @query
    def get_parts(self, *, challenge: str) -> Rows:
        """Parts of a challenge in week/day order, with their completers."""
        return [p.model_dump() for p in self.parts.list_parts(challenge)]

    @query
    def get_progress(self, *, challenge: str, user: str) -> Rows:
        progress = self.parts.get_progress(challenge, user)
        return [progress.model_dump()] if progress else []

    @query
    def get_verification_requests(
        self,
        *,
        part: Optional[str] = None,
        requester: Optional[str] = None,
        approver: Optional[str] = None,
        challenge: Optional[str] = None,
        pending_only: bool = False,
    ) -> Rows:
        requests = self.verifications.list_requests(
            part_id=part,
            requester=requester,
            approver=approver,
            challenge_id=challenge,
            pending_only=pending_only,
        )
        return [VerificationRequestResponse.model_validate(r).model_dump() for r in requests]
