"""Verification manager for peer approval of completed parts."""

import logging
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from ..challenges.manager import ChallengeManager
from ..db.models import utc_now
from ..db.sqlite import Database, get_db
from ..errors import (
    APPROVER_REQUIRED,
    ASSOCIATED_CHALLENGE_NOT_FOUND,
    EVIDENCE_REQUIRED,
    REQUESTER_IS_APPROVER,
    REQUESTER_REQUIRED,
    WRONG_APPROVER,
    ApproverError,
    ChallengeClosedError,
    ChallengeValidationError,
    PartNotFoundError,
    RequestNotFoundError,
)
from ..parts.manager import PartManager
from .models import VerificationRequest

logger = logging.getLogger(__name__)


class VerificationManager:
    """Manages verification requests and their approval."""

    def __init__(
        self,
        db: Optional[Database] = None,
        parts: Optional[PartManager] = None,
        challenges: Optional[ChallengeManager] = None,
    ):
        """Initialize verification manager.

        Args:
            db: Database instance
            parts: Part manager used to resolve parts
            challenges: Challenge manager used for open checks
        """
        self.db = db or get_db()
        self.challenges = challenges or ChallengeManager(self.db)
        self.parts = parts or PartManager(self.db, self.challenges)

    def _require_open(self, challenge_id: str, session: Session) -> None:
        challenge = self.challenges.require_challenge(
            challenge_id, session=session, message=ASSOCIATED_CHALLENGE_NOT_FOUND
        )
        if not challenge.open:
            raise ChallengeClosedError()

    def create_request(
        self,
        part_id: str,
        requester: str,
        approver: str,
        evidence: str,
        session: Optional[Session] = None,
    ) -> VerificationRequest:
        """Create a pending verification request for a part.

        The requester does not have to be a participant or to have completed
        the part yet.

        Args:
            part_id: Part ID
            requester: User asking for verification
            approver: User asked to approve
            evidence: Reference to the stored evidence

        Returns:
            Created verification request

        Raises:
            PartNotFoundError: if the part does not exist
            ChallengeNotFoundError: if the part's challenge is missing
            ChallengeClosedError: if the challenge is not open
            ApproverError: if requester and approver are the same user
            ChallengeValidationError: if an identity or the evidence is missing
        """
        with self.db.use_session(session) as s:
            part = self.parts.get_part(part_id, session=s)
            if part is None:
                raise PartNotFoundError()

            self._require_open(part.challenge_id, s)

            if requester == approver:
                raise ApproverError(REQUESTER_IS_APPROVER)

            for value, message, field in (
                (requester, REQUESTER_REQUIRED, "requester"),
                (approver, APPROVER_REQUIRED, "approver"),
                (evidence, EVIDENCE_REQUIRED, "evidence"),
            ):
                if not isinstance(value, str) or not value.strip():
                    raise ChallengeValidationError(message, field=field)

            request = VerificationRequest(
                requester=requester,
                approver=approver,
                challenge_id=part.challenge_id,
                part_id=part_id,
                evidence=evidence,
                approved=False,
            )
            s.add(request)
            s.flush()

            logger.info(
                "Verification request %s: %s asks %s to approve part %s",
                request.id,
                requester,
                approver,
                part_id,
            )
            return request

    def find_pending(
        self, part_id: str, requester: str, session: Optional[Session] = None
    ) -> Optional[VerificationRequest]:
        """Find the oldest pending request for a part and requester."""
        with self.db.use_session(session) as s:
            stmt = (
                select(VerificationRequest)
                .where(
                    VerificationRequest.part_id == part_id,
                    VerificationRequest.requester == requester,
                    VerificationRequest.approved.is_(False),
                )
                .order_by(VerificationRequest.created_at, VerificationRequest.id)
                .limit(1)
            )
            return s.execute(stmt).scalar_one_or_none()

    def verify(
        self,
        part_id: str,
        requester: str,
        approver: Optional[str] = None,
        session: Optional[Session] = None,
    ) -> VerificationRequest:
        """Approve the pending request a requester made for a part.

        Without ``approver`` the caller is trusted to have checked who is
        approving. With it, the approver must match the request.

        Args:
            part_id: Part ID
            requester: User who made the request
            approver: User approving, checked when given

        Returns:
            The approved request

        Raises:
            RequestNotFoundError: if no pending request matches
            ApproverError: if ``approver`` is not the designated approver
            ChallengeNotFoundError: if the request's challenge is missing
            ChallengeClosedError: if the challenge is not open
        """
        with self.db.use_session(session) as s:
            request = self.find_pending(part_id, requester, session=s)
            if request is None:
                raise RequestNotFoundError()

            if approver is not None and approver != request.approver:
                raise ApproverError(WRONG_APPROVER)

            self._require_open(request.challenge_id, s)

            request.approved = True
            request.approved_at = utc_now()
            s.flush()

            logger.info("Verification request %s approved by %s", request.id, request.approver)
            return request

    def list_requests(
        self,
        part_id: Optional[str] = None,
        requester: Optional[str] = None,
        approver: Optional[str] = None,
        challenge_id: Optional[str] = None,
        pending_only: bool = False,
        session: Optional[Session] = None,
    ) -> list[VerificationRequest]:
        """List verification requests.

        Args:
            part_id: Filter by part
            requester: Filter by requester
            approver: Filter by approver
            challenge_id: Filter by challenge
            pending_only: Only requests not yet approved

        Returns:
            Matching requests, oldest first
        """
        with self.db.use_session(session) as s:
            stmt = select(VerificationRequest)
            if part_id:
                stmt = stmt.where(VerificationRequest.part_id == part_id)
            if requester:
                stmt = stmt.where(VerificationRequest.requester == requester)
            if approver:
                stmt = stmt.where(VerificationRequest.approver == approver)
            if challenge_id:
                stmt = stmt.where(VerificationRequest.challenge_id == challenge_id)
            if pending_only:
                stmt = stmt.where(VerificationRequest.approved.is_(False))
            stmt = stmt.order_by(VerificationRequest.created_at, VerificationRequest.id)
            return list(s.execute(stmt).scalars().all())

    def delete_for_challenge(self, challenge_id: str, session: Optional[Session] = None) -> int:
        """Delete every verification request of a challenge.

        Returns:
            Number of requests removed
        """
        with self.db.use_session(session) as s:
            result = s.execute(
                delete(VerificationRequest).where(VerificationRequest.challenge_id == challenge_id)
            )
            return result.rowcount or 0
