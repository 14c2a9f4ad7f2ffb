"""Domain errors raised by the challenge engine.

Managers raise these; ``ChallengeService`` turns them into ``{"error": ...}``
records. The message text is part of the public contract, so every message
lives here as a constant.
"""

CHALLENGE_NOT_FOUND = "Challenge not found."
ASSOCIATED_CHALLENGE_NOT_FOUND = "Associated challenge not found."
PART_NOT_FOUND = "Part not found."
CHALLENGE_NOT_OPEN = "Challenge is not open."
USER_NOT_INVITED = "User is not invited to this challenge."
USER_NOT_PARTICIPANT = "User is not a participant in this challenge."
USER_NOT_ACCEPTED = "User is not an accepted participant in this challenge."
REQUESTER_IS_APPROVER = "Requester must be distinct from Approver."
PENDING_REQUEST_NOT_FOUND = (
    "Pending verification request not found for this part and requester."
)
WRONG_APPROVER = "Only the designated approver can verify this request."
USERS_NOT_A_LIST = "Users must be a list of user identities."
REQUESTER_REQUIRED = "Requester must be provided."
APPROVER_REQUIRED = "Approver must be provided."
EVIDENCE_REQUIRED = "Evidence must be provided."


class ChallengeError(Exception):
    """Base exception for challenge business logic errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ChallengeError):
    """A referenced challenge, part or request does not exist."""

    pass


class ChallengeNotFoundError(NotFoundError):
    """Raised when a challenge id does not resolve."""

    def __init__(self, message: str = CHALLENGE_NOT_FOUND):
        super().__init__(message)


class PartNotFoundError(NotFoundError):
    """Raised when a part id does not resolve."""

    def __init__(self, message: str = PART_NOT_FOUND):
        super().__init__(message)


class RequestNotFoundError(NotFoundError):
    """Raised when no pending verification request matches."""

    def __init__(self, message: str = PENDING_REQUEST_NOT_FOUND):
        super().__init__(message)


class StateError(ChallengeError):
    """The action is valid but the current state does not allow it."""

    pass


class ChallengeClosedError(StateError):
    """Raised when an action needs an open challenge."""

    def __init__(self, message: str = CHALLENGE_NOT_OPEN):
        super().__init__(message)


class RosterError(StateError):
    """Raised when the user's roster entry does not permit the action."""

    pass


class ApproverError(StateError):
    """Raised for requester/approver conflicts."""

    pass


class ChallengeValidationError(ChallengeError):
    """Raised when challenge creation input fails validation."""

    def __init__(self, message: str, field: str = ""):
        super().__init__(message)
        self.field = field
