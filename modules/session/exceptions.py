"""
Session module exceptions.
"""

from shared.exceptions import FigrClubError


class SessionError(FigrClubError):
    """Base exception for session-related errors."""

    pass


class InvalidTransitionError(SessionError):
    """Raised when a state change is not allowed by the transition table."""

    def __init__(self, current: str, requested: str):
        super().__init__(
            f"Invalid session transition: {current} -> {requested}",
            code="INVALID_TRANSITION",
            details={"current": current, "requested": requested},
        )
