"""
Session module data models.

SessionState is the single process-wide view of whether the user is signed
in. It is immutable: every transition produces a new instance, so
observers always see a consistent snapshot.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from modules.auth.models import User


class SessionStatus(str, Enum):
    """Authentication status of the app."""

    LOADING = "loading"
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    EMAIL_VERIFICATION_PENDING = "email_verification_pending"
    LOGGING_OUT = "logging_out"
    ERROR = "error"


# Allowed transitions out of each status
TRANSITIONS: dict[SessionStatus, frozenset[SessionStatus]] = {
    SessionStatus.LOADING: frozenset({
        SessionStatus.AUTHENTICATED,
        SessionStatus.UNAUTHENTICATED,
        SessionStatus.ERROR,
    }),
    SessionStatus.UNAUTHENTICATED: frozenset({
        SessionStatus.AUTHENTICATED,
        SessionStatus.EMAIL_VERIFICATION_PENDING,
    }),
    # AUTHENTICATED -> AUTHENTICATED publishes a refreshed profile
    SessionStatus.AUTHENTICATED: frozenset({
        SessionStatus.AUTHENTICATED,
        SessionStatus.LOGGING_OUT,
        SessionStatus.UNAUTHENTICATED,
        SessionStatus.ERROR,
    }),
    SessionStatus.EMAIL_VERIFICATION_PENDING: frozenset({
        SessionStatus.AUTHENTICATED,
        SessionStatus.UNAUTHENTICATED,
    }),
    SessionStatus.LOGGING_OUT: frozenset({
        SessionStatus.UNAUTHENTICATED,
    }),
    SessionStatus.ERROR: frozenset({
        SessionStatus.LOADING,
        SessionStatus.UNAUTHENTICATED,
    }),
}


def can_transition(current: SessionStatus, target: SessionStatus) -> bool:
    """Check whether the transition table allows current -> target."""
    return target in TRANSITIONS[current]


class SessionState(BaseModel):
    """
    Current authentication state.

    Only AUTHENTICATED carries a user, only ERROR carries an error
    message and only EMAIL_VERIFICATION_PENDING carries the pending email.
    """

    status: SessionStatus = Field(..., description="Active state")
    user: Optional[User] = Field(None, description="Signed-in user")
    error_message: Optional[str] = Field(None, description="Last failure")
    pending_email: Optional[str] = Field(None, description="Email awaiting verification")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_payload(self) -> "SessionState":
        is_authenticated = self.status is SessionStatus.AUTHENTICATED
        if is_authenticated != (self.user is not None):
            raise ValueError("Only the authenticated state carries a user")
        if (self.status is SessionStatus.ERROR) != (self.error_message is not None):
            raise ValueError("Only the error state carries an error message")
        is_pending = self.status is SessionStatus.EMAIL_VERIFICATION_PENDING
        if is_pending != (self.pending_email is not None):
            raise ValueError("Only the verification state carries a pending email")
        return self

    @classmethod
    def loading(cls) -> "SessionState":
        return cls(status=SessionStatus.LOADING)

    @classmethod
    def unauthenticated(cls) -> "SessionState":
        return cls(status=SessionStatus.UNAUTHENTICATED)

    @classmethod
    def authenticated(cls, user: User) -> "SessionState":
        return cls(status=SessionStatus.AUTHENTICATED, user=user)

    @classmethod
    def email_verification_pending(cls, email: str) -> "SessionState":
        return cls(status=SessionStatus.EMAIL_VERIFICATION_PENDING, pending_email=email)

    @classmethod
    def logging_out(cls) -> "SessionState":
        return cls(status=SessionStatus.LOGGING_OUT)

    @classmethod
    def error(cls, message: str) -> "SessionState":
        return cls(status=SessionStatus.ERROR, error_message=message)

    @property
    def is_authenticated(self) -> bool:
        return self.status is SessionStatus.AUTHENTICATED
