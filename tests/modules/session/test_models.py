import pytest
from pydantic import ValidationError

from modules.session.models import (
    TRANSITIONS,
    SessionState,
    SessionStatus,
    can_transition,
)
from tests.conftest import make_user


class TestSessionState:
    def test_constructors(self):
        user = make_user()
        assert SessionState.loading().status is SessionStatus.LOADING
        assert SessionState.unauthenticated().status is SessionStatus.UNAUTHENTICATED
        assert SessionState.authenticated(user).user == user
        assert SessionState.logging_out().status is SessionStatus.LOGGING_OUT
        assert SessionState.error("boom").error_message == "boom"
        assert SessionState.email_verification_pending("a@b.com").pending_email == "a@b.com"

    def test_only_authenticated_carries_user(self):
        """A user outside AUTHENTICATED is rejected."""
        with pytest.raises(ValidationError):
            SessionState(status=SessionStatus.UNAUTHENTICATED, user=make_user())
        with pytest.raises(ValidationError):
            SessionState(status=SessionStatus.AUTHENTICATED)

    def test_only_error_carries_message(self):
        with pytest.raises(ValidationError):
            SessionState(status=SessionStatus.ERROR)
        with pytest.raises(ValidationError):
            SessionState(status=SessionStatus.LOADING, error_message="x")

    def test_pending_requires_email(self):
        with pytest.raises(ValidationError):
            SessionState(status=SessionStatus.EMAIL_VERIFICATION_PENDING)

    def test_state_is_immutable(self):
        state = SessionState.unauthenticated()
        with pytest.raises(ValidationError):
            state.status = SessionStatus.AUTHENTICATED

    def test_is_authenticated(self):
        assert SessionState.authenticated(make_user()).is_authenticated is True
        assert SessionState.loading().is_authenticated is False


class TestTransitions:
    def test_every_status_has_an_entry(self):
        assert set(TRANSITIONS) == set(SessionStatus)

    @pytest.mark.parametrize(
        "current, target",
        [
            (SessionStatus.LOADING, SessionStatus.AUTHENTICATED),
            (SessionStatus.LOADING, SessionStatus.UNAUTHENTICATED),
            (SessionStatus.LOADING, SessionStatus.ERROR),
            (SessionStatus.UNAUTHENTICATED, SessionStatus.AUTHENTICATED),
            (SessionStatus.UNAUTHENTICATED, SessionStatus.EMAIL_VERIFICATION_PENDING),
            (SessionStatus.EMAIL_VERIFICATION_PENDING, SessionStatus.AUTHENTICATED),
            (SessionStatus.AUTHENTICATED, SessionStatus.AUTHENTICATED),
            (SessionStatus.AUTHENTICATED, SessionStatus.LOGGING_OUT),
            (SessionStatus.AUTHENTICATED, SessionStatus.UNAUTHENTICATED),
            (SessionStatus.AUTHENTICATED, SessionStatus.ERROR),
            (SessionStatus.LOGGING_OUT, SessionStatus.UNAUTHENTICATED),
            (SessionStatus.ERROR, SessionStatus.LOADING),
            (SessionStatus.ERROR, SessionStatus.UNAUTHENTICATED),
        ],
    )
    def test_allowed(self, current, target):
        assert can_transition(current, target)

    @pytest.mark.parametrize(
        "current, target",
        [
            (SessionStatus.UNAUTHENTICATED, SessionStatus.LOGGING_OUT),
            (SessionStatus.UNAUTHENTICATED, SessionStatus.ERROR),
            (SessionStatus.LOGGING_OUT, SessionStatus.AUTHENTICATED),
            (SessionStatus.ERROR, SessionStatus.AUTHENTICATED),
            (SessionStatus.UNAUTHENTICATED, SessionStatus.UNAUTHENTICATED),
            (SessionStatus.AUTHENTICATED, SessionStatus.LOADING),
        ],
    )
    def test_forbidden(self, current, target):
        assert not can_transition(current, target)
