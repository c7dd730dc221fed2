"""Tests for session module exceptions."""

from modules.session.exceptions import InvalidTransitionError, SessionError
from shared.exceptions import FigrClubError


class TestInvalidTransitionError:
    def test_inherits_from_session_error(self):
        error = InvalidTransitionError("unauthenticated", "logging_out")
        assert isinstance(error, SessionError)
        assert isinstance(error, FigrClubError)

    def test_code_message_and_details(self):
        error = InvalidTransitionError("unauthenticated", "logging_out")

        assert error.code == "INVALID_TRANSITION"
        assert error.message == "Invalid session transition: unauthenticated -> logging_out"
        assert error.details == {"current": "unauthenticated", "requested": "logging_out"}
