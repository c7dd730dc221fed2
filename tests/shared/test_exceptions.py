"""Tests for shared/exceptions.py."""

from shared.exceptions import (
    FigrClubError,
    ValidationError,
    AuthenticationError,
    ExternalServiceError,
)


class TestFigrClubError:
    def test_message_and_default_code(self):
        """Code should default to the class name."""
        error = FigrClubError("Something went wrong")
        assert str(error) == "Something went wrong"
        assert error.message == "Something went wrong"
        assert error.code == "FigrClubError"
        assert error.details == {}

    def test_custom_code_and_details(self):
        error = FigrClubError("Bad", code="BAD", details={"field": "email"})
        assert error.code == "BAD"
        assert error.details == {"field": "email"}


class TestSubclasses:
    def test_hierarchy(self):
        for cls in (ValidationError, AuthenticationError):
            assert isinstance(cls("x"), FigrClubError)

    def test_subclass_code_defaults_to_own_name(self):
        assert AuthenticationError("x").code == "AuthenticationError"

    def test_external_service_error_records_service(self):
        """ExternalServiceError should put the service in its details."""
        error = ExternalServiceError("down", service="figrclub-api")
        assert error.service == "figrclub-api"
        assert error.details["service"] == "figrclub-api"
