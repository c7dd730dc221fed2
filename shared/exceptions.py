"""
Base exception classes for the FigrClub session core.

Each module should define its own exceptions that inherit from these bases.
This keeps error handling consistent between the network layer, the
credential store and the session controller.
"""

from typing import Optional, Any


class FigrClubError(Exception):
    """
    Base exception for all FigrClub errors.

    All custom exceptions should inherit from this class.
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}


class ValidationError(FigrClubError):
    """Input validation failed."""

    pass


class AuthenticationError(FigrClubError):
    """Authentication failed (invalid, missing or expired credentials)."""

    pass


class ExternalServiceError(FigrClubError):
    """Error communicating with an external service."""

    def __init__(
        self,
        message: str,
        service: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, details)
        self.service = service
        self.details["service"] = service
