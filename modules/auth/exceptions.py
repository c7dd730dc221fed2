"""
Authentication module exceptions.

Network-facing failures are AuthError subclasses tagged with an
AuthErrorKind, so the session controller can hand them back to forms as
typed results instead of letting them propagate. Local form validation
failures use FormValidationError and never reach the network.
"""

from enum import Enum
from typing import Optional

from shared.exceptions import (
    AuthenticationError,
    ExternalServiceError,
    ValidationError,
)


class AuthErrorKind(str, Enum):
    """Category of an authentication failure."""

    INVALID_CREDENTIALS = "invalid_credentials"
    VALIDATION_REJECTED = "validation_rejected"
    NETWORK = "network"
    SERVER = "server"
    SESSION_EXPIRED = "session_expired"
    UNKNOWN = "unknown"
    CANCELLED = "cancelled"
    REJECTED = "rejected"


class AuthError(AuthenticationError):
    """Base class for failures of login, registration and session checks."""

    kind: AuthErrorKind = AuthErrorKind.UNKNOWN
    retryable: bool = False

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict] = None,
        field: Optional[str] = None,
    ):
        super().__init__(message, code=code, details=details)
        # Form field the error should be shown next to, if any
        self.field = field


class InvalidCredentialsError(AuthError):
    """Raised when the server rejects an email/password pair."""

    kind = AuthErrorKind.INVALID_CREDENTIALS

    def __init__(self, message: str = "Incorrect email or password"):
        super().__init__(message, code="INVALID_CREDENTIALS", field="password")


class ServerValidationError(AuthError):
    """Raised when the server rejects submitted fields (e.g. email taken)."""

    kind = AuthErrorKind.VALIDATION_REJECTED

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(
            message,
            code="VALIDATION_REJECTED",
            details={"field": field} if field else None,
            field=field,
        )


class NetworkUnreachableError(AuthError):
    """Raised when the backend cannot be reached."""

    kind = AuthErrorKind.NETWORK
    retryable = True

    def __init__(self, message: str = "No internet connection"):
        super().__init__(message, code="NETWORK_UNREACHABLE")


class ServerError(AuthError):
    """Raised on 5xx responses from the backend."""

    kind = AuthErrorKind.SERVER
    retryable = True

    def __init__(self, status_code: int, message: str = "Server error"):
        super().__init__(
            message,
            code="SERVER_ERROR",
            details={"status_code": status_code},
        )
        self.status_code = status_code


class SessionExpiredError(AuthError):
    """Raised when a previously valid session is no longer accepted."""

    kind = AuthErrorKind.SESSION_EXPIRED

    def __init__(self, message: str = "Session has expired"):
        super().__init__(message, code="SESSION_EXPIRED")


class UnknownAuthError(AuthError):
    """Raised when a failure doesn't fit any other category."""

    kind = AuthErrorKind.UNKNOWN

    def __init__(self, message: str = "An unknown authentication error occurred"):
        super().__init__(message, code="UNKNOWN_AUTH_ERROR")


class OperationCancelledError(AuthError):
    """Raised when an in-flight operation is invalidated by a logout."""

    kind = AuthErrorKind.CANCELLED

    def __init__(self, operation: str):
        super().__init__(
            f"{operation} was cancelled",
            code="OPERATION_CANCELLED",
            details={"operation": operation},
        )


class OperationRejectedError(AuthError):
    """Raised when an operation is not allowed in the current session state."""

    kind = AuthErrorKind.REJECTED

    def __init__(self, operation: str, reason: str):
        super().__init__(
            f"Cannot {operation}: {reason}",
            code="OPERATION_REJECTED",
            details={"operation": operation, "reason": reason},
        )


class FormValidationError(ValidationError):
    """Raised when a form field fails local validation."""

    def __init__(self, field: str, reason: str):
        super().__init__(
            reason,
            code="INVALID_FIELD",
            details={"field": field},
        )
        self.field = field
        self.reason = reason


class CredentialStoreError(ExternalServiceError):
    """Raised when the persisted-credential store cannot be read or written."""

    def __init__(self, message: str):
        super().__init__(
            f"Credential store failure: {message}",
            service="credential_store",
            code="CREDENTIAL_STORE_ERROR",
        )
