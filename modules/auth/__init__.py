"""
Authentication module.

Handles the auth network boundary, persisted credentials and form
validation shared by login and registration.

Public API:
- IAuthAPI / ICredentialStore: Interfaces the session controller depends on
- AuthAPIClient: httpx implementation of IAuthAPI
- InMemoryCredentialStore / FileCredentialStore: ICredentialStore backends
- User, SessionToken, LoginCredentials, RegistrationFields: Models
- ValidationResult, LoginForm, RegistrationForm: Client-side validation
- Auth exceptions: InvalidCredentialsError, NetworkUnreachableError, etc.
"""

from .interfaces import IAuthAPI, ICredentialStore
from .models import (
    AuthResult,
    LoginCredentials,
    RegisterRequest,
    RegistrationFields,
    RegistrationReceipt,
    SessionToken,
    User,
)
from .exceptions import (
    AuthError,
    AuthErrorKind,
    InvalidCredentialsError,
    ServerValidationError,
    NetworkUnreachableError,
    ServerError,
    SessionExpiredError,
    UnknownAuthError,
    OperationCancelledError,
    OperationRejectedError,
    FormValidationError,
    CredentialStoreError,
)
from .validation import (
    ValidationResult,
    LoginForm,
    RegistrationForm,
    PasswordStrength,
    password_strength,
)
from .api_client import AuthAPIClient
from .credential_store import (
    InMemoryCredentialStore,
    FileCredentialStore,
    token_expires_at,
)

__all__ = [
    # Interfaces
    "IAuthAPI",
    "ICredentialStore",
    # Models
    "AuthResult",
    "LoginCredentials",
    "RegisterRequest",
    "RegistrationFields",
    "RegistrationReceipt",
    "SessionToken",
    "User",
    # Exceptions
    "AuthError",
    "AuthErrorKind",
    "InvalidCredentialsError",
    "ServerValidationError",
    "NetworkUnreachableError",
    "ServerError",
    "SessionExpiredError",
    "UnknownAuthError",
    "OperationCancelledError",
    "OperationRejectedError",
    "FormValidationError",
    "CredentialStoreError",
    # Validation
    "ValidationResult",
    "LoginForm",
    "RegistrationForm",
    "PasswordStrength",
    "password_strength",
    # Implementations
    "AuthAPIClient",
    "InMemoryCredentialStore",
    "FileCredentialStore",
    "token_expires_at",
]
