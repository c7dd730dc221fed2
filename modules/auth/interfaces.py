"""
Authentication module interfaces.

The session controller depends on these protocols, not on the HTTP client
or a concrete storage backend. This enables testing with fakes and swapping
the credential storage per platform.
"""

from typing import Protocol, Optional, runtime_checkable

from .models import (
    LoginCredentials,
    RegisterRequest,
    RegistrationReceipt,
    SessionToken,
    User,
)


@runtime_checkable
class IAuthAPI(Protocol):
    """
    Interface for the backend authentication endpoints.

    Implementations raise AuthError subclasses on failure; they never
    return partial results.
    """

    async def login(self, credentials: LoginCredentials) -> SessionToken:
        """
        Exchange an email/password pair for a session token.

        Args:
            credentials: Locally validated login credentials

        Returns:
            SessionToken for the authenticated user

        Raises:
            InvalidCredentialsError: If the server rejects the credentials
            NetworkUnreachableError: If the backend cannot be reached
            ServerError: On 5xx responses
        """
        ...

    async def register(self, request: RegisterRequest) -> RegistrationReceipt:
        """
        Create a new account.

        Raises:
            ServerValidationError: If the server rejects a field
        """
        ...

    async def logout(self, token: SessionToken) -> None:
        """Invalidate the session on the server."""
        ...

    async def refresh_token(self, token: SessionToken) -> SessionToken:
        """
        Obtain a fresh access token.

        Raises:
            SessionExpiredError: If the session can no longer be refreshed
        """
        ...

    async def get_current_user(self, token: SessionToken) -> User:
        """
        Fetch the user owning the token.

        Raises:
            SessionExpiredError: If the token is no longer accepted
        """
        ...


@runtime_checkable
class ICredentialStore(Protocol):
    """Secure key-value storage for the session token across restarts."""

    async def load(self) -> Optional[SessionToken]:
        """Return the stored token, or None when nothing is stored."""
        ...

    async def save(self, token: SessionToken) -> None:
        """Persist the token, replacing any previous one."""
        ...

    async def clear(self) -> None:
        """Remove every stored credential."""
        ...
