"""
Session module interfaces.

Screens depend on ISessionController and register SessionObserver
callables; they never write session state themselves.
"""

from typing import Callable, Protocol, runtime_checkable

from modules.auth.models import AuthResult, LoginCredentials, RegistrationFields

from .models import SessionState


@runtime_checkable
class SessionObserver(Protocol):
    """Callable notified with every new SessionState, in transition order."""

    def __call__(self, state: SessionState) -> None:
        ...


@runtime_checkable
class ISessionController(Protocol):
    """
    Interface of the component owning the session state.

    This protocol defines the contract exposed to the UI layer.
    """

    @property
    def state(self) -> SessionState:
        """Current session state."""
        ...

    def subscribe(
        self,
        observer: SessionObserver,
        replay: bool = True,
    ) -> Callable[[], None]:
        """
        Register an observer.

        Args:
            observer: Callable receiving each new state
            replay: Deliver the current state immediately

        Returns:
            Callable that unsubscribes the observer
        """
        ...

    async def check_initial_session(self) -> None:
        """Resolve the startup LOADING state from persisted credentials."""
        ...

    async def login(self, credentials: LoginCredentials) -> AuthResult:
        """Sign in; failures are returned, never raised."""
        ...

    async def register(self, fields: RegistrationFields) -> AuthResult:
        """Create an account and sign in (or await email verification)."""
        ...

    async def logout(self) -> None:
        """Sign out. Idempotent."""
        ...

    async def refresh_if_needed(self) -> None:
        """Check that a held session is still valid."""
        ...
