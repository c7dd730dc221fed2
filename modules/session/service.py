"""
Session controller implementation.

AuthSessionController is the only writer of the session state. Every
mutation happens on the event loop; network work runs in tasks owned by
the controller so that logout and teardown can cancel them, and each
operation checks the session epoch before applying its result.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Optional, TypeVar

from shared.config import Settings, get_settings
from modules.auth.credential_store import token_expires_at
from modules.auth.exceptions import (
    AuthError,
    CredentialStoreError,
    InvalidCredentialsError,
    NetworkUnreachableError,
    OperationCancelledError,
    OperationRejectedError,
    ServerError,
    SessionExpiredError,
)
from modules.auth.interfaces import IAuthAPI, ICredentialStore
from modules.auth.models import (
    AuthResult,
    LoginCredentials,
    RegisterRequest,
    RegistrationFields,
    SessionToken,
    User,
)
from modules.auth.validation import LoginForm, RegistrationForm

from .exceptions import InvalidTransitionError
from .interfaces import SessionObserver
from .models import SessionState, SessionStatus, can_transition

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Errors meaning the server no longer accepts the session
_REJECTED_SESSION = (SessionExpiredError, InvalidCredentialsError)
# Errors that say nothing about the session itself
_TRANSIENT = (NetworkUnreachableError, ServerError)


class AuthSessionController:
    """
    Single source of truth for the authentication state.

    Collaborators are injected: the auth API, the persisted-credential
    store and the settings. Screens observe the controller through
    subscribe() instead of keeping their own auth flags.
    """

    def __init__(
        self,
        api: IAuthAPI,
        store: ICredentialStore,
        settings: Optional[Settings] = None,
    ):
        self._api = api
        self._store = store
        self._settings = settings or get_settings()

        self._state = SessionState.loading()
        self._observers: list[SessionObserver] = []

        # Bumped by logout and forced sign-outs; results of operations
        # started under an older epoch are discarded.
        self._epoch = 0
        self._operation: Optional[asyncio.Task] = None
        self._background: set[asyncio.Task] = set()
        self._store_lock = asyncio.Lock()
        self._closed = False

    # ------------------------------------------------------------------
    # State access and observation
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def user(self) -> Optional[User]:
        return self._state.user

    @property
    def is_authenticated(self) -> bool:
        return self._state.is_authenticated

    @property
    def is_busy(self) -> bool:
        """Whether a login, registration, session check or logout is running."""
        if self._operation is not None and not self._operation.done():
            return True
        return self._state.status in (SessionStatus.LOADING, SessionStatus.LOGGING_OUT)

    def subscribe(
        self,
        observer: SessionObserver,
        replay: bool = True,
    ) -> Callable[[], None]:
        """
        Register an observer for state changes.

        Args:
            observer: Callable receiving every new SessionState in order
            replay: Deliver the current state to the observer immediately

        Returns:
            Callable that removes the observer
        """
        self._observers.append(observer)
        if replay:
            self._deliver(observer, self._state)
        return lambda: self.unsubscribe(observer)

    def unsubscribe(self, observer: SessionObserver) -> None:
        """Remove an observer. Unknown observers are ignored."""
        if observer in self._observers:
            self._observers.remove(observer)

    def _deliver(self, observer: SessionObserver, state: SessionState) -> None:
        try:
            observer(state)
        except Exception:
            # One broken screen must not hide transitions from the others
            logger.warning(f"Session observer {observer!r} failed", exc_info=True)

    def _transition(self, new_state: SessionState) -> None:
        current = self._state.status
        if not can_transition(current, new_state.status):
            raise InvalidTransitionError(current.value, new_state.status.value)

        self._state = new_state
        logger.debug(f"Session {current.value} -> {new_state.status.value}")
        for observer in list(self._observers):
            self._deliver(observer, new_state)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """
        Schedule the initial session check and the periodic refresh loop.

        Must be called from the running event loop. The tasks belong to the
        controller and are cancelled by close().
        """
        if self._background:
            return
        self._spawn(self.check_initial_session(), "session-initial-check")
        self._spawn(self._refresh_loop(), "session-refresh-loop")

    async def close(self) -> None:
        """Cancel every task owned by the controller."""
        self._closed = True
        self._invalidate_operations()
        tasks = list(self._background)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def __aenter__(self) -> "AuthSessionController":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _spawn(self, coro: Awaitable[None], name: str) -> asyncio.Task:
        task = asyncio.create_task(coro, name=name)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    async def _refresh_loop(self) -> None:
        interval = self._settings.session_refresh_interval
        while True:
            await asyncio.sleep(interval)
            try:
                await self.refresh_if_needed()
            except Exception:
                logger.exception("Session validity check crashed, retrying next round")

    # ------------------------------------------------------------------
    # Startup session check
    # ------------------------------------------------------------------

    async def check_initial_session(self) -> None:
        """
        Resolve the startup LOADING state from the persisted credentials.

        Ends in AUTHENTICATED when the stored session is still accepted and
        in UNAUTHENTICATED otherwise. Failures and exceeding the
        session_check_timeout degrade silently to UNAUTHENTICATED.
        """
        if self._state.status is not SessionStatus.LOADING:
            logger.debug(f"Initial session check skipped in state {self._state.status.value}")
            return
        await self._resolve_loading(surface_errors=False)

    async def retry(self) -> None:
        """
        Retry the session check after an error (ERROR -> LOADING).

        Transient failures land in ERROR again so the UI keeps offering
        a retry; a rejected or missing session ends in UNAUTHENTICATED.
        """
        if self._state.status is not SessionStatus.ERROR:
            logger.debug(f"Retry ignored in state {self._state.status.value}")
            return
        self._transition(SessionState.loading())
        await self._resolve_loading(surface_errors=True)

    async def dismiss_error(self) -> None:
        """Leave the ERROR state for the authentication flow, dropping stored credentials."""
        if self._state.status is not SessionStatus.ERROR:
            return
        self._epoch += 1
        self._transition(SessionState.unauthenticated())
        await self._clear_store()

    async def _resolve_loading(self, surface_errors: bool) -> None:
        epoch = self._epoch
        timeout = self._settings.session_check_timeout
        user: Optional[User] = None
        failure: Optional[str] = None

        try:
            user = await asyncio.wait_for(self._restore_session(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Session check timed out after {timeout}s")
            failure = "Session check timed out"
        except AuthError as e:
            logger.warning(f"Session check failed: {e.code}")
            failure = e.message
        except CredentialStoreError as e:
            logger.error(f"Session check could not read credentials: {e.message}")
        except Exception:
            logger.exception("Session check failed unexpectedly")
            failure = "Session check failed"

        if self._state.status is not SessionStatus.LOADING:
            return

        if user is not None and epoch == self._epoch:
            self._transition(SessionState.authenticated(user))
            logger.info(f"Restored session for user {user.id}")
        elif failure is not None and surface_errors:
            self._transition(SessionState.error(failure))
        else:
            self._transition(SessionState.unauthenticated())
            logger.info("No valid session found")

    async def _restore_session(self) -> Optional[User]:
        token = await self._load_store()
        if token is None:
            return None

        try:
            return await self._api.get_current_user(token)
        except _REJECTED_SESSION:
            logger.info("Stored session rejected, attempting token refresh")

        refreshed = await self._try_refresh(token)
        if refreshed is None:
            await self._clear_store()
            return None

        try:
            user = await self._api.get_current_user(refreshed)
        except _REJECTED_SESSION:
            await self._clear_store()
            return None
        await self._save_store(refreshed)
        return user

    # ------------------------------------------------------------------
    # Login and registration
    # ------------------------------------------------------------------

    async def login(self, credentials: LoginCredentials) -> AuthResult:
        """
        Sign in with email and password.

        Local validation runs first; an invalid field returns immediately
        without a network call or state change. Server and network failures
        are returned in the AuthResult and leave the state untouched.
        """
        invalid = LoginForm.from_credentials(credentials).first_error()
        if invalid is not None:
            logger.debug(f"Login blocked by local validation of '{invalid.field}'")
            return AuthResult.failed(invalid)

        rejection = self._authentication_rejection(
            "log in",
            (SessionStatus.UNAUTHENTICATED, SessionStatus.EMAIL_VERIFICATION_PENDING),
        )
        if rejection is not None:
            return AuthResult.failed(rejection)

        epoch = self._epoch
        try:
            token, user = await self._run_operation("login", self._authenticate(credentials))
        except AuthError as e:
            logger.info(f"Login failed: {e.code}")
            return AuthResult.failed(e)

        return await self._apply_sign_in("login", epoch, token, user)

    async def register(self, fields: RegistrationFields) -> AuthResult:
        """
        Create an account, then sign in or wait for email verification.

        Validation stops at the first invalid required field. When the
        server reports the email as unverified the session moves to
        EMAIL_VERIFICATION_PENDING; otherwise the new account is signed in
        with the same credentials.
        """
        invalid = RegistrationForm(fields).first_error()
        if invalid is not None:
            logger.debug(f"Registration blocked by local validation of '{invalid.field}'")
            return AuthResult.failed(invalid)

        rejection = self._authentication_rejection(
            "register",
            (SessionStatus.UNAUTHENTICATED,),
        )
        if rejection is not None:
            return AuthResult.failed(rejection)

        epoch = self._epoch
        request = RegisterRequest.from_fields(fields)
        try:
            receipt = await self._run_operation("registration", self._api.register(request))
        except AuthError as e:
            logger.info(f"Registration failed: {e.code}")
            return AuthResult.failed(e)

        if epoch != self._epoch:
            logger.debug("Discarding registration result after logout")
            return AuthResult.failed(OperationCancelledError("registration"))

        if receipt.requires_email_verification:
            self._transition(SessionState.email_verification_pending(receipt.email))
            logger.info(f"Registered user {receipt.user_id}, email verification pending")
            return AuthResult.pending()

        try:
            token, user = await self._run_operation(
                "registration", self._authenticate(fields.credentials())
            )
        except AuthError as e:
            logger.warning(f"Registered user {receipt.user_id} but sign-in failed: {e.code}")
            return AuthResult.failed(e)

        return await self._apply_sign_in("registration", epoch, token, user)

    async def cancel_email_verification(self) -> None:
        """Abandon a pending verification and return to the authentication flow."""
        if self._state.status is SessionStatus.EMAIL_VERIFICATION_PENDING:
            self._invalidate_operations()
            self._transition(SessionState.unauthenticated())

    def _authentication_rejection(
        self,
        operation: str,
        allowed: tuple[SessionStatus, ...],
    ) -> Optional[OperationRejectedError]:
        if self._closed:
            return OperationRejectedError(operation, "session controller is closed")
        if self._operation is not None and not self._operation.done():
            return OperationRejectedError(operation, "another sign-in is in progress")
        if self._state.status not in allowed:
            return OperationRejectedError(operation, f"session is {self._state.status.value}")
        return None

    async def _authenticate(self, credentials: LoginCredentials) -> tuple[SessionToken, User]:
        token = await self._api.login(credentials)
        user = await self._api.get_current_user(token)
        return token, user

    async def _apply_sign_in(
        self,
        operation: str,
        epoch: int,
        token: SessionToken,
        user: User,
    ) -> AuthResult:
        if epoch != self._epoch or self._state.status not in (
            SessionStatus.UNAUTHENTICATED,
            SessionStatus.EMAIL_VERIFICATION_PENDING,
        ):
            logger.debug(f"Discarding stale {operation} result")
            return AuthResult.failed(OperationCancelledError(operation))

        self._transition(SessionState.authenticated(user))
        await self._save_store(token)
        logger.info(f"Signed in user {user.id} via {operation}")
        return AuthResult.ok(user)

    async def _run_operation(self, name: str, coro: Awaitable[T]) -> T:
        """
        Run sign-in network work as a task owned by the controller.

        Raises:
            OperationCancelledError: If logout or close cancelled the task
        """
        task = asyncio.create_task(coro, name=f"session-{name}")
        self._operation = task
        try:
            return await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            raise OperationCancelledError(name) from None
        finally:
            if self._operation is task:
                self._operation = None

    def _invalidate_operations(self) -> None:
        self._epoch += 1
        if self._operation is not None and not self._operation.done():
            logger.debug("Cancelling in-flight sign-in")
            self._operation.cancel()

    # ------------------------------------------------------------------
    # Logout and refresh
    # ------------------------------------------------------------------

    async def logout(self) -> None:
        """
        Sign out: AUTHENTICATED -> LOGGING_OUT -> UNAUTHENTICATED.

        Idempotent. Any in-flight login or registration is cancelled and
        its result discarded. The server call is best effort; local
        credentials are cleared regardless of its outcome.
        """
        self._invalidate_operations()

        status = self._state.status
        if status is SessionStatus.EMAIL_VERIFICATION_PENDING:
            self._transition(SessionState.unauthenticated())
            return
        if status is not SessionStatus.AUTHENTICATED:
            logger.debug(f"Logout ignored in state {status.value}")
            return

        self._transition(SessionState.logging_out())
        try:
            token = await self._load_store()
        except CredentialStoreError as e:
            logger.error(f"Could not read credentials during logout: {e.message}")
            token = None

        if token is not None:
            try:
                await self._api.logout(token)
            except AuthError as e:
                logger.warning(f"Server logout failed ({e.code}), clearing local session anyway")

        await self._clear_store()
        self._transition(SessionState.unauthenticated())
        logger.info("Logout successful")

    async def refresh_if_needed(self) -> None:
        """
        Check that the held session is still valid.

        JWT access tokens close to expiry are refreshed proactively. A
        session the server no longer accepts forces UNAUTHENTICATED so the
        UI reroutes to the authentication flow. Network and server failures
        keep the session; results that arrive after a logout are discarded.
        A changed profile from the server replaces the held user.
        """
        if self._state.status is not SessionStatus.AUTHENTICATED:
            return

        epoch = self._epoch
        try:
            current, token, user = await self._validate_session()
        except _TRANSIENT as e:
            logger.warning(f"Session validity check skipped: {e.code}")
            return
        except AuthError as e:
            if self._is_current(epoch):
                logger.error(f"Session validity check failed: {e.code}")
                self._transition(SessionState.error(e.message))
            return
        except CredentialStoreError as e:
            logger.error(f"Session validity check could not read credentials: {e.message}")
            return

        if not self._is_current(epoch):
            logger.debug("Discarding stale session validity result")
            return

        if token is None:
            logger.warning("Session is no longer valid, signing out")
            self._epoch += 1
            self._transition(SessionState.unauthenticated())
            await self._clear_store()
            return

        if user is not None and user != self._state.user:
            self._transition(SessionState.authenticated(user))
            logger.info(f"Updated profile of user {user.id}")
        if token is not current:
            await self._save_store(token)

    async def _validate_session(
        self,
    ) -> tuple[Optional[SessionToken], Optional[SessionToken], Optional[User]]:
        """
        Return (stored token, token to keep, fetched user).

        The token to keep is the stored one, a refreshed one, or None when
        the session is gone. The user is None unless /users/me answered.
        """
        token = await self._load_store()
        if token is None:
            return None, None, None

        expires_at = token_expires_at(token)
        margin = timedelta(seconds=self._settings.token_refresh_margin)
        if expires_at is not None and expires_at - margin <= datetime.now(timezone.utc):
            logger.debug("Access token close to expiry, refreshing")
            return token, await self._try_refresh(token), None

        try:
            user = await self._api.get_current_user(token)
        except _REJECTED_SESSION:
            return token, await self._try_refresh(token), None
        return token, token, user

    async def _try_refresh(self, token: SessionToken) -> Optional[SessionToken]:
        """Refresh once; None when the server refuses."""
        try:
            return await self._api.refresh_token(token)
        except _REJECTED_SESSION:
            logger.info("Token refresh rejected")
            return None

    def _is_current(self, epoch: int) -> bool:
        return epoch == self._epoch and self._state.status is SessionStatus.AUTHENTICATED

    # ------------------------------------------------------------------
    # Credential store access, serialized
    # ------------------------------------------------------------------

    async def _load_store(self) -> Optional[SessionToken]:
        async with self._store_lock:
            return await self._store.load()

    async def _save_store(self, token: SessionToken) -> None:
        async with self._store_lock:
            try:
                await self._store.save(token)
            except CredentialStoreError as e:
                # The in-memory session stays valid; only restarts lose it
                logger.error(f"Could not persist session token: {e.message}")

    async def _clear_store(self) -> None:
        async with self._store_lock:
            try:
                await self._store.clear()
            except CredentialStoreError as e:
                logger.error(f"Could not clear stored credentials: {e.message}")
