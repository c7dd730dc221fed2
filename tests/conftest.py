"""
Shared test fixtures and utilities.

This module provides fakes for the session controller's collaborators:
an auth API whose calls can be held pending and a credential store that
records every call.
"""

import asyncio
from datetime import datetime, timezone, timedelta
from typing import Optional

import jwt
import pytest

from shared.config import Settings, get_settings
from modules.auth.exceptions import AuthError
from modules.auth.models import (
    LoginCredentials,
    RegisterRequest,
    RegistrationFields,
    RegistrationReceipt,
    SessionToken,
    User,
)


TEST_JWT_SECRET = "test-secret-key-for-testing-only"


def create_test_token(
    user_id: int = 42,
    expires_in: timedelta = timedelta(hours=1),
) -> str:
    """
    Create a JWT access token for tests.

    Args:
        user_id: User ID stored in the `sub` claim
        expires_in: Lifetime of the token (negative for an expired token)

    Returns:
        JWT token string
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "iat": int(now.timestamp()),
        "exp": int((now + expires_in).timestamp()),
    }
    return jwt.encode(payload, TEST_JWT_SECRET, algorithm="HS256")


def make_user(user_id: int = 42, **overrides) -> User:
    data = {
        "id": user_id,
        "email": f"user{user_id}@example.com",
        "displayName": f"collector{user_id}",
        "firstName": "Ana",
        "lastName": "García",
        "emailVerified": True,
        "hasProfileImage": True,
        "followersCount": 10,
        "followingCount": 3,
        "postsCount": 7,
    }
    data.update(overrides)
    return User.model_validate(data)


class FakeAuthAPI:
    """
    In-memory IAuthAPI.

    Configure `*_error` attributes to make a call fail, and clear the
    matching gate (`login_gate`, `register_gate`, `user_gate`) to hold a call pending
    until the test sets it.
    """

    def __init__(self, user: Optional[User] = None, token: Optional[SessionToken] = None):
        self.user = user or make_user()
        self.token = token or SessionToken(access_token="access-1", refresh_token="refresh-1", user_id=self.user.id)
        self.refreshed_token = SessionToken(access_token="access-2", refresh_token="refresh-2", user_id=self.user.id)
        self.receipt = RegistrationReceipt(
            user_id=self.user.id,
            email=self.user.email,
            full_name="Ana García",
            email_verified=True,
            email_sent=False,
        )

        self.login_error: Optional[AuthError] = None
        self.register_error: Optional[AuthError] = None
        self.logout_error: Optional[AuthError] = None
        self.refresh_error: Optional[AuthError] = None
        # Errors raised by get_current_user, consumed in order
        self.user_errors: list[Exception] = []

        self.login_gate = asyncio.Event()
        self.register_gate = asyncio.Event()
        self.user_gate = asyncio.Event()
        self.login_gate.set()
        self.register_gate.set()
        self.user_gate.set()

        self.calls: list[str] = []
        self.login_credentials: list[LoginCredentials] = []
        self.register_requests: list[RegisterRequest] = []
        self.user_tokens: list[SessionToken] = []

    async def login(self, credentials: LoginCredentials) -> SessionToken:
        self.calls.append("login")
        self.login_credentials.append(credentials)
        await self.login_gate.wait()
        if self.login_error:
            raise self.login_error
        return self.token

    async def register(self, request: RegisterRequest) -> RegistrationReceipt:
        self.calls.append("register")
        self.register_requests.append(request)
        await self.register_gate.wait()
        if self.register_error:
            raise self.register_error
        return self.receipt

    async def logout(self, token: SessionToken) -> None:
        self.calls.append("logout")
        if self.logout_error:
            raise self.logout_error

    async def refresh_token(self, token: SessionToken) -> SessionToken:
        self.calls.append("refresh_token")
        if self.refresh_error:
            raise self.refresh_error
        return self.refreshed_token

    async def get_current_user(self, token: SessionToken) -> User:
        self.calls.append("get_current_user")
        self.user_tokens.append(token)
        await self.user_gate.wait()
        if self.user_errors:
            raise self.user_errors.pop(0)
        return self.user


class RecordingCredentialStore:
    """ICredentialStore that records load/save/clear calls."""

    def __init__(self, token: Optional[SessionToken] = None):
        self.token = token
        self.saved: list[SessionToken] = []
        self.load_count = 0
        self.clear_count = 0

    async def load(self) -> Optional[SessionToken]:
        self.load_count += 1
        return self.token

    async def save(self, token: SessionToken) -> None:
        self.saved.append(token)
        self.token = token

    async def clear(self) -> None:
        self.clear_count += 1
        self.token = None


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Reset the cached settings before and after each test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    """Settings with short timeouts for tests."""
    return Settings(
        _env_file=None,
        session_check_timeout=0.2,
        session_refresh_interval=0.05,
        token_refresh_margin=60,
    )


@pytest.fixture
def user() -> User:
    return make_user()


@pytest.fixture
def fake_api(user) -> FakeAuthAPI:
    return FakeAuthAPI(user=user)


@pytest.fixture
def store() -> RecordingCredentialStore:
    return RecordingCredentialStore()


@pytest.fixture
def valid_registration() -> RegistrationFields:
    return RegistrationFields(
        first_name="Ana",
        last_name="García",
        email="Ana@Example.com",
        username="ana_collects",
        password="Figures#2024",
        confirm_password="Figures#2024",
        accepted_terms=True,
        accepted_privacy=True,
        accepted_marketing=False,
    )
