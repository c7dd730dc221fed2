"""
HTTP implementation of the authentication API.

Talks to the FigrClub backend over httpx and translates transport failures
and HTTP status codes into the AuthError taxonomy. Response bodies are
envelopes of the form {"message": ..., "data": ..., "timestamp": ...}.
"""

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from shared.config import Settings, get_settings

from .exceptions import (
    AuthError,
    InvalidCredentialsError,
    NetworkUnreachableError,
    ServerError,
    ServerValidationError,
    SessionExpiredError,
    UnknownAuthError,
)
from .models import (
    LoginCredentials,
    RegisterRequest,
    RegistrationReceipt,
    SessionToken,
    User,
)

logger = logging.getLogger(__name__)


class AuthAPIClient:
    """
    Auth endpoints of the FigrClub REST API.

    Endpoints:
    - POST /auth/login
    - POST /auth/register
    - POST /auth/logout
    - POST /auth/refresh
    - GET  /users/me
    """

    LOGIN_PATH = "/auth/login"
    REGISTER_PATH = "/auth/register"
    LOGOUT_PATH = "/auth/logout"
    REFRESH_PATH = "/auth/refresh"
    CURRENT_USER_PATH = "/users/me"

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the API client.

        Args:
            settings: Settings providing the base URL and timeout.
                      If not provided, uses get_settings().
            client: Optional preconfigured httpx client. When given, the
                    caller keeps ownership and must close it.
        """
        self._settings = settings or get_settings()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self._settings.api_base_url,
            timeout=self._settings.api_timeout,
            headers={"Content-Type": "application/json"},
        )

    async def __aenter__(self) -> "AuthAPIClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying httpx client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def login(self, credentials: LoginCredentials) -> SessionToken:
        data = await self._request(
            "POST",
            self.LOGIN_PATH,
            json={"email": credentials.email.strip().lower(), "password": credentials.password},
            unauthorized=InvalidCredentialsError,
        )
        return self._parse_token(data)

    async def register(self, request: RegisterRequest) -> RegistrationReceipt:
        data = await self._request("POST", self.REGISTER_PATH, json=request.to_payload())
        return self._parse(RegistrationReceipt, data)

    async def logout(self, token: SessionToken) -> None:
        await self._request("POST", self.LOGOUT_PATH, token=token)

    async def refresh_token(self, token: SessionToken) -> SessionToken:
        body = {"refreshToken": token.refresh_token} if token.refresh_token else None
        data = await self._request("POST", self.REFRESH_PATH, json=body, token=token)
        refreshed = self._parse_token(data)
        # Keep the refresh token and owner when the server only rotates the access token
        return SessionToken(
            access_token=refreshed.access_token,
            refresh_token=refreshed.refresh_token or token.refresh_token,
            user_id=refreshed.user_id or token.user_id,
        )

    async def get_current_user(self, token: SessionToken) -> User:
        data = await self._request("GET", self.CURRENT_USER_PATH, token=token)
        # /users/me wraps the user together with its role info
        if isinstance(data, dict) and isinstance(data.get("user"), dict):
            data = data["user"]
        return self._parse(User, data)

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[dict] = None,
        token: Optional[SessionToken] = None,
        unauthorized: type[AuthError] = SessionExpiredError,
    ) -> Any:
        """
        Send a request and return the envelope's data.

        Args:
            method: HTTP method
            path: Endpoint path relative to the API base URL
            json: Optional JSON body
            token: Session token for authenticated endpoints
            unauthorized: AuthError raised on 401/403

        Raises:
            AuthError: Mapped from transport failures and error statuses
        """
        headers = {
            "Accept": "application/json",
            "User-Agent": f"{self._settings.app_name}/{self._settings.app_version}",
        }
        if token is not None:
            headers["Authorization"] = f"Bearer {token.access_token}"

        try:
            response = await self._client.request(method, path, json=json, headers=headers)
        except httpx.TransportError as e:
            logger.warning(f"{method} {path} failed: {type(e).__name__}")
            raise NetworkUnreachableError() from e
        except httpx.HTTPError as e:
            # Undecodable bodies, redirect loops
            logger.warning(f"{method} {path} returned an unusable response: {type(e).__name__}")
            raise UnknownAuthError("Invalid response from server") from e

        self._raise_for_status(response, unauthorized)

        if not response.content:
            return None
        try:
            body = response.json()
        except ValueError as e:
            raise UnknownAuthError("Invalid response from server") from e

        if isinstance(body, dict) and "data" in body:
            return body["data"]
        return body

    def _raise_for_status(
        self,
        response: httpx.Response,
        unauthorized: type[AuthError],
    ) -> None:
        status = response.status_code
        if status < 400:
            return

        message, field = self._error_details(response)
        logger.debug(f"{response.request.method} {response.request.url.path} -> {status}")

        if status in (401, 403):
            raise unauthorized(message) if message else unauthorized()
        if status >= 500:
            raise ServerError(status, message or "Server error")
        raise ServerValidationError(message or "Request rejected by server", field=field)

    @staticmethod
    def _error_details(response: httpx.Response) -> tuple[Optional[str], Optional[str]]:
        """Extract (message, field) from an error body, if it has one."""
        try:
            body = response.json()
        except ValueError:
            return None, None
        if not isinstance(body, dict):
            return None, None
        return body.get("message"), body.get("field")

    @staticmethod
    def _parse_token(data: Any) -> SessionToken:
        try:
            auth_token = data["authToken"]
            return SessionToken(
                access_token=auth_token["token"],
                refresh_token=data.get("refreshToken"),
                user_id=data.get("userId"),
            )
        except (KeyError, TypeError, PydanticValidationError) as e:
            raise UnknownAuthError("Malformed token response") from e

    @staticmethod
    def _parse(model, data: Any):
        try:
            return model.model_validate(data)
        except PydanticValidationError as e:
            raise UnknownAuthError(f"Malformed {model.__name__} response") from e
