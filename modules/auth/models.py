"""
Authentication module data models.

These models define the data exchanged with the backend auth endpoints and
the transient form input handed to the session controller. Wire models use
camelCase aliases to match the API payloads.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, Field, model_validator
from pydantic.alias_generators import to_camel

from .exceptions import AuthError, FormValidationError


_WIRE_CONFIG = {
    "alias_generator": to_camel,
    "populate_by_name": True,
    "extra": "ignore",
}


class User(BaseModel):
    """
    Identity record of the signed-in user.

    Owned by the session while authenticated and replaced wholesale on
    every re-login, never patched field by field.
    """

    id: int = Field(..., description="Backend user ID")
    # Server-issued, kept as sent
    email: str = Field(..., description="User's email address")
    username: str = Field(default="", description="Public handle")
    display_name: str = Field(default="", description="Display name")
    first_name: str = Field(default="")
    last_name: str = Field(default="")
    full_name: str = Field(default="")
    role: str = Field(default="USER")

    # Verification and profile flags
    email_verified: bool = Field(default=False)
    is_verified: bool = Field(default=False, description="Verified badge")
    is_private: bool = Field(default=False)
    is_pro: bool = Field(default=False)
    has_profile_image: bool = Field(default=False)
    has_cover_image: bool = Field(default=False)

    # Counters
    followers_count: int = Field(default=0, ge=0)
    following_count: int = Field(default=0, ge=0)
    posts_count: int = Field(default=0, ge=0)
    purchases_count: int = Field(default=0, ge=0)

    model_config = {**_WIRE_CONFIG, "frozen": True}

    @model_validator(mode="before")
    @classmethod
    def _username_from_display_name(cls, data: Any) -> Any:
        # The API doesn't always send a username; the display name is the handle.
        if isinstance(data, dict) and not data.get("username"):
            display_name = data.get("displayName") or data.get("display_name")
            if display_name:
                data = {**data, "username": display_name}
        return data


class SessionToken(BaseModel):
    """Tokens persisted across restarts by the credential store."""

    access_token: str = Field(..., min_length=1, repr=False)
    refresh_token: Optional[str] = Field(None, repr=False)
    user_id: Optional[int] = Field(None, description="Owner of the token")

    model_config = {"frozen": True}


class LoginCredentials(BaseModel):
    """Email/password pair submitted by the login form. Never persisted."""

    email: str = ""
    password: str = Field(default="", repr=False)

    model_config = {"frozen": True}


class RegistrationFields(BaseModel):
    """Raw input of the registration form."""

    first_name: str = ""
    last_name: str = ""
    email: str = ""
    username: str = ""
    password: str = Field(default="", repr=False)
    confirm_password: str = Field(default="", repr=False)
    accepted_terms: bool = False
    accepted_privacy: bool = False
    accepted_marketing: bool = False

    model_config = {"frozen": True}

    def credentials(self) -> LoginCredentials:
        """Credentials for the login that follows a successful registration."""
        return LoginCredentials(
            email=self.email.strip().lower(),
            password=self.password,
        )


class LegalDocumentType(str, Enum):
    """Legal documents a new user must accept."""

    TERMS_OF_SERVICE = "TERMS_OF_SERVICE"
    PRIVACY_POLICY = "PRIVACY_POLICY"


class ConsentType(str, Enum):
    """Optional consents collected at registration."""

    MARKETING_EMAILS = "MARKETING_EMAILS"


class LegalAcceptance(BaseModel):
    """Record that a legal document was accepted, with its timestamp."""

    document_type: LegalDocumentType
    accepted_at: datetime

    model_config = _WIRE_CONFIG


class Consent(BaseModel):
    """Granted or refused optional consent."""

    consent_type: ConsentType
    is_granted: bool

    model_config = _WIRE_CONFIG


class RegisterRequest(BaseModel):
    """Body of the registration request."""

    first_name: str
    last_name: str
    email: str
    username: str
    password: str = Field(..., repr=False)
    user_type: str = "REGULAR"
    legal_acceptances: list[LegalAcceptance] = Field(default_factory=list)
    consents: list[Consent] = Field(default_factory=list)

    model_config = _WIRE_CONFIG

    @classmethod
    def from_fields(
        cls,
        fields: RegistrationFields,
        accepted_at: Optional[datetime] = None,
    ) -> "RegisterRequest":
        """
        Build the wire request from validated form input.

        Every accepted legal document is stamped with the same timestamp.

        Args:
            fields: Registration form input (already validated)
            accepted_at: Acceptance timestamp, defaults to now (UTC)

        Returns:
            RegisterRequest ready to serialize
        """
        accepted_at = accepted_at or datetime.now(timezone.utc)

        acceptances = []
        if fields.accepted_terms:
            acceptances.append(
                LegalAcceptance(
                    document_type=LegalDocumentType.TERMS_OF_SERVICE,
                    accepted_at=accepted_at,
                )
            )
        if fields.accepted_privacy:
            acceptances.append(
                LegalAcceptance(
                    document_type=LegalDocumentType.PRIVACY_POLICY,
                    accepted_at=accepted_at,
                )
            )

        return cls(
            first_name=fields.first_name.strip(),
            last_name=fields.last_name.strip(),
            email=fields.email.strip().lower(),
            username=fields.username.strip().lower(),
            password=fields.password,
            legal_acceptances=acceptances,
            consents=[
                Consent(
                    consent_type=ConsentType.MARKETING_EMAILS,
                    is_granted=fields.accepted_marketing,
                )
            ],
        )

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the JSON body expected by the API."""
        return self.model_dump(mode="json", by_alias=True)


class RegistrationReceipt(BaseModel):
    """Server acknowledgement of a registration."""

    user_id: int
    email: str
    full_name: str = ""
    email_verified: bool = False
    email_sent: bool = False

    model_config = {**_WIRE_CONFIG, "frozen": True}

    @property
    def requires_email_verification(self) -> bool:
        """Whether the account must confirm its email before signing in."""
        return not self.email_verified


@dataclass(frozen=True)
class AuthResult:
    """
    Outcome of a login or registration attempt.

    Failures are returned, not raised, so forms can render inline errors
    or a retry banner without tearing down the screen.
    """

    user: Optional[User] = None
    error: Optional[Union[AuthError, FormValidationError]] = None
    field_errors: dict[str, str] = field(default_factory=dict)
    email_verification_pending: bool = False

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def retryable(self) -> bool:
        """Whether the UI should offer a retry affordance."""
        return isinstance(self.error, AuthError) and self.error.retryable

    @classmethod
    def ok(cls, user: User) -> "AuthResult":
        return cls(user=user)

    @classmethod
    def pending(cls) -> "AuthResult":
        return cls(email_verification_pending=True)

    @classmethod
    def failed(cls, error: Union[AuthError, FormValidationError]) -> "AuthResult":
        field_name = getattr(error, "field", None)
        field_errors = {field_name: error.message} if field_name else {}
        return cls(error=error, field_errors=field_errors)
