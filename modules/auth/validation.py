"""
Client-side field validation for the login and registration forms.

Validators are synchronous and pure: each returns a ValidationResult for
one field. Forms recompute every result on each access, so `can_submit`
always reflects the latest input.
"""

import re
from enum import Enum
from typing import Callable, Optional

from pydantic import BaseModel

from .exceptions import FormValidationError
from .models import LoginCredentials, RegistrationFields


EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,64}$")
USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")
NAME_PATTERN = re.compile(r"^[A-Za-zÀ-ÖØ-öø-ÿ\s'.-]+$")
SPECIAL_CHARACTERS = "!@#$%^&*()_+-=[]{}|;:,.<>?/~`'\"\\"

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128
USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 30
NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50

COMMON_PASSWORD_PATTERNS = ("password", "123456", "qwerty")


class ValidationResult(BaseModel):
    """Outcome of validating a single form field."""

    is_valid: bool
    error_message: Optional[str] = None

    model_config = {"frozen": True}

    @classmethod
    def valid(cls) -> "ValidationResult":
        return cls(is_valid=True)

    @classmethod
    def invalid(cls, reason: str) -> "ValidationResult":
        return cls(is_valid=False, error_message=reason)


def validate_email(email: str) -> ValidationResult:
    """Validate email presence and format."""
    email = email.strip()
    if not email:
        return ValidationResult.invalid("Email is required")
    if not EMAIL_PATTERN.match(email):
        return ValidationResult.invalid("Invalid email format")
    return ValidationResult.valid()


def validate_login_password(password: str) -> ValidationResult:
    """Login only requires a password to be present."""
    if not password:
        return ValidationResult.invalid("Password is required")
    return ValidationResult.valid()


def validate_password(password: str) -> ValidationResult:
    """
    Validate password strength for a new account.

    Requires 8-128 characters with at least one letter, one digit
    and one special character.
    """
    if not password:
        return ValidationResult.invalid("Password is required")
    if len(password) < PASSWORD_MIN_LENGTH:
        return ValidationResult.invalid(
            f"Password must be at least {PASSWORD_MIN_LENGTH} characters"
        )
    if len(password) > PASSWORD_MAX_LENGTH:
        return ValidationResult.invalid(
            f"Password cannot be longer than {PASSWORD_MAX_LENGTH} characters"
        )
    if not any(c.isalpha() for c in password):
        return ValidationResult.invalid("Password must contain at least one letter")
    if not any(c.isdigit() for c in password):
        return ValidationResult.invalid("Password must contain at least one number")
    if not any(c in SPECIAL_CHARACTERS for c in password):
        return ValidationResult.invalid(
            "Password must contain at least one special character"
        )
    return ValidationResult.valid()


def validate_password_confirmation(password: str, confirmation: str) -> ValidationResult:
    if not confirmation:
        return ValidationResult.invalid("Please confirm your password")
    if password != confirmation:
        return ValidationResult.invalid("Passwords do not match")
    return ValidationResult.valid()


def validate_username(username: str) -> ValidationResult:
    """Validate a public handle: 3-30 letters, digits, '_' or '-'."""
    username = username.strip()
    if not username:
        return ValidationResult.invalid("Username is required")
    if len(username) < USERNAME_MIN_LENGTH:
        return ValidationResult.invalid(
            f"Username must be at least {USERNAME_MIN_LENGTH} characters"
        )
    if len(username) > USERNAME_MAX_LENGTH:
        return ValidationResult.invalid(
            f"Username cannot be longer than {USERNAME_MAX_LENGTH} characters"
        )
    if not USERNAME_PATTERN.match(username):
        if not username[0].isalnum():
            return ValidationResult.invalid("Username must start with a letter or number")
        return ValidationResult.invalid(
            "Only letters, numbers, hyphens and underscores are allowed"
        )
    return ValidationResult.valid()


def validate_name(name: str, label: str = "Name") -> ValidationResult:
    name = name.strip()
    if not name:
        return ValidationResult.invalid(f"{label} is required")
    if len(name) < NAME_MIN_LENGTH:
        return ValidationResult.invalid(
            f"{label} must be at least {NAME_MIN_LENGTH} characters"
        )
    if len(name) > NAME_MAX_LENGTH:
        return ValidationResult.invalid(
            f"{label} cannot be longer than {NAME_MAX_LENGTH} characters"
        )
    if not NAME_PATTERN.match(name):
        return ValidationResult.invalid(f"{label} contains invalid characters")
    return ValidationResult.valid()


def validate_required_consent(accepted: bool, label: str) -> ValidationResult:
    if not accepted:
        return ValidationResult.invalid(f"You must accept the {label}")
    return ValidationResult.valid()


class PasswordStrength(str, Enum):
    """Informative password strength shown under the password field."""

    WEAK = "weak"
    MEDIUM = "medium"
    STRONG = "strong"
    VERY_STRONG = "very_strong"


def password_strength(password: str) -> PasswordStrength:
    """
    Score a password from its length, character classes and common patterns.

    This never blocks submission; validate_password decides acceptability.
    """
    score = 0
    if len(password) >= 8:
        score += 1
    if len(password) >= 12:
        score += 1
    if any(c.islower() for c in password):
        score += 1
    if any(c.isupper() for c in password):
        score += 1
    if any(c.isdigit() for c in password):
        score += 1
    if any(c in SPECIAL_CHARACTERS for c in password):
        score += 1

    lowered = password.lower()
    if any(pattern in lowered for pattern in COMMON_PASSWORD_PATTERNS):
        score -= 2

    if score <= 2:
        return PasswordStrength.WEAK
    if score <= 4:
        return PasswordStrength.MEDIUM
    if score <= 6:
        return PasswordStrength.STRONG
    return PasswordStrength.VERY_STRONG


class _Form:
    """Shared behaviour of the login and registration forms."""

    def __init__(self, values: BaseModel):
        self._values = values

    @property
    def values(self) -> BaseModel:
        return self._values

    def update(self, **changes) -> None:
        """Apply input changes (one keystroke-equivalent at a time or many)."""
        self._values = self._values.model_copy(update=changes)

    def _validators(self) -> dict[str, Callable[[], ValidationResult]]:
        raise NotImplementedError

    def field_results(self) -> dict[str, ValidationResult]:
        """Validation result for every field, in form order."""
        return {name: check() for name, check in self._validators().items()}

    @property
    def can_submit(self) -> bool:
        return all(result.is_valid for result in self.field_results().values())

    def first_error(self) -> Optional[FormValidationError]:
        """First invalid field in form order, stopping at the first failure."""
        for name, check in self._validators().items():
            result = check()
            if not result.is_valid:
                return FormValidationError(name, result.error_message or "Invalid value")
        return None


class LoginForm(_Form):
    """Login form state."""

    def __init__(self, email: str = "", password: str = ""):
        super().__init__(LoginCredentials(email=email, password=password))

    @classmethod
    def from_credentials(cls, credentials: LoginCredentials) -> "LoginForm":
        return cls(email=credentials.email, password=credentials.password)

    @property
    def credentials(self) -> LoginCredentials:
        return self._values

    def _validators(self) -> dict[str, Callable[[], ValidationResult]]:
        values = self._values
        return {
            "email": lambda: validate_email(values.email),
            "password": lambda: validate_login_password(values.password),
        }


class RegistrationForm(_Form):
    """Registration form state. Marketing consent is optional."""

    def __init__(self, fields: Optional[RegistrationFields] = None):
        super().__init__(fields or RegistrationFields())

    @property
    def fields(self) -> RegistrationFields:
        return self._values

    def _validators(self) -> dict[str, Callable[[], ValidationResult]]:
        values = self._values
        return {
            "first_name": lambda: validate_name(values.first_name, "First name"),
            "last_name": lambda: validate_name(values.last_name, "Last name"),
            "email": lambda: validate_email(values.email),
            "username": lambda: validate_username(values.username),
            "password": lambda: validate_password(values.password),
            "confirm_password": lambda: validate_password_confirmation(
                values.password, values.confirm_password
            ),
            "accepted_terms": lambda: validate_required_consent(
                values.accepted_terms, "terms of service"
            ),
            "accepted_privacy": lambda: validate_required_consent(
                values.accepted_privacy, "privacy policy"
            ),
        }
