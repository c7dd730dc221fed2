"""
Session module.

Owns the app-wide authentication state and every transition into and
out of it.

Public API:
- AuthSessionController: The only writer of the session state
- ISessionController / SessionObserver: Interfaces for the UI layer
- SessionState, SessionStatus: State snapshot and status enum
- build_session_controller: Wires the controller from settings
"""

from .interfaces import ISessionController, SessionObserver
from .models import SessionState, SessionStatus, TRANSITIONS, can_transition
from .exceptions import SessionError, InvalidTransitionError
from .service import AuthSessionController
from .factory import build_session_controller, get_credential_store

__all__ = [
    # Interfaces
    "ISessionController",
    "SessionObserver",
    # Models
    "SessionState",
    "SessionStatus",
    "TRANSITIONS",
    "can_transition",
    # Exceptions
    "SessionError",
    "InvalidTransitionError",
    # Implementation
    "AuthSessionController",
    "build_session_controller",
    "get_credential_store",
]
