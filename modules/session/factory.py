"""Factory functions for wiring the session controller."""

from typing import Optional

import httpx

from shared.config import Settings, get_settings
from modules.auth.api_client import AuthAPIClient
from modules.auth.credential_store import FileCredentialStore, InMemoryCredentialStore
from modules.auth.interfaces import IAuthAPI, ICredentialStore

from .service import AuthSessionController


def get_credential_store(settings: Settings) -> ICredentialStore:
    """Create the credential store selected by settings.credential_store.

    Args:
        settings: Settings naming the backend ("memory" or "file")

    Returns:
        A new credential store instance

    Raises:
        ValueError: If the backend name is unknown
    """
    if settings.credential_store == "memory":
        return InMemoryCredentialStore()
    if settings.credential_store == "file":
        return FileCredentialStore(settings.credential_store_path)
    raise ValueError(
        f"Unknown credential store '{settings.credential_store}'. "
        "Expected 'memory' or 'file'"
    )


def build_session_controller(
    settings: Optional[Settings] = None,
    *,
    api: Optional[IAuthAPI] = None,
    store: Optional[ICredentialStore] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> AuthSessionController:
    """Build an AuthSessionController with its collaborators.

    Args:
        settings: Settings to use, defaults to get_settings()
        api: Auth API implementation, defaults to AuthAPIClient
        store: Credential store, defaults to the one named in settings
        http_client: httpx client for the default AuthAPIClient

    Returns:
        A controller in the LOADING state; call start() or
        check_initial_session() to resolve it.
    """
    settings = settings or get_settings()
    if api is None:
        api = AuthAPIClient(settings=settings, client=http_client)
    if store is None:
        store = get_credential_store(settings)
    return AuthSessionController(api=api, store=store, settings=settings)
