"""Tests for session controller wiring."""

import httpx
import pytest

from modules.auth.api_client import AuthAPIClient
from modules.auth.credential_store import FileCredentialStore, InMemoryCredentialStore
from modules.session.factory import build_session_controller, get_credential_store
from modules.session.models import SessionStatus
from modules.session.service import AuthSessionController
from shared.config import Settings


class TestGetCredentialStore:
    def test_memory_store(self, settings):
        assert isinstance(get_credential_store(settings), InMemoryCredentialStore)

    def test_file_store(self, tmp_path):
        path = tmp_path / "credentials.json"
        settings = Settings(_env_file=None, credential_store="file", credential_store_path=str(path))

        store = get_credential_store(settings)

        assert isinstance(store, FileCredentialStore)
        assert store.path == path

    def test_unknown_store(self, settings):
        broken = settings.model_copy(update={"credential_store": "keychain"})

        with pytest.raises(ValueError, match="Unknown credential store 'keychain'"):
            get_credential_store(broken)


class TestBuildSessionController:
    def test_defaults(self, settings):
        controller = build_session_controller(settings)

        assert isinstance(controller, AuthSessionController)
        assert controller.state.status is SessionStatus.LOADING

    def test_uses_injected_collaborators(self, settings, fake_api, store):
        controller = build_session_controller(settings, api=fake_api, store=store)

        assert controller._api is fake_api
        assert controller._store is store

    @pytest.mark.asyncio
    async def test_http_client_passed_to_api_client(self, settings, store):
        async with httpx.AsyncClient() as client:
            controller = build_session_controller(settings, store=store, http_client=client)

            assert isinstance(controller._api, AuthAPIClient)
            assert controller._api._client is client
