"""Tests for auth module interfaces."""

from modules.auth.api_client import AuthAPIClient
from modules.auth.credential_store import FileCredentialStore, InMemoryCredentialStore
from modules.auth.interfaces import IAuthAPI, ICredentialStore
from tests.conftest import FakeAuthAPI, RecordingCredentialStore


class TestAuthInterfaces:
    def test_api_client_implements_interface(self, settings):
        assert isinstance(AuthAPIClient(settings=settings), IAuthAPI)

    def test_api_interface_methods(self):
        for method in ["login", "register", "logout", "refresh_token", "get_current_user"]:
            assert hasattr(IAuthAPI, method)
            assert callable(getattr(AuthAPIClient, method))

    def test_stores_implement_interface(self, tmp_path):
        assert isinstance(InMemoryCredentialStore(), ICredentialStore)
        assert isinstance(FileCredentialStore(tmp_path / "credentials.json"), ICredentialStore)

    def test_fakes_match_interfaces(self):
        """Test doubles must stay in sync with the real protocols."""
        assert isinstance(FakeAuthAPI(), IAuthAPI)
        assert isinstance(RecordingCredentialStore(), ICredentialStore)
