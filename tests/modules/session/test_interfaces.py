"""Tests for session module interfaces."""

from modules.auth.credential_store import InMemoryCredentialStore
from modules.session.interfaces import ISessionController, SessionObserver
from modules.session.service import AuthSessionController
from tests.conftest import FakeAuthAPI


class TestSessionInterfaces:
    def test_controller_implements_interface(self, settings):
        controller = AuthSessionController(FakeAuthAPI(), InMemoryCredentialStore(), settings)
        assert isinstance(controller, ISessionController)

    def test_interface_methods_exist(self):
        methods = [
            "check_initial_session",
            "login",
            "register",
            "logout",
            "refresh_if_needed",
            "subscribe",
        ]
        for method in methods:
            assert hasattr(ISessionController, method)
            assert callable(getattr(AuthSessionController, method))

    def test_plain_function_is_observer(self):
        def observer(state):
            pass

        assert isinstance(observer, SessionObserver)
