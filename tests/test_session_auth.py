from types import SimpleNamespace
from typing import Any, Dict

import pytest

import session_auth
from session_auth import SESSION_TOKEN_KEY, SignInError, get_credential, sign_in, sign_out


class FakeAuth:
    def __init__(self, session: Any = None, sign_in_error: Exception = None) -> None:
        self.session = session
        self.sign_in_error = sign_in_error
        self.signed_out = False
        self.sign_in_calls = []

    def get_session(self):
        return self.session

    def sign_in_with_password(self, credentials: Dict[str, str]):
        self.sign_in_calls.append(credentials)
        if self.sign_in_error is not None:
            raise self.sign_in_error
        return SimpleNamespace(session=self.session)

    def sign_out(self):
        self.signed_out = True


@pytest.fixture()
def state(monkeypatch) -> Dict[str, Any]:
    session_state: Dict[str, Any] = {}
    monkeypatch.setattr(session_auth, "_session_state", lambda: session_state)
    monkeypatch.setattr(session_auth, "_secrets_section", lambda name: {})
    for key in ("ADMIN_API_TOKEN", "SUPABASE_URL", "SUPABASE_ANON_KEY", "SUPABASE_DISABLE"):
        monkeypatch.delenv(key, raising=False)
    return session_state


@pytest.fixture()
def supabase(monkeypatch, state):
    auth = FakeAuth()
    monkeypatch.setenv("SUPABASE_URL", "https://project.supabase.test")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")
    monkeypatch.setattr(session_auth, "get_client", lambda: SimpleNamespace(auth=auth))
    return auth


def test_no_credential(state):
    assert get_credential() is None


def test_session_token_wins(state, monkeypatch):
    monkeypatch.setenv("ADMIN_API_TOKEN", "env-token")
    state[SESSION_TOKEN_KEY] = "session-token"

    assert get_credential() == "session-token"


def test_static_token_from_env(state, monkeypatch):
    monkeypatch.setenv("ADMIN_API_TOKEN", "env-token")

    assert get_credential() == "env-token"


def test_static_token_from_secrets(state, monkeypatch):
    monkeypatch.setattr(
        session_auth,
        "_secrets_section",
        lambda name: {"token": "secret-token"} if name == "auth" else {},
    )

    assert get_credential() == "secret-token"


def test_supabase_session_token(supabase):
    supabase.session = SimpleNamespace(access_token="jwt-abc")

    assert get_credential() == "jwt-abc"


def test_supabase_disabled_is_skipped(supabase, monkeypatch):
    supabase.session = SimpleNamespace(access_token="jwt-abc")
    monkeypatch.setenv("SUPABASE_DISABLE", "1")

    assert get_credential() is None


def test_sign_in_stores_token(supabase, state):
    supabase.session = SimpleNamespace(access_token="jwt-new")

    token = sign_in("admin@example.com", "hunter2")

    assert token == "jwt-new"
    assert state[SESSION_TOKEN_KEY] == "jwt-new"
    assert supabase.sign_in_calls == [{"email": "admin@example.com", "password": "hunter2"}]


def test_sign_in_rejected(supabase, state):
    supabase.sign_in_error = RuntimeError("Invalid login credentials")

    with pytest.raises(SignInError):
        sign_in("admin@example.com", "wrong")
    assert SESSION_TOKEN_KEY not in state


def test_sign_in_without_session(supabase):
    with pytest.raises(SignInError):
        sign_in("admin@example.com", "hunter2")


def test_sign_out_clears_token(supabase, state):
    state[SESSION_TOKEN_KEY] = "jwt"

    sign_out()

    assert SESSION_TOKEN_KEY not in state
    assert supabase.signed_out


@pytest.mark.parametrize("value, expected", [("true", True), ("no", False), ("1", True)])
def test_supabase_disabled_env(state, monkeypatch, value, expected):
    monkeypatch.setenv("SUPABASE_DISABLE", value)

    assert session_auth.supabase_disabled() is expected


class SessionKeepingAuth(FakeAuth):
    """Holds the signed-in session on the client, as the Supabase client does."""

    def sign_in_with_password(self, credentials: Dict[str, str]):
        self.session = SimpleNamespace(access_token=f"jwt-{credentials['email']}")
        return super().sign_in_with_password(credentials)


def test_sign_in_is_private_to_its_browser_session(state, monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "https://project.supabase.test")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")
    created = []

    def fake_create_client(url, key):
        client = SimpleNamespace(auth=SessionKeepingAuth())
        created.append(client)
        return client

    browser_a: Dict[str, Any] = {}
    browser_b: Dict[str, Any] = {}
    active = {"state": browser_a}
    monkeypatch.setattr(session_auth, "create_client", fake_create_client)
    monkeypatch.setattr(session_auth, "_session_state", lambda: active["state"])

    sign_in("admin@example.com", "hunter2")

    active["state"] = browser_b
    assert get_credential() is None

    active["state"] = browser_a
    assert get_credential() == "jwt-admin@example.com"
    assert len(created) == 2


def test_client_is_reused_within_a_session(state, monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "https://project.supabase.test")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")
    monkeypatch.setattr(
        session_auth, "create_client", lambda url, key: SimpleNamespace(auth=FakeAuth())
    )

    assert session_auth.get_client() is session_auth.get_client()
    assert state[session_auth.SESSION_CLIENT_KEY] is session_auth.get_client()
