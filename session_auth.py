from __future__ import annotations

import os
from typing import Any, Dict, Optional

try:
    import streamlit as st
except ImportError:  # pragma: no cover - streamlit not available during some tests
    st = None

from supabase import Client, create_client


SESSION_TOKEN_KEY = "token"
SESSION_CLIENT_KEY = "supabase_client"


class AuthConfigError(RuntimeError):
    """Raised when Supabase auth configuration is missing or invalid."""


class SignInError(RuntimeError):
    """Raised when Supabase rejects the admin's credentials."""


def _secrets_section(name: str) -> Dict[str, Any]:
    if st is None:
        return {}
    try:
        return dict(st.secrets.get(name, {}))
    except Exception:
        return {}


def _session_state() -> Any:
    if st is None:
        return {}
    return st.session_state


def _supabase_value(env_key: str, secret_key: str) -> Optional[str]:
    secrets = _secrets_section("supabase")
    if secret_key in secrets and secrets[secret_key]:
        return str(secrets[secret_key])
    return os.getenv(env_key) or None


def supabase_disabled() -> bool:
    secret_value = _secrets_section("supabase").get("disable")
    if isinstance(secret_value, bool):
        disable_flag = secret_value
    elif isinstance(secret_value, str):
        disable_flag = secret_value.lower() in {"1", "true", "yes"}
    else:
        disable_flag = False

    if disable_flag:
        return True

    env_value = os.getenv("SUPABASE_DISABLE")
    if env_value is None:
        return False
    return env_value.lower() in {"1", "true", "yes"}


def supabase_configured() -> bool:
    if supabase_disabled():
        return False
    return bool(
        _supabase_value("SUPABASE_URL", "url")
        and _supabase_value("SUPABASE_ANON_KEY", "anon_key")
    )


def get_client() -> Client:
    """Return this browser session's Supabase client.

    Supabase keeps the signed-in session on the client object, so every browser
    session gets its own client and never sees another admin's login.
    """

    state = _session_state()
    client = state.get(SESSION_CLIENT_KEY)
    if client is not None:
        return client

    url = _supabase_value("SUPABASE_URL", "url")
    key = _supabase_value("SUPABASE_ANON_KEY", "anon_key")
    if not url or not key:
        raise AuthConfigError(
            "Supabase auth configuration missing. Set SUPABASE_URL and SUPABASE_ANON_KEY or add them to st.secrets['supabase']."
        )
    try:
        client = create_client(url, key)
    except Exception as exc:
        raise AuthConfigError("Unable to initialise Supabase client") from exc
    state[SESSION_CLIENT_KEY] = client
    return client


def static_token() -> Optional[str]:
    token = _secrets_section("auth").get("token")
    if token:
        return str(token)
    return os.getenv("ADMIN_API_TOKEN") or None


def _supabase_session_token() -> Optional[str]:
    if not supabase_configured():
        return None
    try:
        session = get_client().auth.get_session()
    except Exception:
        # An expired or unreadable session is the same as no session.
        return None
    if session is None:
        return None
    return getattr(session, "access_token", None) or None


def get_credential() -> Optional[str]:
    """Resolve the bearer credential for this browser session, if any."""

    state = _session_state()
    token = state.get(SESSION_TOKEN_KEY)
    if token:
        return str(token)
    return static_token() or _supabase_session_token()


def sign_in(email: str, password: str) -> str:
    client = get_client()
    try:
        response = client.auth.sign_in_with_password({"email": email, "password": password})
    except Exception as exc:
        raise SignInError(f"Sign-in failed: {exc}") from exc

    session = getattr(response, "session", None)
    token = getattr(session, "access_token", None)
    if not token:
        raise SignInError("Sign-in returned no session")

    _session_state()[SESSION_TOKEN_KEY] = token
    return token


def sign_out() -> None:
    state = _session_state()
    state.pop(SESSION_TOKEN_KEY, None)
    if supabase_configured():
        try:
            get_client().auth.sign_out()
        except Exception as exc:
            raise SignInError(f"Sign-out failed: {exc}") from exc
        finally:
            state.pop(SESSION_CLIENT_KEY, None)
