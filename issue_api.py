from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

try:
    import streamlit as st
except ImportError:  # pragma: no cover - streamlit not available during some tests
    st = None

import requests


DEFAULT_TIMEOUT_SECONDS = 10.0
ISSUES_PATH = "/admin/issues"

logger = logging.getLogger(__name__)


class ApiConfigError(RuntimeError):
    """Raised when the admin API configuration is missing or invalid."""


class IssueApiError(RuntimeError):
    """Raised when the admin API call fails. Carries the HTTP status when there is one."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _api_secrets() -> Dict[str, Any]:
    if st is None:
        return {}
    try:
        return dict(st.secrets.get("api", {}))
    except Exception:
        # No secrets.toml at all is the common local setup.
        return {}


def _config_value(env_key: str, secret_key: str, default: Optional[str] = None) -> str:
    secrets = _api_secrets()
    if secret_key in secrets and secrets[secret_key]:
        return str(secrets[secret_key])

    value = os.getenv(env_key)
    if value:
        return value

    if default is not None:
        return default

    raise ApiConfigError(
        f"Admin API configuration missing. Set environment variable {env_key} or add '{secret_key}' to st.secrets['api']."
    )


def get_base_url() -> str:
    return _config_value("ADMIN_API_BASE_URL", "base_url").rstrip("/")


def get_timeout() -> float:
    raw = _config_value("ADMIN_API_TIMEOUT", "timeout", str(DEFAULT_TIMEOUT_SECONDS))
    try:
        return float(raw)
    except ValueError as exc:
        raise ApiConfigError(f"Invalid admin API timeout: {raw!r}") from exc


def _auth_headers(credential: Optional[str]) -> Dict[str, str]:
    # An absent credential is still sent so the backend decides how to reject it.
    return {"Authorization": f"Bearer {credential or ''}"}


def _request(method: str, path: str, credential: Optional[str], **kwargs: Any) -> requests.Response:
    url = f"{get_base_url()}{path}"
    logger.debug("%s %s", method, url)
    try:
        response = requests.request(
            method,
            url,
            headers=_auth_headers(credential),
            timeout=get_timeout(),
            **kwargs,
        )
    except requests.RequestException as exc:
        raise IssueApiError(f"{method} {path} failed: {exc}") from exc

    if not response.ok:
        raise IssueApiError(
            f"{method} {path} returned HTTP {response.status_code}",
            status_code=response.status_code,
        )
    return response


def _json_body(response: requests.Response, path: str) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        raise IssueApiError(f"{path} returned a non-JSON body") from exc


def fetch_issue_list(credential: Optional[str]) -> List[Dict[str, Any]]:
    """Retrieve every issue visible to the admin, in backend order."""

    payload = _json_body(_request("GET", ISSUES_PATH, credential), ISSUES_PATH)
    if not isinstance(payload, list):
        raise IssueApiError(
            f"{ISSUES_PATH} returned {type(payload).__name__}, expected a list"
        )
    return payload


def update_issue_status(issue_id: str, status: str, credential: Optional[str]) -> Dict[str, Any]:
    path = f"{ISSUES_PATH}/{issue_id}"
    payload = _json_body(
        _request("PUT", path, credential, json={"status": status}), path
    )
    if not isinstance(payload, dict):
        raise IssueApiError(f"{path} returned {type(payload).__name__}, expected an object")
    # Some backends wrap the document, e.g. {"issue": {...}}.
    if "issue" in payload and isinstance(payload["issue"], dict):
        return payload["issue"]
    return payload


def delete_issue(issue_id: str, credential: Optional[str]) -> None:
    _request("DELETE", f"{ISSUES_PATH}/{issue_id}", credential)
