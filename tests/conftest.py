"""
Shared fixtures for daxko_sso test suite.
"""

import json
from unittest.mock import MagicMock

import pytest
import requests

from daxko_sso.types import Credentials


# ── Credential fixtures ─────────────────────────────────────

@pytest.fixture
def refresh_token():
    return "rt-" + "x" * 238


@pytest.fixture
def credentials(refresh_token):
    return Credentials(
        base_uri="https://api.daxko.com/v3/",
        user="partner-user",
        secret="partner-pass",
        client_id="4032",
        refresh_token=refresh_token,
    )


@pytest.fixture
def settings(refresh_token):
    """Values as the settings store persists them."""
    return {
        "base_uri": "api.daxko.com/v3",
        "user": " partner-user ",
        "pass": "partner-pass",
        "client_id": "4032",
        "referesh_token": refresh_token + "\n",
    }


@pytest.fixture
def partner_token():
    return "partner-access-token"


@pytest.fixture
def user_token():
    return "member-access-token"


# ── Mock response factories ──────────────────────────────────

def make_response(payload=None, status_code=200, raw=None):
    """Build a MagicMock standing in for requests.Response."""
    resp = MagicMock()
    resp.status_code = status_code
    if raw is not None:
        resp.content = raw
        resp.json.side_effect = ValueError("Expecting value")
    elif payload is None:
        resp.content = b""
    else:
        resp.content = json.dumps(payload).encode()
        resp.json.return_value = payload
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(
            f"{status_code} Client Error", response=resp
        )
    else:
        resp.raise_for_status.return_value = None
    return resp


@pytest.fixture
def response_factory():
    return make_response


@pytest.fixture
def http():
    """Transport double with the requests.request call shape."""
    return MagicMock()


@pytest.fixture
def mock_token_response(partner_token):
    return {"access_token": partner_token, "token_type": "bearer", "expires_in": 3600}


@pytest.fixture
def mock_profile_response():
    """Response from members/me."""
    return {
        "id": "M-100200",
        "name": {"first": "Test", "last": "Member"},
        "emails": [{"address": "member@example.org"}],
    }
