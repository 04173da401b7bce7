"""
Shared types for the Daxko SSO client.
Credentials, request options, results and the error taxonomy.
"""

import enum
import os
import re
from dataclasses import dataclass, field
from typing import Any, Generic, Mapping, Optional, TypeVar, Union

TOKEN_PATH = "partners/oauth2/token"
MEMBER_TOKEN_PATH = "partners/oauth2/members/token"
MEMBER_SETTINGS_PATH = "partners/oauth2/members/settings"
MY_INFO_PATH = "members/me"

# Provider-hosted account pages, scoped to the partner's client id.
SIGN_UP_URL = "https://operations.daxko.com/online/{client_id}/Security/login.mvc/create_account"
FORGOT_PASSWORD_URL = "https://operations.daxko.com/online/{client_id}/Security/login.mvc/find_account"

DEFAULT_TIMEOUT = 30

ENV_PREFIX = "DAXKO_SSO_"

_SCHEME_RE = re.compile(r"https?://")

T = TypeVar("T")


# ── Errors ────────────────────────────────────────────────


class DaxkoSSOError(Exception):
    """Base exception for the client."""


class TransportError(DaxkoSSOError):
    """Network failure or HTTP error status."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DecodeError(DaxkoSSOError):
    """Body is not JSON or lacks an expected field."""


class AuthBootstrapError(DaxkoSSOError):
    """Partner token could not be acquired."""


class ConfigError(DaxkoSSOError):
    """Credentials settings are missing or invalid."""


class FailurePolicy(enum.Enum):
    """How an operation reports failure.

    LOG: the error is logged once; the result carries no value.
    SURFACE: nothing is logged; the result is the only report.
    """

    LOG = "log"
    SURFACE = "surface"


# ── Credentials ───────────────────────────────────────────

# Credentials field -> settings store keys. "pass" and "referesh_token" are
# the names the settings store persists.
_SETTING_KEYS = {
    "base_uri": ("base_uri",),
    "user": ("user",),
    "secret": ("pass", "secret"),
    "client_id": ("client_id",),
    "refresh_token": ("referesh_token", "refresh_token"),
}


def normalize_base_uri(uri: str) -> str:
    """Ensure a scheme and exactly one trailing slash."""
    uri = uri.strip()
    if not uri:
        raise ConfigError("base_uri is empty")
    if not _SCHEME_RE.match(uri):
        uri = "https://" + uri
    return uri.rstrip("/") + "/"


def env_settings(environ: Optional[Mapping[str, str]] = None) -> dict[str, Optional[str]]:
    """Raw settings read from DAXKO_SSO_* variables, keyed like the settings store."""
    env = os.environ if environ is None else environ
    return {
        key: env.get(f"{ENV_PREFIX}{key.upper()}")
        for key in ("base_uri", "user", "pass", "client_id", "refresh_token")
    }


@dataclass(frozen=True)
class Credentials:
    base_uri: str
    user: str
    secret: str = field(repr=False)
    client_id: str
    refresh_token: str = field(repr=False)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "Credentials":
        resolved: dict[str, str] = {}
        for name, keys in _SETTING_KEYS.items():
            raw = next((values[k] for k in keys if values.get(k) is not None), None)
            if raw is None or not str(raw).strip():
                raise ConfigError(f"Missing setting: {keys[0]}")
            resolved[name] = str(raw).strip()

        if not resolved["client_id"].isdigit():
            raise ConfigError(f"client_id must be numeric, got {resolved['client_id']!r}")
        resolved["base_uri"] = normalize_base_uri(resolved["base_uri"])
        return cls(**resolved)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Credentials":
        return cls.from_mapping(env_settings(environ))

    def url(self, path: str) -> str:
        return f"{self.base_uri}{path.lstrip('/')}"


# ── Request options ───────────────────────────────────────


@dataclass(frozen=True)
class RequestOptions:
    headers: dict[str, str] = field(default_factory=dict)
    body: Optional[Union[str, bytes]] = None
    form_fields: Optional[dict[str, str]] = None

    def __post_init__(self) -> None:
        if self.body is not None and self.form_fields is not None:
            raise ValueError("body and form_fields are mutually exclusive")

    def has_authorization(self) -> bool:
        return any(name.lower() == "authorization" for name in self.headers)

    def merged(self, defaults: "RequestOptions") -> "RequestOptions":
        """Combine with defaults key by key; our own values win."""
        form_fields = None
        if self.form_fields is not None or defaults.form_fields is not None:
            form_fields = {**(defaults.form_fields or {}), **(self.form_fields or {})}
        body = self.body if self.body is not None else defaults.body
        if body is not None and form_fields is not None:
            # Caller-supplied payload kind wins over the default one.
            if self.body is not None:
                form_fields = None
            else:
                body = None
        return RequestOptions(
            headers={**defaults.headers, **self.headers},
            body=body,
            form_fields=form_fields,
        )

    def with_bearer(self, token: str) -> "RequestOptions":
        """Inject a bearer Authorization header unless one is present."""
        if self.has_authorization():
            return self
        return self.merged(RequestOptions(headers={"Authorization": f"Bearer {token}"}))

    def to_transport_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {"headers": dict(self.headers)}
        if self.body is not None:
            kwargs["data"] = self.body
        elif self.form_fields is not None:
            kwargs["data"] = dict(self.form_fields)
        return kwargs


# ── Results ───────────────────────────────────────────────


@dataclass(frozen=True)
class Result(Generic[T]):
    """Success value XOR a typed error."""

    value: Optional[T] = None
    error: Optional[DaxkoSSOError] = None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: DaxkoSSOError) -> "Result[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    def value_or(self, default: T) -> T:
        return default if self.error is not None else self.value  # type: ignore[return-value]

    def to_dict(self) -> dict[str, Any]:
        if self.error is not None:
            return {"error": 1, "message": str(self.error)}
        return {"error": 0, "message": "", "response": self.value}
