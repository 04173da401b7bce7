"""
daxko_sso: OAuth2 client for the Daxko SSO partner API.
"""

from .auth import FreshPartnerToken, exchange_user_code, fetch_partner_token
from .client import DaxkoSSOClient
from .types import (
    AuthBootstrapError,
    ConfigError,
    Credentials,
    DaxkoSSOError,
    DecodeError,
    FailurePolicy,
    RequestOptions,
    Result,
    TransportError,
)

__all__ = [
    "AuthBootstrapError",
    "ConfigError",
    "Credentials",
    "DaxkoSSOClient",
    "DaxkoSSOError",
    "DecodeError",
    "FailurePolicy",
    "FreshPartnerToken",
    "RequestOptions",
    "Result",
    "TransportError",
    "exchange_user_code",
    "fetch_partner_token",
]
__version__ = "0.1.0"
