"""
Daxko OAuth2 grants.
Partner token (client credentials) and member token (authorization code),
both bootstrapped with the long-lived refresh token.
"""

import argparse
import json
import logging
import sys
from typing import Any, Optional, Protocol

import requests

from .types import (
    DEFAULT_TIMEOUT,
    MEMBER_TOKEN_PATH,
    TOKEN_PATH,
    ConfigError,
    Credentials,
    DaxkoSSOError,
    DecodeError,
    FailurePolicy,
    RequestOptions,
    Result,
    TransportError,
    env_settings,
)

logger = logging.getLogger(__name__)


class TokenProvider(Protocol):
    def __call__(self) -> Result[str]: ...


def report(
    result: Result[Any], policy: FailurePolicy, log: logging.Logger, context: str
) -> Result[Any]:
    """Log a failed result under the LOG policy, then hand it back."""
    if not result.ok and policy is FailurePolicy.LOG:
        log.error("%s failed: %s", context, result.error)
    return result


def send(
    http: Any,
    method: str,
    url: str,
    options: RequestOptions,
    timeout: float = DEFAULT_TIMEOUT,
) -> requests.Response:
    """Issue one call, turning transport and HTTP status failures into TransportError."""
    try:
        resp = http.request(method, url, timeout=timeout, **options.to_transport_kwargs())
        resp.raise_for_status()
    except requests.HTTPError as exc:
        status = exc.response.status_code if exc.response is not None else None
        raise TransportError(str(exc), status_code=status) from exc
    except requests.RequestException as exc:
        raise TransportError(str(exc)) from exc
    return resp


def decode_json(resp: requests.Response) -> Any:
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError as exc:
        raise DecodeError(f"Response is not JSON: {exc}") from exc


def _extract_access_token(body: Any) -> str:
    token = body.get("access_token") if isinstance(body, dict) else None
    if not isinstance(token, str) or not token:
        raise DecodeError("Response has no access_token")
    return token


def _grant(
    credentials: Credentials,
    path: str,
    form_fields: dict[str, str],
    http: Any,
    timeout: float,
) -> Result[str]:
    options = RequestOptions(
        headers={"Authorization": f"Bearer {credentials.refresh_token}"},
        form_fields={
            "client_id": credentials.user,
            "client_secret": credentials.secret,
            **form_fields,
        },
    )
    try:
        resp = send(http, "POST", credentials.url(path), options, timeout)
        return Result.success(_extract_access_token(decode_json(resp)))
    except DaxkoSSOError as exc:
        return Result.failure(exc)


def fetch_partner_token(
    credentials: Credentials,
    http: Any = requests,
    log: Optional[logging.Logger] = None,
    policy: FailurePolicy = FailurePolicy.LOG,
    timeout: float = DEFAULT_TIMEOUT,
) -> Result[str]:
    """Client-credentials grant scoped to the partner's client id."""
    result = _grant(
        credentials,
        TOKEN_PATH,
        {
            "grant_type": "client_credentials",
            "scope": f"client:{credentials.client_id}",
        },
        http,
        timeout,
    )
    return report(result, policy, log or logger, "Partner token request")


def exchange_user_code(
    credentials: Credentials,
    code: str,
    redirect_url: str,
    http: Any = requests,
    log: Optional[logging.Logger] = None,
    policy: FailurePolicy = FailurePolicy.LOG,
    timeout: float = DEFAULT_TIMEOUT,
) -> Result[str]:
    """Authorization-code grant: trade the SSO redirect code for a member token."""
    result = _grant(
        credentials,
        MEMBER_TOKEN_PATH,
        {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": redirect_url,
        },
        http,
        timeout,
    )
    return report(result, policy, log or logger, "Member token request")


class FreshPartnerToken:
    """Token provider that fetches a new partner token on every call."""

    def __init__(
        self,
        credentials: Credentials,
        http: Any = requests,
        log: Optional[logging.Logger] = None,
        timeout: float = DEFAULT_TIMEOUT,
        policy: FailurePolicy = FailurePolicy.LOG,
    ):
        self._credentials = credentials
        self._http = http
        self._log = log or logger
        self._timeout = timeout
        self._policy = policy

    def __call__(self) -> Result[str]:
        return fetch_partner_token(
            self._credentials, self._http, self._log, self._policy, self._timeout
        )


# ── CLI ───────────────────────────────────────────────────


def add_credential_args(parser: argparse.ArgumentParser) -> None:
    """Flags overriding the DAXKO_SSO_* environment variables."""
    parser.add_argument("--base-uri")
    parser.add_argument("--user")
    parser.add_argument("--pass", dest="secret")
    parser.add_argument("--client-id")
    parser.add_argument("--refresh-token")
    parser.add_argument("-v", "--verbose", action="store_true")


def credentials_from_args(args: argparse.Namespace) -> Credentials:
    """Environment settings, with any flags given on the command line taking over."""
    flags = {
        "base_uri": args.base_uri,
        "user": args.user,
        "pass": args.secret,
        "client_id": args.client_id,
        "refresh_token": args.refresh_token,
    }
    values = env_settings()
    values.update({k: v for k, v in flags.items() if v is not None})
    return Credentials.from_mapping(values)


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Daxko SSO token grants")
    add_credential_args(parser)

    sub = parser.add_subparsers(dest="grant", required=True)
    sub.add_parser("partner")

    p = sub.add_parser("user")
    p.add_argument("--code", required=True)
    p.add_argument("--redirect-url", required=True)

    return parser


def main() -> None:
    """CLI entry point: run a grant and print the token as JSON."""
    args = _build_parser().parse_args()
    configure_logging(args.verbose)

    try:
        credentials = credentials_from_args(args)
    except ConfigError as exc:
        print(json.dumps({"error": str(exc)}), file=sys.stderr)
        sys.exit(1)

    if args.grant == "partner":
        result = fetch_partner_token(credentials)
    else:
        result = exchange_user_code(credentials, args.code, args.redirect_url)

    if not result.ok:
        print(json.dumps({"error": str(result.error)}), file=sys.stderr)
        sys.exit(1)

    json.dump({"access_token": result.value}, sys.stdout, indent=2)
    print()
