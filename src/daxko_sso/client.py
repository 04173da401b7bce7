"""
Daxko SSO API client
Authenticated dispatch, redirect whitelisting and member profile lookup.
"""

import argparse
import json
import logging
import sys
from typing import Any, Mapping, Optional

import requests

from .auth import (
    FreshPartnerToken,
    TokenProvider,
    add_credential_args,
    configure_logging,
    credentials_from_args,
    decode_json,
    exchange_user_code,
    fetch_partner_token,
    report,
    send,
)
from .types import (
    DEFAULT_TIMEOUT,
    FORGOT_PASSWORD_URL,
    MEMBER_SETTINGS_PATH,
    MY_INFO_PATH,
    SIGN_UP_URL,
    AuthBootstrapError,
    ConfigError,
    Credentials,
    DaxkoSSOError,
    FailurePolicy,
    RequestOptions,
    Result,
)

logger = logging.getLogger(__name__)

DEFAULT_POLICIES = {
    "get_partner_token": FailurePolicy.LOG,
    "get_user_access_token": FailurePolicy.LOG,
    "request": FailurePolicy.LOG,
    "register_sso_redirect_link": FailurePolicy.SURFACE,
    "get_my_info": FailurePolicy.SURFACE,
}


class DaxkoSSOClient:
    """Daxko SSO client. Holds no token state between calls."""

    def __init__(
        self,
        credentials: Credentials,
        http: Any = None,
        log: Optional[logging.Logger] = None,
        token_provider: Optional[TokenProvider] = None,
        policies: Optional[Mapping[str, FailurePolicy]] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        unknown = set(policies or {}) - set(DEFAULT_POLICIES)
        if unknown:
            raise ValueError(f"Unknown operations in policies: {sorted(unknown)}")

        self._credentials = credentials
        self._http = http if http is not None else requests
        self._log = log or logger
        self._timeout = timeout
        self._policies = {**DEFAULT_POLICIES, **(policies or {})}
        # Token failures inside an operation are reported under that
        # operation's own policy.
        self._token_provider = token_provider or FreshPartnerToken(
            credentials, self._http, self._log, timeout, FailurePolicy.SURFACE
        )

    @property
    def credentials(self) -> Credentials:
        return self._credentials

    def policy(self, operation: str) -> FailurePolicy:
        return self._policies[operation]

    def _partner_token(self) -> Result[str]:
        token = self._token_provider()
        if token.ok:
            return token
        return Result.failure(AuthBootstrapError(f"Partner token unavailable: {token.error}"))

    # ── Tokens ────────────────────────────────────────────

    def get_partner_token(self) -> Result[str]:
        return fetch_partner_token(
            self._credentials,
            self._http,
            self._log,
            self.policy("get_partner_token"),
            self._timeout,
        )

    def get_user_access_token(self, code: str, redirect_url: str) -> Result[str]:
        return exchange_user_code(
            self._credentials,
            code,
            redirect_url,
            self._http,
            self._log,
            self.policy("get_user_access_token"),
            self._timeout,
        )

    # ── Dispatch ──────────────────────────────────────────

    def request(
        self, method: str, path: str, options: Optional[RequestOptions] = None
    ) -> Result[Any]:
        """Call the API, adding a partner bearer token unless Authorization is set."""
        options = options or RequestOptions()
        policy = self.policy("request")
        context = f"{method} {path}"

        if not options.has_authorization():
            token = self._partner_token()
            if not token.ok:
                return report(token, policy, self._log, context)
            options = options.with_bearer(token.value)

        try:
            resp = send(
                self._http, method, self._credentials.url(path), options, self._timeout
            )
            result = Result.success(decode_json(resp))
        except DaxkoSSOError as exc:
            result = Result.failure(exc)
        return report(result, policy, self._log, context)

    def get_request(self, path: str) -> Result[Any]:
        return self.request("GET", path, RequestOptions())

    def post_request(self, path: str, body: Mapping[str, Any]) -> Result[Any]:
        return self.request(
            "POST",
            path,
            RequestOptions(
                headers={"Content-Type": "application/json"},
                body=json.dumps(body),
            ),
        )

    # ── SSO settings ──────────────────────────────────────

    def build_settings_payload(self, link: str) -> dict:
        client_id = self._credentials.client_id
        return {
            "settings": {
                "valid_redirect_uris": [link],
                "links": {
                    "sign_up": {"url": SIGN_UP_URL.format(client_id=client_id)},
                    "forgot_password": {
                        "url": FORGOT_PASSWORD_URL.format(client_id=client_id)
                    },
                },
            }
        }

    def register_sso_redirect_link(self, link: str) -> Result[requests.Response]:
        """Whitelist link as an SSO redirect target. Success carries the raw response."""
        policy = self.policy("register_sso_redirect_link")
        token = self._partner_token()
        if not token.ok:
            return report(token, policy, self._log, "SSO redirect registration")

        options = RequestOptions(
            headers={
                "Authorization": f"Bearer {token.value}",
                "Content-Type": "application/json",
            },
            body=json.dumps(self.build_settings_payload(link)),
        )
        try:
            resp = send(
                self._http,
                "PUT",
                self._credentials.url(MEMBER_SETTINGS_PATH),
                options,
                self._timeout,
            )
            result = Result.success(resp)
        except DaxkoSSOError as exc:
            result = Result.failure(exc)
        return report(result, policy, self._log, "SSO redirect registration")

    # ── Members ───────────────────────────────────────────

    def get_my_info(self, user_token: str) -> Result[Any]:
        options = RequestOptions(headers={"Authorization": f"Bearer {user_token}"})
        try:
            resp = send(
                self._http,
                "GET",
                self._credentials.url(MY_INFO_PATH),
                options,
                self._timeout,
            )
            result = Result.success(decode_json(resp))
        except DaxkoSSOError as exc:
            result = Result.failure(exc)
        return report(result, self.policy("get_my_info"), self._log, "Member profile request")


# ── CLI ───────────────────────────────────────────────────


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Daxko SSO API client")
    add_credential_args(parser)

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("get")
    p.add_argument("--path", required=True)

    p = sub.add_parser("post")
    p.add_argument("--path", required=True)
    p.add_argument("--json", dest="body", default="{}")

    p = sub.add_parser("register")
    p.add_argument("--link", required=True)

    p = sub.add_parser("me")
    p.add_argument("--token", required=True)

    return parser


def _registration_summary(result: Result[requests.Response]) -> dict:
    summary = result.to_dict()
    if result.ok:
        summary["response"] = {"status_code": result.value.status_code}
    return summary


_DISPATCH = {
    "get": lambda c, a: c.get_request(a.path),
    "post": lambda c, a: c.post_request(a.path, json.loads(a.body)),
    "register": lambda c, a: c.register_sso_redirect_link(a.link),
    "me": lambda c, a: c.get_my_info(a.token),
}


def main() -> None:
    """CLI entry point for API operations."""
    args = _build_parser().parse_args()
    configure_logging(args.verbose)

    try:
        client = DaxkoSSOClient(credentials_from_args(args))
    except ConfigError as exc:
        print(json.dumps({"error": str(exc)}), file=sys.stderr)
        sys.exit(1)

    handler = _DISPATCH.get(args.command)
    if not handler:
        print("Unknown command", file=sys.stderr)
        sys.exit(1)

    try:
        result = handler(client, args)
    except json.JSONDecodeError as exc:
        print(json.dumps({"error": f"Invalid --json: {exc}"}), file=sys.stderr)
        sys.exit(1)

    if not result.ok:
        print(json.dumps({"error": str(result.error)}), file=sys.stderr)
        sys.exit(1)

    output = _registration_summary(result) if args.command == "register" else result.value
    json.dump(output, sys.stdout, ensure_ascii=False, indent=2)
    print()
