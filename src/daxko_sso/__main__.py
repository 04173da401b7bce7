"""
python -m daxko_sso auth <partner|user>   run a token grant
python -m daxko_sso <get|post|register|me>   API operations
"""

import argparse
import sys

AUTH_COMMAND = "auth"
API_COMMANDS = ("get", "post", "register", "me")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="daxko-sso",
        description="Daxko SSO client. Credentials come from DAXKO_SSO_* variables or flags.",
        epilog="Run 'daxko-sso <command> --help' for command options.",
    )
    parser.add_argument(
        "command",
        choices=(AUTH_COMMAND, *API_COMMANDS),
        help="'auth' runs a token grant; the rest call the API",
    )
    return parser


def main() -> None:
    parser = _build_parser()
    if len(sys.argv) < 2:
        parser.print_usage(sys.stderr)
        sys.exit(1)

    # Route on the first word only; each sub-CLI parses its own flags.
    first = sys.argv[1]
    if first in ("-h", "--help"):
        parser.print_help()
        sys.exit(0)

    if first == AUTH_COMMAND:
        sys.argv = [sys.argv[0], *sys.argv[2:]]
        from .auth import main as auth_main

        auth_main()
    elif first in API_COMMANDS or first.startswith("-"):
        from .client import main as client_main

        client_main()
    else:
        parser.error(f"unknown command {first!r}")


if __name__ == "__main__":
    main()
