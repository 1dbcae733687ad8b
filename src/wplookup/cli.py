"""Command-line interface for wplookup.

This module provides one-shot searches, a login check, the HTTP server and
the extension configuration helper.
"""

import asyncio
import json
import sys
from typing import Optional

from loguru import logger

from wplookup.config import get_config
from wplookup.errors import WplookupError
from wplookup.models.person import Credentials, SearchRequest
from wplookup.services.batch import run_login_check, run_search_batch
from wplookup.services.extension_config import update_api_key, validate_config
from wplookup.version import format_version_string

__all__ = ["cli_main"]

MISSING_CREDENTIALS = (
    "✗ Missing credentials: pass --email/--password or set "
    "WHITEPAGES_EMAIL/WHITEPAGES_PASSWORD"
)


def print_version() -> None:
    """Print version information."""
    print(format_version_string())


def print_help() -> None:
    """Print CLI help message."""
    print_version()
    print()
    print("Usage: wplookup [COMMAND] [OPTIONS]")
    print()
    print("Commands:")
    print("  search NAME LOCATION [NAME LOCATION ...]")
    print("                          Search people and print the records as JSON")
    print("  login-check             Log in and report the session markers")
    print("  serve                   Start the HTTP API server")
    print("  configure-extension KEY Write KEY into the solver extension config")
    print("  version                 Show version information")
    print("  help                    Show this help message")
    print()
    print("Options:")
    print("  --email EMAIL           Login email (default: WHITEPAGES_EMAIL)")
    print("  --password PASSWORD     Login password (default: WHITEPAGES_PASSWORD)")
    print()
    print("Examples:")
    print('  wplookup search "John Smith" "New York, NY"')
    print('  wplookup search "John Smith" "New York, NY" "Jane Doe" "Austin, TX"')
    print("  wplookup configure-extension 0123456789abcdef")
    print()


def split_options(args: list[str]) -> tuple[list[str], dict[str, str]]:
    """Separate ``--name value`` options from positional arguments.

    Raises:
        ValueError: If an option has no value
    """
    positional: list[str] = []
    options: dict[str, str] = {}
    i = 0
    while i < len(args):
        arg = args[i]
        if arg.startswith("--") and len(arg) > 2:
            if i + 1 >= len(args):
                raise ValueError(f"Option {arg} requires a value")
            options[arg[2:]] = args[i + 1]
            i += 2
        else:
            positional.append(arg)
            i += 1
    return positional, options


def resolve_credentials(options: dict[str, str]) -> Credentials | None:
    """Credentials from options, falling back to configuration."""
    config = get_config()
    email = options.get("email") or config.whitepages_email
    password = options.get("password") or config.whitepages_password
    if not email or not password:
        return None
    return Credentials(email=email, password=password)


def parse_search_requests(positional: list[str]) -> list[SearchRequest]:
    """Pair positional arguments into name/location requests.

    Raises:
        ValueError: If the arguments do not form complete pairs
    """
    if not positional or len(positional) % 2 != 0:
        raise ValueError("search needs NAME LOCATION pairs")
    return [
        SearchRequest(name=positional[i], location=positional[i + 1])
        for i in range(0, len(positional), 2)
    ]


def cmd_search(args: list[str]) -> int:
    """Run a search batch and print the records.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    try:
        positional, options = split_options(args)
        requests = parse_search_requests(positional)
    except ValueError as e:
        print(f"✗ {e}")
        return 1

    credentials = resolve_credentials(options)
    if credentials is None:
        print(MISSING_CREDENTIALS)
        return 1

    try:
        records = asyncio.run(run_search_batch(credentials, requests))
    except KeyboardInterrupt:
        print("\n✗ Search interrupted")
        return 1
    except WplookupError as e:
        print(f"✗ Search failed: {e}")
        return 1
    except Exception as e:
        logger.exception("Search batch error")
        print(f"✗ Error: {e}")
        return 1

    print(json.dumps([record.to_api() for record in records], indent=2))
    return 0


def cmd_login_check(args: list[str]) -> int:
    """Log in and report whether the session shows as logged in.

    Returns:
        Exit code (0 if logged in, 1 otherwise)
    """
    try:
        _, options = split_options(args)
    except ValueError as e:
        print(f"✗ {e}")
        return 1

    credentials = resolve_credentials(options)
    if credentials is None:
        print(MISSING_CREDENTIALS)
        return 1

    try:
        status = asyncio.run(run_login_check(credentials))
    except KeyboardInterrupt:
        print("\n✗ Login check interrupted")
        return 1
    except WplookupError as e:
        print(f"✗ Login check failed: {e}")
        return 1
    except Exception as e:
        logger.exception("Login check error")
        print(f"✗ Error: {e}")
        return 1

    print(f"Logged-in marker:       {status.logged_in_marker}")
    print(f"Logged-out block hidden: {status.logged_out_hidden}")
    if status.is_logged_in:
        print(f"✓ Logged in as {credentials.email}")
        return 0

    print("✗ Not logged in")
    return 1


def cmd_serve() -> int:
    """Start the HTTP API server.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    try:
        from wplookup.main import main as run_server

        run_server()
        return 0
    except KeyboardInterrupt:
        print("\n✓ wplookup server stopped")
        return 0
    except Exception as e:
        logger.exception("Server error")
        print(f"✗ Server error: {e}", file=sys.stderr)
        return 1


def cmd_configure_extension(args: list[str]) -> int:
    """Write the API key into the solver extension config and validate it.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    if len(args) != 1:
        print("✗ Usage: wplookup configure-extension KEY")
        return 1

    path = get_config().extension_config_path
    try:
        update_api_key(path, args[0])
        validate_config(path)
    except WplookupError as e:
        print(f"✗ {e}")
        return 1

    print(f"✓ Extension configured: {path}")
    return 0


def cli_main(args: Optional[list[str]] = None) -> int:
    """Main CLI entry point.

    Args:
        args: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    if args is None:
        args = sys.argv[1:]

    # No command or help
    if not args or args[0] in ("help", "-h", "--help"):
        print_help()
        return 0

    command = args[0].lower()
    rest = args[1:]

    if command == "search":
        return cmd_search(rest)
    elif command == "login-check":
        return cmd_login_check(rest)
    elif command == "serve":
        return cmd_serve()
    elif command == "configure-extension":
        return cmd_configure_extension(rest)
    elif command in ("version", "--version"):
        print_version()
        return 0
    else:
        print(f"✗ Unknown command: {command}")
        print()
        print_help()
        return 1
