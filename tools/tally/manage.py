#!/usr/bin/env python3
"""CLI management tool for Tally user accounts and tokens.

Provides commands to:
- Register users with bcrypt-hashed passwords
- List all users
- Remove users by email
- Log in and print a bearer token
- Resolve a bearer token back to its user
"""

import argparse
import getpass
import logging
import sys

from tally.auth.service import AuthService
from tally.config import build_auth_service, load_config
from tally.errors import (
    AuthenticationError,
    ConfigError,
    StoreError,
    UserExistsError,
)

logger = logging.getLogger("tally.manage")


def _read_password(args, prompt: str) -> str:
    if args.password:
        return args.password
    return getpass.getpass(prompt)


def add_user(args, auth: AuthService) -> int:
    """Register a new user with optional password prompt."""
    password = _read_password(args, f"Password for {args.email}: ")
    if not password:
        print("Error: Password cannot be empty", file=sys.stderr)
        return 1

    try:
        user = auth.register(args.name, args.email, password)
    except UserExistsError:
        print(f"Error: Email '{args.email}' is already registered", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"✓ User created: {user.id} ({user.email})")
    return 0


def list_users(args, auth: AuthService) -> int:
    """List all registered users."""
    users = auth.store.list_users()

    if not users:
        print("No users found")
        return 0

    print(f"{'ID':<38} {'Name':<20} {'Email':<30}")
    print("-" * 88)

    for user in users:
        print(f"{user.id:<38} {user.name:<20} {user.email:<30}")

    return 0


def remove_user(args, auth: AuthService) -> int:
    """Remove a user by email."""
    user = auth.store.get_user_by_email(args.email)
    if user is None:
        print(f"Error: User '{args.email}' not found", file=sys.stderr)
        return 1

    auth.store.delete_user(user.id)
    print(f"✓ Removed user {user.id} ({user.email})")
    return 0


def login(args, auth: AuthService) -> int:
    """Check credentials and print a bearer token."""
    password = _read_password(args, f"Password for {args.email}: ")

    try:
        token = auth.login(args.email, password)
    except AuthenticationError:
        print("Error: Invalid email or password", file=sys.stderr)
        return 1

    print(token)
    return 0


def whoami(args, auth: AuthService) -> int:
    """Print the user a token belongs to."""
    user = auth.authenticate(args.token)
    if user is None:
        print("Error: Token is invalid or expired", file=sys.stderr)
        return 1

    print(f"{user.id} {user.name} <{user.email}>")
    return 0


COMMANDS = {
    "add-user": add_user,
    "list-users": list_users,
    "remove-user": remove_user,
    "login": login,
    "whoami": whoami,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tally-manage",
        description="Manage Tally user accounts and bearer tokens",
    )
    parser.add_argument(
        "--config",
        "-c",
        default=None,
        help="Path to config.json (default: .tally/config.json if present)",
    )
    parser.add_argument(
        "--log-level",
        "-l",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    add_parser = subparsers.add_parser("add-user", help="Register a new user")
    add_parser.add_argument("--name", required=True, help="Display name")
    add_parser.add_argument("--email", required=True, help="Email address")
    add_parser.add_argument("--password", help="Password (prompted if omitted)")

    subparsers.add_parser("list-users", help="List all users")

    remove_parser = subparsers.add_parser("remove-user", help="Remove a user")
    remove_parser.add_argument("--email", required=True, help="Email address")

    login_parser = subparsers.add_parser("login", help="Print a bearer token")
    login_parser.add_argument("--email", required=True, help="Email address")
    login_parser.add_argument("--password", help="Password (prompted if omitted)")

    whoami_parser = subparsers.add_parser("whoami", help="Resolve a bearer token")
    whoami_parser.add_argument("--token", required=True, help="Bearer token")

    return parser


def main(argv=None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        config = load_config(args.config)
        auth = build_auth_service(config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except StoreError as e:
        print(f"Error: Store unavailable: {e}", file=sys.stderr)
        return 1

    try:
        return COMMANDS[args.command](args, auth)
    except StoreError as e:
        logger.error(f"Store error during {args.command}: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        auth.store.close()


if __name__ == "__main__":
    sys.exit(main())
