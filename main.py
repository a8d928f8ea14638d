#!/usr/bin/env python3
"""
SessionAuth admin CLI -- account and session maintenance without the HTTP API.

Usage:
  python main.py create-user alice          (password is prompted)
  python main.py delete-user alice
  python main.py purge-sessions

Reads DATABASE_URL, SECRET_KEY, etc. from the environment or .env, exactly
like the API does.
"""

import argparse
import getpass
import sys
from typing import Optional

from auth.models import Invalid
from auth.service import create_account
from auth.sessions import SessionStore
from auth.store import UserStore
from core.config import get_settings


def _create_user(store: UserStore, username: str, password: Optional[str]) -> int:
    if password is None:
        password = getpass.getpass("Password: ")
        if password != getpass.getpass("Confirm password: "):
            print("  [!] Passwords do not match.")
            return 1
    result = create_account(store, username, password)
    if isinstance(result, Invalid):
        for error in result.errors:
            print(f"  [!] {error.field}: {error.message}")
        return 1
    print(f"  Created user {result.user.username} (id {result.user.id}).")
    return 0


def _delete_user(store: UserStore, username: str) -> int:
    user = store.get_by_username(username)
    if user is None or not store.delete_user(user.id):
        print(f"  [!] No user named {username!r}.")
        return 1
    print(f"  Deleted user {username} (id {user.id}).")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="sessionauth",
        description="Account and session maintenance for SessionAuth.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create-user", help="Create an account")
    create.add_argument("username")
    create.add_argument(
        "--password",
        default=None,
        help="Password (prompted when omitted; avoid on shared machines, it lands in shell history)",
    )

    delete = sub.add_parser("delete-user", help="Delete an account; its sessions stop resolving")
    delete.add_argument("username")

    sub.add_parser("purge-sessions", help="Delete expired sessions")

    args = parser.parse_args(argv)
    settings = get_settings()

    if args.command == "purge-sessions":
        sessions = SessionStore(
            settings.database_url,
            secret_key=settings.secret_key,
            ttl_seconds=settings.session_ttl_seconds,
        )
        try:
            print(f"  Purged {sessions.purge_expired()} expired session(s).")
        finally:
            sessions.close()
        return 0

    store = UserStore(settings.database_url)
    try:
        if args.command == "create-user":
            return _create_user(store, args.username, args.password)
        return _delete_user(store, args.username)
    finally:
        store.close()


if __name__ == "__main__":
    sys.exit(main())
