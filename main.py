#!/usr/bin/env python3
"""
CushionTrack -- operator commands for the user and session tables.

The web API only lets an admin create admins, so the very first admin account
(and any recovery after losing the last one) goes through this CLI.

Usage:
  python main.py create-user owner@example.com "Shop Owner" --role admin
  python main.py set-role alice@example.com editor
  python main.py purge-sessions

Environment variables:
  DATABASE_URL  SQLAlchemy URL of the database (default: cushiontrack.db beside this file)
  SECRET_KEY    Required unless DEBUG=true; see core/config.py
"""

import argparse
import getpass
import sys
from typing import Optional

from sqlalchemy.exc import IntegrityError

from auth.models import ROLES, User
from auth.sessions import SessionStore
from auth.store import UserStore
from auth.tokens import MAX_PASSWORD_BYTES, hash_password


def _read_password() -> Optional[str]:
    """Prompt twice for a password. Returns None if the entries are unusable."""
    password = getpass.getpass("Password: ")
    if not password:
        print("  [!] Password must not be empty.")
        return None
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        print(f"  [!] Password must be at most {MAX_PASSWORD_BYTES} bytes.")
        return None
    if getpass.getpass("Repeat password: ") != password:
        print("  [!] Passwords do not match.")
        return None
    return password


def create_user(args: argparse.Namespace) -> int:
    password = _read_password()
    if password is None:
        return 1
    store = UserStore(args.database_url)
    try:
        user_id = store.create_user(
            User(email=args.email, name=args.name, role=args.role, password_hash=hash_password(password))
        )
    except IntegrityError:
        print(f"  [!] {args.email} is already registered.")
        return 1
    finally:
        store.close()
    print(f"Created {args.role} {args.email} (id {user_id}).")
    return 0


def set_role(args: argparse.Namespace) -> int:
    store = UserStore(args.database_url)
    try:
        user = store.get_by_email(args.email)
        if user is None:
            print(f"  [!] No user with email {args.email}.")
            return 1
        if user.role == "admin" and args.role != "admin" and store.count_admins() <= 1:
            print("  [!] Refusing to demote the last admin.")
            return 1
        store.update_user(user.id, role=args.role)
    finally:
        store.close()
    # Sessions resolve the role on every request, so the change is already live.
    print(f"{args.email}: {user.role} -> {args.role}")
    return 0


def purge_sessions(args: argparse.Namespace) -> int:
    store = SessionStore(args.database_url)
    try:
        purged = store.purge_expired()
    finally:
        store.close()
    print(f"Purged {purged} expired session(s).")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="cushiontrack",
        description="Operator commands for CushionTrack accounts and sessions.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py create-user owner@example.com "Shop Owner" --role admin
  python main.py set-role alice@example.com editor
  python main.py purge-sessions
        """,
    )
    parser.add_argument(
        "--database-url",
        metavar="URL",
        default=None,
        help="SQLAlchemy database URL (default: DATABASE_URL setting)",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    create = commands.add_parser("create-user", help="Create an account with an explicit role")
    create.add_argument("email")
    create.add_argument("name")
    create.add_argument("--role", choices=ROLES, default="guest", help="Role for the new account (default: guest)")
    create.set_defaults(func=create_user)

    promote = commands.add_parser("set-role", help="Change the role of an existing account")
    promote.add_argument("email")
    promote.add_argument("role", choices=ROLES)
    promote.set_defaults(func=set_role)

    purge = commands.add_parser("purge-sessions", help="Delete expired sessions")
    purge.set_defaults(func=purge_sessions)

    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
