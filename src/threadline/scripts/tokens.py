# src/threadline/scripts/tokens.py
"""
Operator tool for accounts and bearer tokens.

Login and credentials belong to the external auth service. This script covers
what operators need locally:
1. Create a user (optionally an admin)
2. Issue an access token for an existing user
"""
from __future__ import annotations

import argparse
import sys
from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from threadline.core.security import create_access_token
from threadline.db.session import session_scope
from threadline.models import User
from threadline.models.user import ROLE_ADMIN, ROLE_USER


def create_user(db: Session, username: str, admin: bool = False) -> User:
    """Create a user account.

    Args:
        db: Database session
        username: Unique display name
        admin: Grant the admin role

    Returns:
        The new user

    Raises:
        ValueError: If the username is taken
    """
    existing = db.execute(select(User).where(User.username == username)).scalar_one_or_none()
    if existing is not None:
        raise ValueError(f"Username {username!r} is already taken")
    user = User(username=username, role=ROLE_ADMIN if admin else ROLE_USER)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def issue_token(db: Session, username: str, minutes: int | None = None) -> str:
    """Return a bearer token for ``username``.

    Raises:
        ValueError: If no such user exists
    """
    user = db.execute(select(User).where(User.username == username)).scalar_one_or_none()
    if user is None:
        raise ValueError(f"No user named {username!r}")
    expires = timedelta(minutes=minutes) if minutes is not None else None
    return create_access_token(user.id, expires)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Manage Threadline users and tokens")
    subparsers = parser.add_subparsers(dest="command", required=True)

    create = subparsers.add_parser("create-user", help="Create a user account")
    create.add_argument("username")
    create.add_argument("--admin", action="store_true", help="Grant the admin role")

    issue = subparsers.add_parser("issue-token", help="Print a bearer token for a user")
    issue.add_argument("username")
    issue.add_argument("--minutes", type=int, default=None, help="Token lifetime override")

    args = parser.parse_args(argv)

    try:
        with session_scope() as db:
            if args.command == "create-user":
                user = create_user(db, args.username, admin=args.admin)
                print(f"[tokens] created user {user.username} (id={user.id}, role={user.role})")
            else:
                print(issue_token(db, args.username, args.minutes))
    except ValueError as exc:
        print(f"[tokens] ERROR: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
