"""Command-line entry point for administrative tasks.

Usage:
    python main.py init-db
    python main.py create-admin --email admin@school.test --password ...
    python main.py cleanup            # run from cron to revoke expired temp admins
    python main.py list [--all]
"""

import argparse
import getpass
import logging
import sys
from typing import List, Optional

from config import ROLE_ADMIN
from core.database import SessionLocal, init_db
from core.dependencies import build_temp_admin_manager
from core.exceptions import ConflictError, DependencyError, ValidationError
from core.logging_config import setup_logging
from utils.user_manager import UserManager

logger = logging.getLogger(__name__)


def cmd_init_db(args: argparse.Namespace) -> int:
    init_db()
    print("Database tables are ready.")
    return 0


def cmd_create_admin(args: argparse.Namespace) -> int:
    """Bootstrap a primary administrator."""
    password = args.password or getpass.getpass("Password: ")
    db = SessionLocal()
    try:
        user = UserManager(db).create_user(
            email=args.email,
            password=password,
            role=ROLE_ADMIN,
            display_name=args.display_name,
        )
    except (ConflictError, ValidationError, DependencyError) as e:
        print(f"Could not create admin: {e}", file=sys.stderr)
        return 1
    finally:
        db.close()
    print(f"Created admin {user.email} ({user.user_id})")
    return 0


def cmd_cleanup(args: argparse.Namespace) -> int:
    db = SessionLocal()
    try:
        result = build_temp_admin_manager(db).cleanup_expired_temp_admins()
    finally:
        db.close()
    if not result.success:
        print(f"Cleanup failed: {result.error}", file=sys.stderr)
        return 1
    print(f"Processed {result.cleaned_count} expired temporary admin(s).")
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    db = SessionLocal()
    try:
        result = build_temp_admin_manager(db).list_temp_admins(include_inactive=args.all)
    finally:
        db.close()
    if not result.success:
        print(f"Listing failed: {result.error}", file=sys.stderr)
        return 1

    if not result.temp_admins:
        print("No temporary admins.")
    for record in result.temp_admins:
        state = "active" if record.is_active else f"revoked by {record.revoked_by}"
        print(
            f"{record.id}  {record.email:<30}  expires {record.expires_at.isoformat()}  "
            f"[{', '.join(record.permissions)}]  {state}"
        )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="School management administration")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create database tables").set_defaults(func=cmd_init_db)

    create_admin = subparsers.add_parser("create-admin", help="Create a primary administrator")
    create_admin.add_argument("--email", required=True)
    create_admin.add_argument("--password", help="Prompted for when omitted")
    create_admin.add_argument("--display-name", dest="display_name")
    create_admin.set_defaults(func=cmd_create_admin)

    subparsers.add_parser(
        "cleanup", help="Revoke expired temporary admins"
    ).set_defaults(func=cmd_cleanup)

    list_parser = subparsers.add_parser("list", help="List temporary admins")
    list_parser.add_argument("--all", action="store_true", help="Include revoked grants")
    list_parser.set_defaults(func=cmd_list)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    setup_logging()
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
