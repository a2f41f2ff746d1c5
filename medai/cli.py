# -*- coding: utf-8 -*-
"""
Admin CLI for the MedAI database.

Usage:
    medai-admin init-db
    medai-admin promote <email> [--role admin|user]
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from .app_db import AppDatabase
from .auth.models import Role
from .auth.storage import set_user_role
from .config import Settings


def _open_db(args: argparse.Namespace) -> AppDatabase:
    db_path = Path(args.db_path) if args.db_path else Settings().db_path
    db = AppDatabase(db_path)
    db.open()
    return db


def cmd_init_db(args: argparse.Namespace) -> int:
    """Create the schema if it does not exist yet."""
    db = _open_db(args)
    try:
        print(f"Database ready: {db.db_path}")
    finally:
        db.close()
    return 0


def cmd_promote(args: argparse.Namespace) -> int:
    """Change a registered user's role."""
    db = _open_db(args)
    try:
        if not set_user_role(db, args.email, Role(args.role)):
            print(f"Error: No user registered with email {args.email}")
            return 1
    finally:
        db.close()
    print(f"{args.email} is now {args.role}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="MedAI admin CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--db-path",
        help="Path to the SQLite database (default: MEDAI_DB_PATH or data/medai.db)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("init-db", help="Create the database schema")

    promote_parser = subparsers.add_parser("promote", help="Set a user's role")
    promote_parser.add_argument("email", help="Email of a registered user")
    promote_parser.add_argument(
        "--role",
        choices=[r.value for r in Role],
        default=Role.admin.value,
        help="Role to assign (default: admin)",
    )

    args = parser.parse_args(argv)

    if args.command == "init-db":
        return cmd_init_db(args)
    if args.command == "promote":
        return cmd_promote(args)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
