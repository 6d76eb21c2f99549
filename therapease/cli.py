"""
Command-line entry points.

``therapease-create-admin`` seeds the admin account; it is idempotent and
promotes an existing account with the same email instead of duplicating it.
"""

import argparse
import sys
from typing import Optional, Sequence

import structlog

from therapease.config import ADMIN_EMAIL, ADMIN_NAME, ADMIN_PASSWORD
from therapease.models.base import get_session_factory, init_db
from therapease.services.accounts import AccountService
from therapease.services.errors import ServiceError

logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="therapease-create-admin",
        description="Create or promote the Therapease admin account.",
    )
    parser.add_argument("--email", default=ADMIN_EMAIL, help="Admin email (default: $ADMIN_EMAIL)")
    parser.add_argument("--password", default=ADMIN_PASSWORD, help="Admin password (default: $ADMIN_PASSWORD)")
    parser.add_argument("--name", default=ADMIN_NAME, help="Display name (default: $ADMIN_NAME)")
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables before seeding",
    )
    return parser


def create_admin(argv: Optional[Sequence[str]] = None, service: Optional[AccountService] = None) -> int:
    args = build_parser().parse_args(argv)

    if service is None:
        if args.create_tables:
            init_db()
        service = AccountService(session_factory=get_session_factory())

    try:
        account, created = service.ensure_admin(args.email, args.password, args.name)
    except ServiceError as e:
        logger.error("admin_seed_failed", email=args.email, error=e.message)
        print(f"Failed to create admin: {e.message}", file=sys.stderr)
        return 1

    if created:
        print(f"Admin user created: {account.email}")
    else:
        print(f"Admin user already exists: {account.email}")
    return 0


def main() -> None:
    sys.exit(create_admin())


if __name__ == "__main__":
    main()
