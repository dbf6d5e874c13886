"""
Create an admin user for HTTP Basic access to the admin endpoints.
"""

from __future__ import annotations

import argparse
import getpass
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from portfolio.auth import create_user
from portfolio.dependencies import get_db_client
from shared.types import UserRole

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Create an admin user")
    parser.add_argument("email")
    parser.add_argument("--name", default="Admin")
    parser.add_argument(
        "--password",
        default=None,
        help="Password (prompted for when omitted)",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(message)s")
    db = get_db_client()
    if db.get_user_by_email(args.email):
        logger.error("User %s already exists", args.email)
        return 1

    password = args.password or getpass.getpass("Password: ")
    if len(password) < 8:
        logger.error("Password must be at least 8 characters")
        return 1

    user = create_user(db, email=args.email, password=password, name=args.name, role=UserRole.ADMIN)
    logger.info("Created admin user %s (%s)", user.email, user.id)
    return 0


if __name__ == "__main__":
    sys.exit(main())
