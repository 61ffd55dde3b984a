#!/usr/bin/env python3
"""Create an administrator account.

Usage:
    python scripts/create_admin.py --email admin@college.edu --name "Office Admin"

The password is read from ADMIN_PASSWORD or prompted for.
"""

import argparse
import asyncio
import getpass
import os
import sys

# Add project root to Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app.services.auth_service import AuthService
from core.db import async_session_factory
from core.exceptions.base import BadRequestException
from core.logging import Colors, get_logger, setup_logging

# Setup logging
setup_logging()
logger = get_logger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a concession portal administrator")
    parser.add_argument("--email", required=True)
    parser.add_argument("--name", default="Administrator")
    return parser.parse_args()


async def create_admin(email: str, name: str, password: str) -> None:
    async with async_session_factory() as db_session:
        try:
            user = await AuthService(db_session).create_admin(email, name, password)
        except BadRequestException as e:
            logger.warning(f"{Colors.BRIGHT_YELLOW}Skipped: {e.message}{Colors.RESET}")
            return
    logger.info(f"{Colors.BRIGHT_GREEN}Administrator ready: {user.email}{Colors.RESET}")


async def main():
    """Main entry point."""
    args = parse_args()
    password = os.environ.get("ADMIN_PASSWORD") or getpass.getpass("Password: ")
    try:
        await create_admin(args.email, args.name, password)
    except Exception as e:
        logger.error(f"{Colors.BRIGHT_RED}Admin creation failed: {e}{Colors.RESET}")
        raise


if __name__ == "__main__":
    asyncio.run(main())
