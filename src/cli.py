"""
Command line helpers.

    cafeteria-admin create-admin --username boss --full-name "Head Office"

The password is prompted for, never passed on the command line.
"""
import argparse
import asyncio
import getpass
import logging
import sys
from src.core.database import SessionLocal, engine
from src.core.exceptions import CafeteriaError
from src.models.database import Base
from src.services.account_service import AccountService
from src.stores.sessions import SessionStore
from src.stores.users import UserStore


MIN_PASSWORD_LENGTH = 6


async def create_admin(username: str, full_name: str, password: str) -> None:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        accounts = AccountService(UserStore(db), SessionStore(db))
        await accounts.create_admin(username, password, full_name)
    finally:
        db.close()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="cafeteria-admin")
    commands = parser.add_subparsers(dest="command", required=True)

    create = commands.add_parser("create-admin", help="create an administrator account")
    create.add_argument("--username", required=True)
    create.add_argument("--full-name", required=True)

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)

    password = getpass.getpass("Password: ")
    if len(password) < MIN_PASSWORD_LENGTH:
        print(f"Password must be at least {MIN_PASSWORD_LENGTH} characters", file=sys.stderr)
        return 2

    try:
        asyncio.run(create_admin(args.username, args.full_name, password))
    except CafeteriaError as e:
        print(f"Could not create admin: {e}", file=sys.stderr)
        return 1

    print(f"Admin {args.username} created")
    return 0


if __name__ == "__main__":
    sys.exit(main())
