#!/usr/bin/env python3
"""
Script to create a Libris administrator account.
"""
import argparse
import getpass
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from libris.core import db
from libris.core.accounts import Accounts
from libris.core.exceptions import LibrisAPIError


def main():
    parser = argparse.ArgumentParser(
        description="Create an administrator account for Libris"
    )
    parser.add_argument("--username", type=str, required=True, help="Login name (3-30 letters, numbers, underscores)")
    parser.add_argument("--firstname", type=str, required=True, help="First name")
    parser.add_argument("--surname", type=str, required=True, help="Surname")
    parser.add_argument("--display-name", type=str, default=None, help="Name shown in the UI (defaults to the username)")
    parser.add_argument(
        "--password",
        type=str,
        default=None,
        help="Password; prompted for when omitted"
    )

    args = parser.parse_args()
    password = args.password or getpass.getpass("Password: ")

    db.init()
    with db.SessionLocal() as session:
        try:
            user = Accounts.register(session, {
                "username": args.username,
                "password": password,
                "firstname": args.firstname,
                "surname": args.surname,
                "display_name": args.display_name or args.username,
            }, is_admin=True)
        except LibrisAPIError as e:
            print(f"Error: {e.message}")
            for error in getattr(e, "errors", []):
                print(f"  {error['field']}: {error['message']}")
            sys.exit(1)

    print(f"Created administrator {user.username} (id {user.id})")


if __name__ == "__main__":
    main()
