#!/usr/bin/env python3
"""
Script to mark every loan past its due date as overdue. Reads already do
this lazily; run this from cron when reports need the stored status to be
current without waiting for someone to list their loans.
"""
import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from libris.core import db
from libris.core.borrowing import Lending


def main():
    parser = argparse.ArgumentParser(
        description="Persist the overdue status of loans past their due date"
    )
    parser.add_argument("--verbose", action="store_true", default=False, help="Log at INFO level")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)
    with db.SessionLocal() as session:
        count = Lending.sweep_overdue(session)
    print(f"Marked {count} loans overdue")


if __name__ == "__main__":
    main()
