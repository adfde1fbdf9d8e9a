#!/usr/bin/env python3
"""
Watch-List Management CLI
=========================

Manage watched validators from the command line.

Commands:
    watch   Start watching a validator for an owner
    forget  Stop watching a validator for an owner
    list    List watched validators with their last balance
    check   Run one balance check and print the alerts (no delivery)
"""

import argparse
import asyncio
import sys
from dataclasses import replace
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from validator_watch.config import Config, DEFAULT_DB_PATH
from validator_watch.core import Monitor
from validator_watch.db import WatchListDB
from validator_watch.exceptions import ValidatorWatchError
from validator_watch.models import Account


def cmd_watch(args):
    """Start watching a validator."""
    db = WatchListDB(args.db_path)
    db.watch(Account(args.owner, args.index))
    print(f"start watching validator {args.index} for {args.owner}")


def cmd_forget(args):
    """Stop watching a validator."""
    db = WatchListDB(args.db_path)
    if db.forget(Account(args.owner, args.index)):
        print(f"stop watching validator {args.index} for {args.owner}")
    else:
        print(f"validator {args.index} was not watched for {args.owner}")


def cmd_list(args):
    """List watched validators."""
    db = WatchListDB(args.db_path)
    entries = db.list()

    print(f"\n=== Watched validators ({len(entries)}) ===\n")
    for account, balance in entries:
        print(f"  owner {account.owner_id:<20} validator {account.external_index:<10} balance {balance:,}")


def cmd_check(args):
    """Run one balance check."""
    config = Config.from_env()
    cfg = replace(
        config,
        db_path=args.db_path or config.db_path,
        node_api_url=args.api_url or config.node_api_url,
    )

    async def _check():
        monitor = Monitor.from_config(cfg)
        try:
            return await monitor.run()
        finally:
            await monitor.close()

    alerts = asyncio.run(_check())
    print(f"{len(alerts)} alerts")
    for alert in alerts:
        print(f"  -> {alert.account.owner_id}: {alert}")


def main():
    parser = argparse.ArgumentParser(description="Manage the validator watch-list")
    parser.add_argument(
        "--db-path",
        type=Path,
        default=None,
        help=f"Watch-list database (default: $DB_PATH or {DEFAULT_DB_PATH})",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, func, help_text in (
        ("watch", cmd_watch, "Start watching a validator"),
        ("forget", cmd_forget, "Stop watching a validator"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("owner", type=int, help="Owner (user) id")
        sub.add_argument("index", type=int, help="Validator index")
        sub.set_defaults(func=func)

    sub = subparsers.add_parser("list", help="List watched validators")
    sub.set_defaults(func=cmd_list)

    sub = subparsers.add_parser("check", help="Run one balance check, print alerts")
    sub.add_argument("--api-url", help="Beacon node base URL (default: $NODE_API_URL)")
    sub.set_defaults(func=cmd_check)

    args = parser.parse_args()

    try:
        args.func(args)
    except (ValidatorWatchError, ValueError) as e:
        print(f"Error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
