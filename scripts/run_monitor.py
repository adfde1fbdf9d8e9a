#!/usr/bin/env python3
"""
Validator Monitor Service - CLI Entry Point
===========================================

Checks watched validator balances every interval and sends Telegram alerts
for missed rewards and slashings.

Usage:
    # Start monitor
    python scripts/run_monitor.py

    # Dry run (console alerts only, no Telegram)
    python scripts/run_monitor.py --dry-run

    # Single check, then exit
    python scripts/run_monitor.py --once --dry-run
"""

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from datetime import datetime
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from validator_watch.alerts import TelegramAlerts
from validator_watch.config import Config, DEFAULT_LOG_FILE
from validator_watch.core import Monitor, MonitorService
from validator_watch.exceptions import ConfigError, ValidatorWatchError


def setup_logging(log_level: str = "INFO", log_file: Path = DEFAULT_LOG_FILE):
    """Configure logging for the monitor service."""
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    # Date-stamped log file (e.g., logs/monitor_2026-01-18.log)
    date_str = datetime.now().strftime("%Y-%m-%d")
    dated_log_file = log_path.parent / f"{log_path.stem}_{date_str}{log_path.suffix}"

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, log_level.upper()))

    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    file_handler = logging.FileHandler(dated_log_file)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Reduce noise from HTTP libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)
    logging.getLogger("aiohttp").setLevel(logging.WARNING)

    root_logger.info(f"Logging to: {dated_log_file}")


async def run_service(service: MonitorService, once: bool) -> int:
    if once:
        try:
            alerts = await service.tick()
        finally:
            await service.monitor.close()
        print(f"{len(alerts)} alerts")
        return 0

    await service.run_forever()
    return 0


def main():
    try:
        config = Config.from_env()
    except ConfigError as e:
        print(f"Configuration error: {e}")
        sys.exit(1)

    parser = argparse.ArgumentParser(
        description='Validator Balance Monitor Service',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment:
  NODE_API_URL        Beacon node base URL (required)
  DB_PATH             Watch-list database path
  MONITOR_INTERVAL    Seconds between checks (default: 300)
  TELEGRAM_BOT_TOKEN  Bot token for alert delivery

Examples:
  python scripts/run_monitor.py                  # Start monitor
  python scripts/run_monitor.py --dry-run        # Console alerts only
  python scripts/run_monitor.py --once --dry-run # One check, then exit
        """
    )

    parser.add_argument(
        '--interval',
        type=int,
        default=config.monitor_interval_sec,
        help=f'Seconds between checks (default: {config.monitor_interval_sec})'
    )

    parser.add_argument(
        '--api-url',
        default=config.node_api_url,
        help='Beacon node base URL (default: $NODE_API_URL)'
    )

    parser.add_argument(
        '--db-path',
        type=Path,
        default=config.db_path,
        help=f'Watch-list database (default: {config.db_path})'
    )

    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Print alerts to console instead of sending to Telegram'
    )

    parser.add_argument(
        '--once',
        action='store_true',
        help='Run a single check and exit'
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default=config.log_level,
        help=f'Log level (default: {config.log_level})'
    )

    args = parser.parse_args()

    setup_logging(args.log_level, config.log_file)
    logger = logging.getLogger(__name__)

    cfg = replace(
        config,
        node_api_url=args.api_url,
        db_path=args.db_path,
        monitor_interval_sec=args.interval,
    )

    print("\n" + "=" * 60)
    print("VALIDATOR MONITOR SERVICE")
    print("=" * 60)
    print(f"Beacon node:  {cfg.node_api_url}")
    print(f"Database:     {cfg.db_path}")
    print(f"Interval:     {cfg.monitor_interval_sec} seconds")
    print(f"Dry run:      {args.dry_run}")
    print(f"Log level:    {args.log_level}")
    print("=" * 60)

    alerts = TelegramAlerts.from_config(cfg, dry_run=args.dry_run)
    if alerts is None:
        print("\nWARNING: TELEGRAM_BOT_TOKEN not set!")
        print("Set environment variable or use --dry-run for console output.")
        sys.exit(1)

    try:
        monitor = Monitor.from_config(cfg)
        service = MonitorService(monitor, alerts, interval_seconds=cfg.monitor_interval_sec)

        print("\nStarting monitor service...")
        print("Press Ctrl+C to stop\n")

        sys.exit(asyncio.run(run_service(service, args.once)))

    except KeyboardInterrupt:
        print("\n\nMonitor stopped by user")
        sys.exit(0)
    except ValidatorWatchError as e:
        logger.error(f"Monitor service error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
