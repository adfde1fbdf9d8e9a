"""
Monitor

One check cycle over every watched validator:
1. Snapshot the watch-list
2. Fetch fresh balances in one batched call
3. Compare each against the stored balance and collect alerts
4. Store the fresh balance
"""

import logging
import re
from typing import List, Optional

from ..api.beacon import BeaconClient
from ..config import Config
from ..db.watchlist_db import WatchListDB
from ..models import Account, Alert, NotRewarded, Slashed
from ..models.account import U64_MAX

logger = logging.getLogger(__name__)

# Leading zeros are dropped before int(); at most 20 significant digits fit a u64
_U64_PATTERN = re.compile(r"\+?0*([0-9]{1,20})")


def parse_balance(value: str, account: Optional[Account] = None) -> int:
    """
    Parse a fetched balance as u64.

    Anything that is not a decimal u64 is treated as 0 so one bad field
    cannot fail the cycle. A warning is logged for the account.
    """
    match = _U64_PATTERN.fullmatch(value) if isinstance(value, str) else None
    if match:
        balance = int(match.group(1))
        if balance <= U64_MAX:
            return balance
    logger.warning(f"unparseable balance {value!r} for {account}, treating as 0")
    return 0


def evaluate_balance(account: Account, prev_balance: int, new_balance: int) -> Optional[Alert]:
    """
    Compare a fresh balance with the stored one.

    Returns:
        NotRewarded alert if unchanged, Slashed alert if lower, None if higher
    """
    validator_index = account.external_index

    if new_balance == prev_balance:
        return Alert(account, NotRewarded(validator_index))
    if new_balance < prev_balance:
        return Alert(account, Slashed(validator_index, prev_balance - new_balance))
    return None


class Monitor:
    """
    Validator balance monitor.

    Owns the watch-list database and the beacon client. watch() and forget()
    may be called from a command handler while run() is in progress; run()
    itself must not overlap with another run() (the caller serializes ticks).
    """

    def __init__(self, db: WatchListDB, client: BeaconClient):
        self.db = db
        self.client = client

    @classmethod
    def from_config(cls, cfg: Config = None) -> "Monitor":
        """Build a monitor from configuration."""
        cfg = cfg or Config.from_env()
        return cls(
            db=WatchListDB(cfg.db_path, timeout=cfg.db_timeout_sec),
            client=BeaconClient(cfg.require_node_api_url(), batch_size=cfg.max_ids_per_request),
        )

    async def close(self):
        await self.client.close()

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def watch(self, account: Account):
        """Start watching an account (resets its baseline to 0)."""
        self.db.watch(account)
        logger.info(f"start watching validator {account.external_index} for {account.owner_id}")

    def forget(self, account: Account):
        """Stop watching an account. No-op if it was not watched."""
        if self.db.forget(account):
            logger.info(f"stop watching validator {account.external_index} for {account.owner_id}")
        else:
            logger.debug(f"forget: {account} was not watched")

    # -------------------------------------------------------------------------
    # Check Cycle
    # -------------------------------------------------------------------------

    async def run(self) -> List[Alert]:
        """
        Run one check cycle.

        Returns:
            Alerts in watch-list order

        Raises:
            FetchError: Balances could not be fetched; nothing was stored
            StorageError: The watch-list could not be read or updated
        """
        accounts = self.db.list()
        logger.info(f"monitor run start: {len(accounts)} accounts monitored")

        balances = await self.client.get_balances(
            [account.external_index for account, _ in accounts]
        )

        alerts: List[Alert] = []

        for account, prev_balance in accounts:
            validator_index = account.external_index

            fetched = balances.get(str(validator_index))
            if fetched is None:
                logger.warning(f"balance not found for validator {validator_index}")
                continue

            new_balance = parse_balance(fetched, account)
            logger.debug(f"balance for {account} balance diff: {new_balance - prev_balance}")

            alert = evaluate_balance(account, prev_balance, new_balance)
            if alert is not None:
                if isinstance(alert.message, Slashed):
                    logger.info(f"account was slashed {alert.message.amount} units: {account}")
                else:
                    logger.info(f"account was not rewarded: {account}")
                alerts.append(alert)

            if not self.db.update_balance(account, new_balance):
                logger.debug(f"{account} was forgotten during the run, balance not stored")

        logger.info(f"{len(alerts)} alerts to send")
        return alerts
