"""
Watch-List Database

Durable mapping of (owner, validator index) -> last observed balance.
This is the source of truth for which validators are watched and what
their balance was at the last check.

Storage: data/state.db
    account_key  BLOB(16)  owner_id u64 LE + validator index u64 LE
    balance      BLOB(8)   u64 LE
"""

import sqlite3
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import List, Optional, Tuple

from ..config import DEFAULT_DB_TIMEOUT_SEC, db_path_from_env
from ..exceptions import StorageError
from ..models import Account, encode_balance, decode_balance

logger = logging.getLogger(__name__)


class WatchListDB:
    """
    SQLite store for watched validator accounts.

    Every operation uses its own connection and commits before returning,
    so a successful call has been written durably (synchronous=FULL).
    WAL mode lets a monitor run read while watch/forget write.
    """

    def __init__(self, db_path: Path = None, timeout: float = None):
        self.db_path = Path(db_path) if db_path else db_path_from_env()
        self.timeout = timeout if timeout is not None else DEFAULT_DB_TIMEOUT_SEC
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"cannot create database directory: {e}") from e
        self._init_db()
        logger.info(f"Watch-list database initialized: {self.db_path}")

    @contextmanager
    def _get_connection(self):
        """Get a database connection; commit on success, roll back on error."""
        try:
            conn = sqlite3.connect(str(self.db_path), timeout=self.timeout)
        except sqlite3.Error as e:
            raise StorageError(f"cannot open {self.db_path}: {e}") from e
        try:
            conn.execute("PRAGMA synchronous=FULL")
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StorageError(f"database error: {e}") from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_db(self):
        """Initialize database schema."""
        with self._get_connection() as conn:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("""
                CREATE TABLE IF NOT EXISTS watchlist (
                    account_key BLOB PRIMARY KEY,
                    balance BLOB NOT NULL
                )
            """)

    # -------------------------------------------------------------------------
    # Watch / Forget
    # -------------------------------------------------------------------------

    def watch(self, account: Account):
        """
        Start watching an account with a zero baseline balance.

        Watching an account that is already watched resets its balance to 0.
        """
        with self._get_connection() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO watchlist (account_key, balance) VALUES (?, ?)",
                (account.key(), encode_balance(0)),
            )

    def forget(self, account: Account) -> bool:
        """
        Stop watching an account.

        Returns:
            True if the account was watched, False if it was not (not an error)
        """
        with self._get_connection() as conn:
            cursor = conn.execute(
                "DELETE FROM watchlist WHERE account_key = ?",
                (account.key(),),
            )
            return cursor.rowcount > 0

    # -------------------------------------------------------------------------
    # Balances
    # -------------------------------------------------------------------------

    def update_balance(self, account: Account, balance: int) -> bool:
        """
        Overwrite the stored balance of a watched account.

        Only existing entries are updated; an account forgotten since the
        last list() is not re-created.

        Returns:
            True if the entry existed and was updated
        """
        with self._get_connection() as conn:
            cursor = conn.execute(
                "UPDATE watchlist SET balance = ? WHERE account_key = ?",
                (encode_balance(balance), account.key()),
            )
            return cursor.rowcount > 0

    def get_balance(self, account: Account) -> Optional[int]:
        """Get the stored balance for an account, or None if not watched."""
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT balance FROM watchlist WHERE account_key = ?",
                (account.key(),),
            ).fetchone()

        if row is None:
            return None
        return self._decode_row(account.key(), row[0])[1]

    # -------------------------------------------------------------------------
    # Query
    # -------------------------------------------------------------------------

    def list(self) -> List[Tuple[Account, int]]:
        """
        Get every watched account with its last observed balance.

        Read in a single statement, ordered by key bytes.

        Raises:
            StorageError: On I/O failure or a corrupt row
        """
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT account_key, balance FROM watchlist ORDER BY account_key"
            ).fetchall()

        return [self._decode_row(key, value) for key, value in rows]

    def count(self) -> int:
        """Number of watched accounts."""
        with self._get_connection() as conn:
            return conn.execute("SELECT COUNT(*) FROM watchlist").fetchone()[0]

    # -------------------------------------------------------------------------
    # Private Helpers
    # -------------------------------------------------------------------------

    def _decode_row(self, key: bytes, value: bytes) -> Tuple[Account, int]:
        """Convert a database row to (Account, balance)."""
        try:
            return Account.from_key(key), decode_balance(value)
        except (TypeError, ValueError) as e:
            raise StorageError(f"corrupt watch-list entry {key!r}: {e}") from e
