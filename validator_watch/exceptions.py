"""Exception hierarchy for validator-watch.

Everything raised by the monitoring engine inherits from ValidatorWatchError,
so callers can catch broad or specific failures:

    try:
        alerts = await monitor.run()
    except FetchError as e:
        logger.error(f"Beacon node unreachable: {e}")
    except ValidatorWatchError as e:
        logger.error(f"Monitor run failed: {e}")
"""

from typing import Optional


class ValidatorWatchError(Exception):
    """Base exception for all validator-watch errors."""


class StorageError(ValidatorWatchError):
    """Raised when the watch-list database cannot be read or written."""


class FetchError(ValidatorWatchError):
    """Raised when balances cannot be fetched from the beacon node.

    The underlying exception (network error, bad status, undecodable body)
    is kept on ``cause``.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class ConfigError(ValidatorWatchError):
    """Raised when configuration is missing or invalid."""
