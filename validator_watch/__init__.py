"""
Validator Watch
===============

Watches beacon-chain validator balances and alerts owners when a validator
misses rewards or is slashed.
"""

from .core import Monitor, MonitorService
from .models import Account, Alert, NotRewarded, Slashed
from .exceptions import ValidatorWatchError, StorageError, FetchError, ConfigError

__version__ = "0.1.0"

__all__ = [
    "Monitor",
    "MonitorService",
    "Account",
    "Alert",
    "NotRewarded",
    "Slashed",
    "ValidatorWatchError",
    "StorageError",
    "FetchError",
    "ConfigError",
]
