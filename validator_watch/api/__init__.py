"""
API Package
===========

External API clients.

Components:
- beacon.py: BeaconClient, batched validator balance fetching
"""

from .beacon import (
    BeaconClient,
    BALANCES_PATH,
    chunk_indices,
)

__all__ = [
    "BeaconClient",
    "BALANCES_PATH",
    "chunk_indices",
]
