"""
Shared Data Models
==================

This package contains dataclasses used across the project.
"""

from .account import (
    Account,
    Alert,
    AlertMessage,
    NotRewarded,
    Slashed,
    encode_balance,
    decode_balance,
)

__all__ = [
    "Account",
    "Alert",
    "AlertMessage",
    "NotRewarded",
    "Slashed",
    "encode_balance",
    "decode_balance",
]
