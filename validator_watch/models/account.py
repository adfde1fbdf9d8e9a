"""
Account Models
==============

Dataclasses for watched validator accounts and the alerts they produce.

On disk an account is a 16-byte key (owner id then validator index, both
u64 little-endian) and a balance is an 8-byte u64 little-endian value.
"""

import struct
from dataclasses import dataclass
from typing import Union

U64_MAX = 2**64 - 1

_KEY = struct.Struct("<QQ")
_BALANCE = struct.Struct("<Q")

KEY_SIZE = _KEY.size  # 16
BALANCE_SIZE = _BALANCE.size  # 8


def _check_u64(name: str, value: int):
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if value < 0 or value > U64_MAX:
        raise ValueError(f"{name} out of u64 range: {value}")


@dataclass(frozen=True)
class Account:
    """A (subscriber, validator) pair. Unique key of a watch entry."""
    owner_id: int
    external_index: int

    def __post_init__(self):
        _check_u64("owner_id", self.owner_id)
        _check_u64("external_index", self.external_index)

    def key(self) -> bytes:
        """Encode as the 16-byte storage key."""
        return _KEY.pack(self.owner_id, self.external_index)

    @classmethod
    def from_key(cls, key: bytes) -> "Account":
        """Decode a 16-byte storage key."""
        if len(key) != KEY_SIZE:
            raise ValueError(f"Account key must be {KEY_SIZE} bytes, got {len(key)}")
        owner_id, external_index = _KEY.unpack(bytes(key))
        return cls(owner_id=owner_id, external_index=external_index)


def encode_balance(balance: int) -> bytes:
    """Encode a balance as 8 bytes u64 little-endian."""
    _check_u64("balance", balance)
    return _BALANCE.pack(balance)


def decode_balance(value: bytes) -> int:
    """Decode an 8-byte u64 little-endian balance."""
    if len(value) != BALANCE_SIZE:
        raise ValueError(f"Balance value must be {BALANCE_SIZE} bytes, got {len(value)}")
    return _BALANCE.unpack(bytes(value))[0]


# =============================================================================
# Alerts
# =============================================================================

@dataclass(frozen=True)
class NotRewarded:
    """Balance identical to the last observation: the validator missed rewards."""
    external_index: int

    def __str__(self) -> str:
        return f"Validator {self.external_index} missed rewards"


@dataclass(frozen=True)
class Slashed:
    """Balance decreased by ``amount`` since the last observation."""
    external_index: int
    amount: int

    def __post_init__(self):
        if self.amount <= 0:
            raise ValueError(f"Slashed amount must be positive, got {self.amount}")

    def __str__(self) -> str:
        return f"Validator {self.external_index} was slashed {self.amount} nano-mGNO"


AlertMessage = Union[NotRewarded, Slashed]


@dataclass(frozen=True)
class Alert:
    """One alert produced by a monitor run, addressed to the account owner."""
    account: Account
    message: AlertMessage

    def __str__(self) -> str:
        return str(self.message)
