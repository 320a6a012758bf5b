"""Solana Clock sysvar decoding."""

import struct
from dataclasses import dataclass

from .errors import DecodeError

# [slot:u64][epoch_start_timestamp:i64][epoch:u64][leader_schedule_epoch:u64][unix_timestamp:i64]
_CLOCK = struct.Struct("<QqQQq")


@dataclass(frozen=True)
class Clock:
    slot: int
    epoch_start_timestamp: int
    epoch: int
    leader_schedule_epoch: int
    unix_timestamp: int


def decode_clock(data: bytes) -> Clock:
    """Decode the Clock sysvar account data."""
    if len(data) < _CLOCK.size:
        raise DecodeError(f"Clock account too short: {len(data)} < {_CLOCK.size}")
    return Clock(*_CLOCK.unpack_from(data, 0))
