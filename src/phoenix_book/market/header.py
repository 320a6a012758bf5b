"""
Market header layout.

The header is the first 576 bytes of every Phoenix market account. Its layout
is owned by the on-chain program, so it is decoded field by field with a single
packed little-endian struct and checked against the known market statuses.
"""

import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

from solders.pubkey import Pubkey

from ..errors import MarketVersionError, SizeMismatchError


class MarketStatus(IntEnum):
    UNINITIALIZED = 0
    ACTIVE = 1
    POST_ONLY = 2
    PAUSED = 3
    CLOSED = 4
    TOMBSTONED = 5


# discriminant, status, [bids_size, asks_size, num_seats],
# base [decimals, vault_bump, mint, vault], base_lot_size,
# quote [decimals, vault_bump, mint, vault], quote_lot_size,
# tick_size, authority, fee_recipient, market_sequence_number, successor,
# raw_base_units_per_base_unit, padding u32, padding [u64; 32]
_HEADER = struct.Struct("<QQ QQQ II32s32s Q II32s32s Q Q 32s32s Q 32s I4x 256x")

MARKET_HEADER_SIZE = _HEADER.size  # 576


@dataclass(frozen=True)
class MarketSizeParams:
    bids_size: int
    asks_size: int
    num_seats: int


@dataclass(frozen=True)
class TokenParams:
    decimals: int
    vault_bump: int
    mint_key: Pubkey
    vault_key: Pubkey


@dataclass(frozen=True)
class MarketHeader:
    """Decoded market header. Lot and tick sizes are in atoms."""

    discriminant: int
    status: MarketStatus
    market_size_params: MarketSizeParams
    base_params: TokenParams
    base_lot_size: int
    quote_params: TokenParams
    quote_lot_size: int
    tick_size_in_quote_atoms_per_base_unit: int
    authority: Pubkey
    fee_recipient: Pubkey
    market_sequence_number: int
    successor: Pubkey
    raw_base_units_per_base_unit: int


def decode_market_header(
    data: bytes, expected_discriminant: Optional[int] = None
) -> MarketHeader:
    """
    Decode the market header from the start of a market account.

    Args:
        data: Market account bytes (at least MARKET_HEADER_SIZE long)
        expected_discriminant: Pin the account discriminant, or None to skip the check

    Raises:
        SizeMismatchError: Buffer shorter than the header
        MarketVersionError: Unknown status or discriminant mismatch
    """
    if len(data) < MARKET_HEADER_SIZE:
        raise SizeMismatchError(
            f"Market account too short for header: {len(data)} < {MARKET_HEADER_SIZE}"
        )

    (
        discriminant,
        status,
        bids_size,
        asks_size,
        num_seats,
        base_decimals,
        base_vault_bump,
        base_mint,
        base_vault,
        base_lot_size,
        quote_decimals,
        quote_vault_bump,
        quote_mint,
        quote_vault,
        quote_lot_size,
        tick_size,
        authority,
        fee_recipient,
        market_sequence_number,
        successor,
        raw_base_units_per_base_unit,
    ) = _HEADER.unpack_from(data, 0)

    if expected_discriminant is not None and discriminant != expected_discriminant:
        raise MarketVersionError(
            f"Unexpected market discriminant {discriminant:#018x}, expected {expected_discriminant:#018x}"
        )
    try:
        market_status = MarketStatus(status)
    except ValueError:
        raise MarketVersionError(f"Unknown market status {status}") from None

    return MarketHeader(
        discriminant=discriminant,
        status=market_status,
        market_size_params=MarketSizeParams(bids_size, asks_size, num_seats),
        base_params=TokenParams(
            decimals=base_decimals,
            vault_bump=base_vault_bump,
            mint_key=Pubkey.from_bytes(base_mint),
            vault_key=Pubkey.from_bytes(base_vault),
        ),
        base_lot_size=base_lot_size,
        quote_params=TokenParams(
            decimals=quote_decimals,
            vault_bump=quote_vault_bump,
            mint_key=Pubkey.from_bytes(quote_mint),
            vault_key=Pubkey.from_bytes(quote_vault),
        ),
        quote_lot_size=quote_lot_size,
        tick_size_in_quote_atoms_per_base_unit=tick_size,
        authority=Pubkey.from_bytes(authority),
        fee_recipient=Pubkey.from_bytes(fee_recipient),
        market_sequence_number=market_sequence_number,
        successor=Pubkey.from_bytes(successor),
        raw_base_units_per_base_unit=raw_base_units_per_base_unit,
    )
