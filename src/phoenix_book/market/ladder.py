"""
L2 ladders: resting orders aggregated by price.

Levels are built by scanning each side of a snapshot in price-time priority,
skipping expired orders and merging consecutive orders at the same price.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable, NamedTuple, Optional

from .snapshot import MarketSnapshot, OrderId, RestingOrder
from .units import base_lots_to_raw_base_units, ticks_to_float_price

# Default ladder depth to use when fetching an L2 ladder
DEFAULT_L2_LADDER_DEPTH = 10


class Side(IntEnum):
    BID = 0
    ASK = 1


class LadderLevel(NamedTuple):
    price_in_ticks: int
    size_in_base_lots: int


class UiLadderLevel(NamedTuple):
    price: float  # quote units per raw base unit
    quantity: float  # raw base units


@dataclass(frozen=True)
class Ladder:
    """Bids by descending price, asks by ascending price."""

    bids: tuple[LadderLevel, ...]
    asks: tuple[LadderLevel, ...]


@dataclass(frozen=True)
class UiLadder:
    bids: tuple[UiLadderLevel, ...]
    asks: tuple[UiLadderLevel, ...]

    def best_bid(self) -> Optional[UiLadderLevel]:
        return self.bids[0] if self.bids else None

    def best_ask(self) -> Optional[UiLadderLevel]:
        return self.asks[0] if self.asks else None


def live_orders(
    orders: Iterable[tuple[OrderId, RestingOrder]], slot: int, unix_timestamp: int
) -> Iterable[tuple[OrderId, RestingOrder]]:
    """Yield orders that have not expired at (slot, unix_timestamp), preserving order."""
    for order_id, order in orders:
        if order.is_expired(slot, unix_timestamp):
            continue
        yield order_id, order


def _is_unlimited(limit: Optional[int]) -> bool:
    return limit is None or limit < 0


def _aggregate_side(
    orders: Iterable[tuple[OrderId, RestingOrder]],
    slot: int,
    unix_timestamp: int,
    levels: Optional[int],
) -> tuple[LadderLevel, ...]:
    if levels == 0:
        return ()

    out: list[LadderLevel] = []
    for order_id, order in live_orders(orders, slot, unix_timestamp):
        price = order_id.price_in_ticks
        if out and out[-1].price_in_ticks == price:
            out[-1] = LadderLevel(price, out[-1].size_in_base_lots + order.num_base_lots)
            continue
        if not _is_unlimited(levels) and len(out) == levels:
            break
        out.append(LadderLevel(price, order.num_base_lots))
    return tuple(out)


def get_ladder(
    snapshot: MarketSnapshot,
    slot: int = 0,
    unix_timestamp: int = 0,
    levels: Optional[int] = DEFAULT_L2_LADDER_DEPTH,
) -> Ladder:
    """
    Get the L2 ladder in ticks and base lots.

    Args:
        snapshot: Decoded market
        slot: Current slot. Orders with 0 < last_valid_slot < slot are skipped
        unix_timestamp: Current unix time in seconds, same rule as slot
        levels: Max distinct prices per side. None or negative for the whole book

    Example:
        >>> ladder = get_ladder(snapshot, clock.slot, clock.unix_timestamp, levels=5)
        >>> best_bid = ladder.bids[0].price_in_ticks
    """
    return Ladder(
        bids=_aggregate_side(snapshot.bids, slot, unix_timestamp, levels),
        asks=_aggregate_side(snapshot.asks, slot, unix_timestamp, levels),
    )


def level_to_ui_level(snapshot: MarketSnapshot, level: LadderLevel) -> UiLadderLevel:
    """Convert (ticks, base lots) to (quote units per raw base unit, raw base units)."""
    return UiLadderLevel(
        ticks_to_float_price(snapshot.scale, level.price_in_ticks),
        base_lots_to_raw_base_units(snapshot.scale, level.size_in_base_lots),
    )


def get_ui_ladder(
    snapshot: MarketSnapshot,
    slot: int = 0,
    unix_timestamp: int = 0,
    levels: Optional[int] = DEFAULT_L2_LADDER_DEPTH,
) -> UiLadder:
    """
    Get the L2 ladder in human-readable units.

    Float values are for display and quoting; use `get_ladder` for exact lots.
    """
    ladder = get_ladder(snapshot, slot, unix_timestamp, levels)
    return UiLadder(
        bids=tuple(level_to_ui_level(snapshot, level) for level in ladder.bids),
        asks=tuple(level_to_ui_level(snapshot, level) for level in ladder.asks),
    )
