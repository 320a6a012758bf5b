"""
Swap quoting against a ladder.

`expected_out_amount` and `get_swap_quote` walk a human-unit ladder with
floats and are estimates. `simulate_market_sell` walks a raw ladder in lots
with integer math and matches what the matching engine would fill.
"""

import math
from dataclasses import dataclass
from decimal import ROUND_CEILING, ROUND_FLOOR, Decimal
from enum import IntEnum
from typing import Optional

from .ladder import Ladder, Side, UiLadder, get_ui_ladder
from .snapshot import MarketSnapshot
from .units import MarketScale

DEFAULT_MATCH_LIMIT = 2048
DEFAULT_SLIPPAGE_PERCENT = 0.005

BPS_DENOMINATOR = 10_000


@dataclass(frozen=True)
class SwapQuote:
    """
    Estimated result of a taker swap.

    in_amount: Input after the taker fee, in units of the token sold
    out_amount: Estimated output, in units of the token bought
    unfilled_in_amount: Part of in_amount the ladder could not absorb
    liquidity_exhausted: True if the ladder ran out before in_amount was consumed
    """

    in_amount: float
    out_amount: float
    unfilled_in_amount: float
    liquidity_exhausted: bool


def get_swap_quote(ladder: UiLadder, taker_fee_bps: int, side: Side, in_amount: float) -> SwapQuote:
    """
    Walk the opposite side of the ladder to estimate a taker swap.

    Args:
        ladder: Human-unit ladder, deep enough to cover the swap
        taker_fee_bps: Taker fee deducted from the input before matching
        side: Side.BID sells quote units for base, Side.ASK sells base units for quote
        in_amount: Amount of the token being sold, in human units
    """
    remaining = in_amount * (1 - taker_fee_bps / BPS_DENOMINATOR)
    after_fee = remaining
    received = 0.0

    if side == Side.BID:
        for price, quantity in ladder.asks:
            quote_available = quantity * price
            if quote_available > remaining:
                received += remaining / price
                remaining = 0.0
                break
            received += quantity
            remaining -= quote_available
    else:
        for price, quantity in ladder.bids:
            if quantity > remaining:
                received += remaining * price
                remaining = 0.0
                break
            received += quantity * price
            remaining -= quantity

    # Float walk can leave rounding dust when the input matches the ladder exactly
    exhausted = not math.isclose(remaining, 0.0, abs_tol=after_fee * 1e-12)
    return SwapQuote(
        in_amount=after_fee,
        out_amount=received,
        unfilled_in_amount=remaining if exhausted else 0.0,
        liquidity_exhausted=exhausted,
    )


def expected_out_amount(ladder: UiLadder, taker_fee_bps: int, side: Side, in_amount: float) -> float:
    """
    Estimated output of a taker swap, in human units of the token bought.

    If the ladder runs out first, this is the amount the available levels
    would fill. Use `get_swap_quote` to tell that case apart.

    Example:
        >>> ladder = UiLadder(bids=(), asks=((10.0, 100.0), (11.0, 50.0)))
        >>> expected_out_amount(ladder, 0, Side.BID, 1050.0)
        104.54545454545455
    """
    return get_swap_quote(ladder, taker_fee_bps, side, in_amount).out_amount


# =========================================================================
# Lot-exact simulation
# =========================================================================


@dataclass(frozen=True)
class SimulationSummary:
    base_lots_filled: int
    quote_lots_filled: int


def sell_quote(ladder: Ladder, scale: MarketScale, num_quote_lots: int) -> SimulationSummary:
    """Buy base lots from the asks with `num_quote_lots`."""
    tick_size = scale.quote_lots_per_base_unit_per_tick
    # Work in quote lots * base_lots_per_base_unit so level costs stay integral
    adjusted_quote_lots = num_quote_lots * scale.base_lots_per_base_unit
    remaining = adjusted_quote_lots
    base_lots = 0

    for level in ladder.asks:
        if remaining == 0:
            break
        lot_cost = level.price_in_ticks * tick_size
        if lot_cost == 0:
            continue
        lots = min(remaining // lot_cost, level.size_in_base_lots)
        base_lots += lots
        remaining -= lots * lot_cost

    return SimulationSummary(
        base_lots_filled=base_lots,
        quote_lots_filled=(adjusted_quote_lots - remaining) // scale.base_lots_per_base_unit,
    )


def sell_base(ladder: Ladder, scale: MarketScale, num_base_lots: int) -> SimulationSummary:
    """Sell `num_base_lots` into the bids."""
    tick_size = scale.quote_lots_per_base_unit_per_tick
    remaining = num_base_lots
    adjusted_quote_lots = 0

    for level in ladder.bids:
        if remaining == 0:
            break
        lots = min(remaining, level.size_in_base_lots)
        adjusted_quote_lots += lots * level.price_in_ticks * tick_size
        remaining -= lots

    return SimulationSummary(
        base_lots_filled=num_base_lots - remaining,
        quote_lots_filled=adjusted_quote_lots // scale.base_lots_per_base_unit,
    )


def simulate_market_sell(ladder: Ladder, scale: MarketScale, side: Side, size_in_lots: int) -> SimulationSummary:
    """
    Simulate an immediate market order in lots.

    Side.BID spends `size_in_lots` quote lots on the asks; Side.ASK sells
    `size_in_lots` base lots into the bids. The ladder should be unlimited
    depth (`get_ladder(..., levels=None)`).
    """
    if side == Side.BID:
        return sell_quote(ladder, scale, size_in_lots)
    return sell_base(ladder, scale, size_in_lots)


# =========================================================================
# Swap order sizing
# =========================================================================


class SelfTradeBehavior(IntEnum):
    ABORT = 0
    CANCEL_PROVIDE = 1
    DECREMENT_TAKE = 2


@dataclass(frozen=True)
class SwapOrderPacket:
    """Immediate-or-cancel market order sizing. No price limit is set."""

    side: Side
    num_base_lots: int
    min_base_lots_to_fill: int
    num_quote_lots: int
    min_quote_lots_to_fill: int
    self_trade_behavior: SelfTradeBehavior
    match_limit: int
    client_order_id: int
    use_only_deposited_funds: bool
    last_valid_slot: Optional[int] = None
    last_valid_unix_timestamp_in_seconds: Optional[int] = None
    price_in_ticks: Optional[int] = None


def _to_lots(units: float, atoms_per_unit: int, lot_size: int, haircut: Decimal, rounding: str) -> int:
    lots = Decimal(str(units)) * atoms_per_unit / lot_size * haircut
    return int(lots.to_integral_value(rounding=rounding))


def get_swap_order_packet(
    snapshot: MarketSnapshot,
    side: Side,
    in_amount: float,
    slippage: float = DEFAULT_SLIPPAGE_PERCENT,
    self_trade_behavior: SelfTradeBehavior = SelfTradeBehavior.ABORT,
    match_limit: int = DEFAULT_MATCH_LIMIT,
    client_order_id: int = 0,
    use_only_deposited_funds: bool = False,
    last_valid_slot: Optional[int] = None,
    last_valid_unix_timestamp_in_seconds: Optional[int] = None,
    slot: int = 0,
    unix_timestamp: int = 0,
) -> SwapOrderPacket:
    """
    Size a swap of `in_amount` human units with a minimum fill bounded by slippage.

    The input is floored to whole lots so the order never spends more than
    `in_amount`; the minimum fill is the expected output times (1 - slippage),
    rounded up to whole lots.

    Example:
        >>> packet = get_swap_order_packet(snapshot, Side.BID, in_amount=100.0, slippage=0.01)
        >>> packet.num_quote_lots, packet.min_base_lots_to_fill
    """
    scale = snapshot.scale
    ladder = get_ui_ladder(snapshot, slot, unix_timestamp, levels=None)
    expected = expected_out_amount(ladder, snapshot.taker_fee_bps, side, in_amount)
    haircut = 1 - Decimal(str(slippage))

    num_base_lots = min_base_lots_to_fill = num_quote_lots = min_quote_lots_to_fill = 0
    if side == Side.ASK:
        num_base_lots = _to_lots(
            in_amount, scale.base_atoms_per_base_unit, scale.base_lot_size, Decimal(1), ROUND_FLOOR
        )
        min_quote_lots_to_fill = _to_lots(
            expected, scale.quote_atoms_per_quote_unit, scale.quote_lot_size, haircut, ROUND_CEILING
        )
    else:
        num_quote_lots = _to_lots(
            in_amount, scale.quote_atoms_per_quote_unit, scale.quote_lot_size, Decimal(1), ROUND_FLOOR
        )
        min_base_lots_to_fill = _to_lots(
            expected, scale.base_atoms_per_base_unit, scale.base_lot_size, haircut, ROUND_CEILING
        )

    return SwapOrderPacket(
        side=side,
        num_base_lots=num_base_lots,
        min_base_lots_to_fill=min_base_lots_to_fill,
        num_quote_lots=num_quote_lots,
        min_quote_lots_to_fill=min_quote_lots_to_fill,
        self_trade_behavior=self_trade_behavior,
        match_limit=match_limit,
        client_order_id=client_order_id,
        use_only_deposited_funds=use_only_deposited_funds,
        last_valid_slot=last_valid_slot,
        last_valid_unix_timestamp_in_seconds=last_valid_unix_timestamp_in_seconds,
    )
