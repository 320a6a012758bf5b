"""
Unit conversions between atoms, lots, ticks and human-readable units.

Every function takes the market's `MarketScale` first. Conversions into atoms,
lots or ticks return integers and state their rounding mode; human-unit inputs
are converted through `Decimal(str(x))` so floors and ceilings are taken on the
decimal value the caller wrote, not on its binary float approximation.
Conversions into human units return floats and are for display only.
"""

from dataclasses import dataclass
from decimal import ROUND_CEILING, ROUND_FLOOR, ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Union

from ..errors import InvalidScaleError

if TYPE_CHECKING:
    from .header import MarketHeader

Number = Union[int, float, Decimal]


@dataclass(frozen=True)
class MarketScale:
    """Per-market scale constants taken from the header and market body."""

    base_decimals: int
    quote_decimals: int
    base_lot_size: int  # base atoms per base lot
    quote_lot_size: int  # quote atoms per quote lot
    tick_size_in_quote_atoms_per_base_unit: int
    base_lots_per_base_unit: int
    quote_lots_per_base_unit_per_tick: int
    raw_base_units_per_base_unit: int = 1

    # Fields used as divisors somewhere below
    _DIVISORS = (
        "base_lot_size",
        "quote_lot_size",
        "base_lots_per_base_unit",
        "quote_lots_per_base_unit_per_tick",
        "raw_base_units_per_base_unit",
    )

    @classmethod
    def from_header(
        cls,
        header: "MarketHeader",
        base_lots_per_base_unit: int,
        quote_lots_per_base_unit_per_tick: int,
    ) -> "MarketScale":
        """Build and validate the scale of a decoded market."""
        scale = cls(
            base_decimals=header.base_params.decimals,
            quote_decimals=header.quote_params.decimals,
            base_lot_size=header.base_lot_size,
            quote_lot_size=header.quote_lot_size,
            tick_size_in_quote_atoms_per_base_unit=header.tick_size_in_quote_atoms_per_base_unit,
            base_lots_per_base_unit=base_lots_per_base_unit,
            quote_lots_per_base_unit_per_tick=quote_lots_per_base_unit_per_tick,
            # Markets created before raw base units existed store 0, meaning 1
            raw_base_units_per_base_unit=max(header.raw_base_units_per_base_unit, 1),
        )
        scale.validate()
        return scale

    def validate(self):
        """Raise InvalidScaleError if any divisor is zero."""
        for name in self._DIVISORS:
            if getattr(self, name) == 0:
                raise InvalidScaleError(f"Market scale constant {name} is zero")

    @property
    def base_atoms_per_base_unit(self) -> int:
        return 10**self.base_decimals

    @property
    def quote_atoms_per_quote_unit(self) -> int:
        return 10**self.quote_decimals


def _dec(value: Number) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def _div_round_half_up(numerator: int, denominator: int) -> int:
    """Integer division rounded to nearest, halves away from zero (non-negative inputs)."""
    return (2 * numerator + denominator) // (2 * denominator)


# =========================================================================
# Price
# =========================================================================


def float_price_to_ticks(scale: MarketScale, price: Number) -> int:
    """Quote units per base unit -> price in ticks. Rounds to nearest."""
    ticks = (
        _dec(price)
        * scale.quote_atoms_per_quote_unit
        * scale.raw_base_units_per_base_unit
        / (scale.quote_lots_per_base_unit_per_tick * scale.quote_lot_size)
    )
    return int(ticks.to_integral_value(rounding=ROUND_HALF_UP))


def ticks_to_float_price(scale: MarketScale, price_in_ticks: int) -> float:
    """Price in ticks -> quote units per (raw) base unit, for display."""
    return (
        price_in_ticks
        * scale.quote_lots_per_base_unit_per_tick
        * scale.quote_lot_size
        / (scale.quote_atoms_per_quote_unit * scale.raw_base_units_per_base_unit)
    )


# =========================================================================
# Base
# =========================================================================


def raw_base_units_to_base_lots(scale: MarketScale, raw_base_units: Number) -> int:
    """Raw base units -> base lots, rounded down."""
    lots = _dec(raw_base_units) * scale.base_lots_per_base_unit / scale.raw_base_units_per_base_unit
    return int(lots.to_integral_value(rounding=ROUND_FLOOR))


def raw_base_units_to_base_lots_rounded_up(scale: MarketScale, raw_base_units: Number) -> int:
    """Raw base units -> base lots, rounded up."""
    lots = _dec(raw_base_units) * scale.base_lots_per_base_unit / scale.raw_base_units_per_base_unit
    return int(lots.to_integral_value(rounding=ROUND_CEILING))


def base_lots_to_raw_base_units(scale: MarketScale, base_lots: int) -> float:
    """Base lots -> raw base units, for display."""
    return base_lots / scale.base_lots_per_base_unit * scale.raw_base_units_per_base_unit


def base_atoms_to_base_lots(scale: MarketScale, base_atoms: int) -> int:
    """Base atoms -> base lots, rounded to nearest."""
    return _div_round_half_up(base_atoms, scale.base_lot_size)


def base_lots_to_base_atoms(scale: MarketScale, base_lots: int) -> int:
    """Base lots -> base atoms. Exact."""
    return base_lots * scale.base_lot_size


def base_atoms_to_base_units(scale: MarketScale, base_atoms: int) -> float:
    """Base atoms -> base units, for display."""
    return base_atoms / scale.base_atoms_per_base_unit


def base_units_to_base_atoms(scale: MarketScale, base_units: Number) -> int:
    """Base units -> base atoms, rounded to nearest."""
    atoms = _dec(base_units) * scale.base_atoms_per_base_unit
    return int(atoms.to_integral_value(rounding=ROUND_HALF_UP))


# =========================================================================
# Quote
# =========================================================================


def quote_units_to_quote_lots(scale: MarketScale, quote_units: Number) -> int:
    """Quote units -> quote lots, rounded to nearest."""
    lots = _dec(quote_units) * scale.quote_atoms_per_quote_unit / scale.quote_lot_size
    return int(lots.to_integral_value(rounding=ROUND_HALF_UP))


def quote_atoms_to_quote_lots(scale: MarketScale, quote_atoms: int) -> int:
    """Quote atoms -> quote lots, rounded to nearest."""
    return _div_round_half_up(quote_atoms, scale.quote_lot_size)


def quote_lots_to_quote_atoms(scale: MarketScale, quote_lots: int) -> int:
    """Quote lots -> quote atoms. Exact."""
    return quote_lots * scale.quote_lot_size


def quote_atoms_to_quote_units(scale: MarketScale, quote_atoms: int) -> float:
    """Quote atoms -> quote units, for display."""
    return quote_atoms / scale.quote_atoms_per_quote_unit


def quote_lots_to_quote_units(scale: MarketScale, quote_lots: int) -> float:
    """Quote lots -> quote units, for display."""
    return quote_lots * scale.quote_lot_size / scale.quote_atoms_per_quote_unit


# =========================================================================
# Orders
# =========================================================================


def order_to_quote_atoms(scale: MarketScale, base_lots: int, price_in_ticks: int) -> int:
    """
    Quote atoms for an order of `base_lots` at `price_in_ticks`.

    base_lots * price_in_ticks * tick_size / base_lots_per_base_unit, rounded to nearest.

    Example:
        >>> order_to_quote_atoms(scale, base_lots=1500, price_in_ticks=22_720)
    """
    return _div_round_half_up(
        base_lots * price_in_ticks * scale.tick_size_in_quote_atoms_per_base_unit,
        scale.base_lots_per_base_unit,
    )
