"""Tests for unit conversions."""

from dataclasses import replace

import pytest

from phoenix_book import InvalidScaleError, MarketScale, decode_market
from phoenix_book import units

from conftest import MarketBuilder

# 9-decimal base, 6-decimal quote, 1000 lots per base unit, 0.001 quote tick
SCALE = MarketScale(
    base_decimals=9,
    quote_decimals=6,
    base_lot_size=1_000_000,
    quote_lot_size=1,
    tick_size_in_quote_atoms_per_base_unit=1000,
    base_lots_per_base_unit=1000,
    quote_lots_per_base_unit_per_tick=1000,
)


def test_scale_from_market(market_builder):
    assert decode_market(market_builder.build()).scale == SCALE


def test_atoms_per_unit():
    assert SCALE.base_atoms_per_base_unit == 1_000_000_000
    assert SCALE.quote_atoms_per_quote_unit == 1_000_000


def test_validate_rejects_zero_divisors():
    with pytest.raises(InvalidScaleError, match="quote_lot_size"):
        replace(SCALE, quote_lot_size=0).validate()
    with pytest.raises(InvalidScaleError, match="raw_base_units_per_base_unit"):
        replace(SCALE, raw_base_units_per_base_unit=0).validate()


def test_price_ticks():
    assert units.float_price_to_ticks(SCALE, 22.72) == 22_720
    assert units.ticks_to_float_price(SCALE, 22_720) == pytest.approx(22.72)
    # Rounds to the nearest tick
    assert units.float_price_to_ticks(SCALE, 22.7204) == 22_720
    assert units.float_price_to_ticks(SCALE, 22.7205) == 22_721


def test_price_ticks_with_raw_base_units():
    scale = replace(SCALE, raw_base_units_per_base_unit=1000)
    assert units.float_price_to_ticks(scale, 0.02272) == 22_720
    assert units.ticks_to_float_price(scale, 22_720) == pytest.approx(0.02272)


def test_raw_base_units_to_lots_rounding():
    assert units.raw_base_units_to_base_lots(SCALE, 1.2345) == 1234
    assert units.raw_base_units_to_base_lots_rounded_up(SCALE, 1.2345) == 1235
    assert units.raw_base_units_to_base_lots(SCALE, 2) == 2000
    assert units.raw_base_units_to_base_lots_rounded_up(SCALE, 2) == 2000


def test_decimal_input_is_not_float_error():
    """0.3 * 1000 in binary floats is just above 300; the ceiling must still be 300."""
    assert units.raw_base_units_to_base_lots_rounded_up(SCALE, 0.3) == 300
    assert units.raw_base_units_to_base_lots(SCALE, 0.3) == 300


def test_base_conversions():
    assert units.base_lots_to_raw_base_units(SCALE, 1500) == pytest.approx(1.5)
    assert units.base_lots_to_base_atoms(SCALE, 3) == 3_000_000
    assert units.base_atoms_to_base_lots(SCALE, 1_500_000) == 2
    assert units.base_atoms_to_base_lots(SCALE, 1_499_999) == 1
    assert units.base_atoms_to_base_units(SCALE, 1_500_000_000) == pytest.approx(1.5)
    assert units.base_units_to_base_atoms(SCALE, 1.5) == 1_500_000_000


def test_quote_conversions():
    scale = replace(SCALE, quote_lot_size=10)
    assert units.quote_units_to_quote_lots(scale, 2.5) == 250_000
    assert units.quote_atoms_to_quote_lots(scale, 15) == 2
    assert units.quote_atoms_to_quote_lots(scale, 14) == 1
    assert units.quote_lots_to_quote_atoms(scale, 7) == 70
    assert units.quote_atoms_to_quote_units(scale, 2_500_000) == pytest.approx(2.5)
    assert units.quote_lots_to_quote_units(scale, 250_000) == pytest.approx(2.5)


def test_order_to_quote_atoms():
    """1.5 base units at 22.72 is 34.08 quote units."""
    assert units.order_to_quote_atoms(SCALE, base_lots=1500, price_in_ticks=22_720) == 34_080_000


def test_order_to_quote_atoms_rounds_half_up():
    scale = replace(SCALE, base_lots_per_base_unit=4, tick_size_in_quote_atoms_per_base_unit=1)
    # 1 * 2 * 1 / 4 = 0.5 -> 1
    assert units.order_to_quote_atoms(scale, 1, 2) == 1
    # 1 * 1 * 1 / 4 = 0.25 -> 0
    assert units.order_to_quote_atoms(scale, 1, 1) == 0


def test_zero_raw_base_units_header_becomes_one():
    snapshot = decode_market(MarketBuilder(raw_base_units_per_base_unit=0).build())
    assert units.base_lots_to_raw_base_units(snapshot.scale, 1000) == pytest.approx(1.0)
