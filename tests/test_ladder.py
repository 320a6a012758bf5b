"""Tests for L2 ladder building."""

import pytest

from phoenix_book import decode_market, get_ladder, get_ui_ladder

from conftest import MarketBuilder, make_pubkey


def _ask_market(orders, **kwargs):
    """orders: (price, lots) pairs, inserted with increasing sequence numbers."""
    builder = MarketBuilder(**kwargs)
    builder.add_trader(make_pubkey(1))
    for seq, (price, lots) in enumerate(orders, start=1):
        builder.add_ask(price, seq, 1, lots)
    return decode_market(builder.build())


def test_aggregation_example():
    """asks [(100,5), (100,3), (101,2)] with levels=2 -> [(100,8), (101,2)]."""
    snapshot = _ask_market([(100, 5), (100, 3), (101, 2)])
    ladder = get_ladder(snapshot, levels=2)
    assert ladder.asks == ((100, 8), (101, 2))
    assert ladder.bids == ()


def test_level_cap_counts_prices_not_orders():
    snapshot = _ask_market([(100, 1), (100, 1), (100, 1), (101, 2), (102, 3)])
    assert get_ladder(snapshot, levels=1).asks == ((100, 3),)
    assert get_ladder(snapshot, levels=2).asks == ((100, 3), (101, 2))


def test_unlimited_levels():
    snapshot = _ask_market([(100 + i, 1) for i in range(12)], asks_size=16)
    assert len(get_ladder(snapshot).asks) == 10  # default depth
    assert len(get_ladder(snapshot, levels=None).asks) == 12
    assert len(get_ladder(snapshot, levels=-1).asks) == 12


def test_zero_levels_is_empty(sample_market):
    ladder = get_ladder(decode_market(sample_market), levels=0)
    assert ladder.bids == ()
    assert ladder.asks == ()


def test_sample_ladder(sample_market):
    ladder = get_ladder(decode_market(sample_market))
    assert ladder.bids == ((100, 8), (99, 2))
    assert ladder.asks == ((101, 10), (103, 1))


def test_prices_strictly_monotonic(sample_market):
    ladder = get_ladder(decode_market(sample_market), levels=None)
    bid_prices = [level.price_in_ticks for level in ladder.bids]
    ask_prices = [level.price_in_ticks for level in ladder.asks]
    assert all(a > b for a, b in zip(bid_prices, bid_prices[1:]))
    assert all(a < b for a, b in zip(ask_prices, ask_prices[1:]))


def test_level_size_equals_sum_of_orders(sample_market):
    snapshot = decode_market(sample_market)
    ladder = get_ladder(snapshot, levels=None)
    for level in ladder.asks:
        expected = sum(o.num_base_lots for oid, o in snapshot.asks if oid.price_in_ticks == level.price_in_ticks)
        assert level.size_in_base_lots == expected


def test_slot_expiry_is_inclusive(alice):
    builder = MarketBuilder()
    builder.add_trader(alice)
    builder.add_bid(100, 1, 1, 3, last_valid_slot=5)
    builder.add_bid(99, 2, 1, 4)
    snapshot = decode_market(builder.build())

    # Still valid at its last valid slot
    assert get_ladder(snapshot, slot=5).bids == ((100, 3), (99, 4))
    # Gone one slot later
    assert get_ladder(snapshot, slot=6).bids == ((99, 4),)


def test_timestamp_expiry(alice):
    builder = MarketBuilder()
    builder.add_trader(alice)
    builder.add_ask(101, 1, 1, 3, last_valid_ts=1_700_000_000)
    builder.add_ask(101, 2, 1, 2)
    snapshot = decode_market(builder.build())

    assert get_ladder(snapshot, unix_timestamp=1_700_000_000).asks == ((101, 5),)
    assert get_ladder(snapshot, unix_timestamp=1_700_000_001).asks == ((101, 2),)


def test_expired_orders_do_not_use_up_levels(alice):
    builder = MarketBuilder()
    builder.add_trader(alice)
    builder.add_ask(100, 1, 1, 1, last_valid_slot=3)
    builder.add_ask(101, 2, 1, 2)
    builder.add_ask(102, 3, 1, 3)
    snapshot = decode_market(builder.build())
    assert get_ladder(snapshot, slot=10, levels=2).asks == ((101, 2), (102, 3))


def test_ui_ladder_units():
    """SOL/USDC-like scale: 1000 lots per SOL, tick of 0.001 USDC."""
    snapshot = _ask_market([(22_720, 1500)])
    ui = get_ui_ladder(snapshot)
    price, quantity = ui.asks[0]
    assert price == pytest.approx(22.72)
    assert quantity == pytest.approx(1.5)
    assert ui.best_ask() == ui.asks[0]
    assert ui.best_bid() is None


def test_ui_ladder_raw_base_units():
    """With 1000 raw base units per base unit, prices shrink and sizes grow by 1000."""
    snapshot = _ask_market([(22_720, 1500)], raw_base_units_per_base_unit=1000)
    price, quantity = get_ui_ladder(snapshot).asks[0]
    assert price == pytest.approx(0.02272)
    assert quantity == pytest.approx(1500.0)
