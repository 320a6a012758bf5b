"""Shared fixtures: byte-level encoders for market accounts."""

import struct

import pytest
from solders.pubkey import Pubkey

U64_MASK = (1 << 64) - 1

HEADER_FORMAT = "<QQ QQQ II32s32s Q II32s32s Q Q 32s32s Q 32s I4x 256x"
ORDER_ID_FORMAT = "<QQ"
RESTING_ORDER_FORMAT = "<4Q"
TRADER_STATE_FORMAT = "<4Q64x"


def make_pubkey(n: int) -> Pubkey:
    return Pubkey.from_bytes(bytes([n]) * 32)


def encode_tree(
    nodes: list[tuple[bytes, bytes]],
    capacity: int,
    key_size: int,
    value_size: int,
    free: tuple[int, ...] = (),
    free_list_head: int | None = None,
    next_pointers: dict[int, int] | None = None,
    bump_index: int | None = None,
) -> bytes:
    """
    Encode an arena tree. `nodes` fill addresses 1..len(nodes); addresses in
    `free` are chained onto the free list in the given order. `free_list_head`,
    `next_pointers` and `bump_index` override the computed allocator state.
    """
    assert len(nodes) <= capacity
    bump = len(nodes) + 1 if bump_index is None else bump_index

    registers = {address: 0 for address in range(1, len(nodes) + 1)}
    chain = list(free)
    for address, nxt in zip(chain, chain[1:] + [bump]):
        registers[address] = nxt
    if next_pointers:
        registers.update(next_pointers)
    if free_list_head is None:
        free_list_head = chain[0] if chain else bump

    out = bytearray(16)
    out += struct.pack("<Qii", capacity, bump, free_list_head)
    for address, (key, value) in enumerate(nodes, start=1):
        assert len(key) == key_size and len(value) == value_size
        out += struct.pack("<4i", registers[address], 0, 0, 0) + key + value
    out += bytes((16 + key_size + value_size) * (capacity - len(nodes)))
    return bytes(out)


class MarketBuilder:
    """Build a market account byte by byte. Prices in ticks, sizes in base lots."""

    def __init__(
        self,
        bids_size: int = 8,
        asks_size: int = 8,
        num_seats: int = 4,
        base_decimals: int = 9,
        quote_decimals: int = 6,
        base_lot_size: int = 1_000_000,
        quote_lot_size: int = 1,
        tick_size_in_quote_atoms_per_base_unit: int = 1000,
        raw_base_units_per_base_unit: int = 1,
        base_lots_per_base_unit: int = 1000,
        quote_lots_per_base_unit_per_tick: int = 1000,
        sequence_number: int = 42,
        taker_fee_bps: int = 5,
        collected_quote_lot_fees: int = 7,
        unclaimed_quote_lot_fees: int = 3,
        status: int = 1,
        discriminant: int = 0x1122334455667788,
    ):
        self.bids_size = bids_size
        self.asks_size = asks_size
        self.num_seats = num_seats
        self.base_decimals = base_decimals
        self.quote_decimals = quote_decimals
        self.base_lot_size = base_lot_size
        self.quote_lot_size = quote_lot_size
        self.tick_size = tick_size_in_quote_atoms_per_base_unit
        self.raw_base_units_per_base_unit = raw_base_units_per_base_unit
        self.base_lots_per_base_unit = base_lots_per_base_unit
        self.quote_lots_per_base_unit_per_tick = quote_lots_per_base_unit_per_tick
        self.sequence_number = sequence_number
        self.taker_fee_bps = taker_fee_bps
        self.collected_quote_lot_fees = collected_quote_lot_fees
        self.unclaimed_quote_lot_fees = unclaimed_quote_lot_fees
        self.status = status
        self.discriminant = discriminant

        self.base_mint = make_pubkey(101)
        self.quote_mint = make_pubkey(102)

        self.bids: list[tuple[bytes, bytes]] = []
        self.asks: list[tuple[bytes, bytes]] = []
        self.traders: list[tuple[bytes, bytes]] = []
        self.free_bids: tuple[int, ...] = ()
        self.free_asks: tuple[int, ...] = ()
        self.free_traders: tuple[int, ...] = ()

    def add_trader(self, pubkey: Pubkey, quote_lots_free: int = 0, base_lots_free: int = 0) -> int:
        """Add a seat and return its arena address."""
        state = struct.pack(TRADER_STATE_FORMAT, 0, quote_lots_free, 0, base_lots_free)
        self.traders.append((bytes(pubkey), state))
        return len(self.traders)

    def _order(self, price, raw_seq, trader_index, lots, last_valid_slot, last_valid_ts):
        key = struct.pack(ORDER_ID_FORMAT, price, raw_seq & U64_MASK)
        value = struct.pack(RESTING_ORDER_FORMAT, trader_index, lots, last_valid_slot, last_valid_ts)
        return key, value

    def add_bid(self, price, seq, trader_index, lots, last_valid_slot=0, last_valid_ts=0) -> int:
        # Bid sequence numbers are stored bit-inverted
        self.bids.append(self._order(price, ~seq, trader_index, lots, last_valid_slot, last_valid_ts))
        return len(self.bids)

    def add_ask(self, price, seq, trader_index, lots, last_valid_slot=0, last_valid_ts=0) -> int:
        self.asks.append(self._order(price, seq, trader_index, lots, last_valid_slot, last_valid_ts))
        return len(self.asks)

    def header_bytes(self) -> bytes:
        return struct.pack(
            HEADER_FORMAT,
            self.discriminant,
            self.status,
            self.bids_size,
            self.asks_size,
            self.num_seats,
            self.base_decimals,
            254,
            bytes(self.base_mint),
            bytes(make_pubkey(103)),
            self.base_lot_size,
            self.quote_decimals,
            253,
            bytes(self.quote_mint),
            bytes(make_pubkey(104)),
            self.quote_lot_size,
            self.tick_size,
            bytes(make_pubkey(105)),
            bytes(make_pubkey(106)),
            9,
            bytes(make_pubkey(107)),
            self.raw_base_units_per_base_unit,
        )

    def build(self) -> bytes:
        out = bytearray(self.header_bytes())
        out += bytes(256)
        out += struct.pack(
            "<6Q",
            self.base_lots_per_base_unit,
            self.quote_lots_per_base_unit_per_tick,
            self.sequence_number,
            self.taker_fee_bps,
            self.collected_quote_lot_fees,
            self.unclaimed_quote_lot_fees,
        )
        out += encode_tree(self.bids, self.bids_size, 16, 32, self.free_bids)
        out += encode_tree(self.asks, self.asks_size, 16, 32, self.free_asks)
        out += encode_tree(self.traders, self.num_seats, 32, 96, self.free_traders)
        return bytes(out)


@pytest.fixture
def market_builder():
    return MarketBuilder()


@pytest.fixture
def alice():
    return make_pubkey(1)


@pytest.fixture
def bob():
    return make_pubkey(2)


@pytest.fixture
def sample_market(alice, bob) -> bytes:
    """
    Two makers, crossing nothing:
        bids 100 x 5 (alice, seq 1), 100 x 3 (bob, seq 4), 99 x 2 (alice, seq 2)
        asks 101 x 4 (bob, seq 3), 103 x 1 (alice, seq 5), 101 x 6 (alice, seq 6)
    Inserted out of priority order so decoding has to sort.
    """
    builder = MarketBuilder()
    a = builder.add_trader(alice, quote_lots_free=500)
    b = builder.add_trader(bob, base_lots_free=20)
    builder.add_bid(99, 2, a, 2)
    builder.add_bid(100, 4, b, 3)
    builder.add_bid(100, 1, a, 5)
    builder.add_ask(103, 5, a, 1)
    builder.add_ask(101, 6, a, 6)
    builder.add_ask(101, 3, b, 4)
    return builder.build()
