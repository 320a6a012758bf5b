"""
Market snapshot decoding.

A Phoenix market account is laid out as:

    [MarketHeader:576][padding:256][6 x u64 market scalars]
    [bids tree][asks tree][traders tree]

The tree capacities come from the header's size params. Each tree is decoded
with the arena decoder, bids and asks are sorted into price-time priority, and
the result is frozen into a `MarketSnapshot`. Snapshots are never updated in
place: refreshing a market means decoding a new one.
"""

import logging
import struct
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

from solders.pubkey import Pubkey
from sortedcontainers import SortedDict

from .._internal.arena import arena_tree_size, decode_arena_tree
from ..errors import CorruptionError, SizeMismatchError
from .header import MARKET_HEADER_SIZE, MarketHeader, decode_market_header
from .units import MarketScale

logger = logging.getLogger(__name__)

MARKET_PADDING_SIZE = 8 * 32

_MARKET_SCALARS = struct.Struct("<6Q")
_ORDER_ID = struct.Struct("<QQ")
_RESTING_ORDER = struct.Struct("<4Q")
_TRADER_STATE = struct.Struct("<4Q64x")
PUBKEY_SIZE = 32

_U64_MASK = (1 << 64) - 1


@dataclass(frozen=True)
class OrderId:
    """
    Key of a resting order.

    `order_sequence_number` is the raw u64 as stored: the two's complement of
    the signed sequence number, with all bits inverted for bids so that a bid
    tree iterates in price-time priority. Use `ui_order_sequence_number()` to
    recover the arrival counter.
    """

    price_in_ticks: int
    order_sequence_number: int


@dataclass(frozen=True)
class RestingOrder:
    trader_index: int  # 1-indexed arena address in the traders tree
    num_base_lots: int
    last_valid_slot: int  # 0 = no slot expiry
    last_valid_unix_timestamp_in_seconds: int  # 0 = no time expiry

    def is_expired(self, slot: int, unix_timestamp: int) -> bool:
        """True if the order is past its last valid slot or timestamp (both inclusive)."""
        if self.last_valid_slot != 0 and self.last_valid_slot < slot:
            return True
        if (
            self.last_valid_unix_timestamp_in_seconds != 0
            and self.last_valid_unix_timestamp_in_seconds < unix_timestamp
        ):
            return True
        return False


@dataclass(frozen=True)
class TraderState:
    quote_lots_locked: int
    quote_lots_free: int
    base_lots_locked: int
    base_lots_free: int


def ui_order_sequence_number(order_id: OrderId) -> int:
    """
    Reconstruct the displayable sequence number from a raw order id.

    The raw value is read as a signed 64-bit integer. Bid sequence numbers are
    stored bit-inverted, which makes them negative: !n == -n - 1, so the
    arrival counter is -value - 1. Ask sequence numbers are stored as-is.

    Example:
        >>> ui_order_sequence_number(OrderId(100, 0xFFFFFFFFFFFFFFFF))
        0
        >>> ui_order_sequence_number(OrderId(100, 5))
        5
    """
    raw = order_id.order_sequence_number & _U64_MASK
    signed = raw - (1 << 64) if raw >= (1 << 63) else raw
    return -signed - 1 if signed < 0 else signed


@dataclass(frozen=True)
class MarketSnapshot:
    """
    Immutable decoded view of one market account.

    bids: (OrderId, RestingOrder) by descending price, then ascending sequence number
    asks: (OrderId, RestingOrder) by ascending price, then ascending sequence number
    traders: trader pubkey (base58) -> TraderState
    """

    header: MarketHeader
    base_lots_per_base_unit: int
    quote_lots_per_base_unit_per_tick: int
    sequence_number: int
    taker_fee_bps: int
    collected_quote_lot_fees: int
    unclaimed_quote_lot_fees: int
    bids: tuple[tuple[OrderId, RestingOrder], ...]
    asks: tuple[tuple[OrderId, RestingOrder], ...]
    traders: Mapping[str, TraderState]
    trader_pubkey_to_index: Mapping[str, int]
    trader_index_to_pubkey: Mapping[int, str]
    scale: MarketScale

    def get_trader_state(self, trader: str) -> Optional[TraderState]:
        """Get a trader's balances by base58 pubkey, or None if they have no seat."""
        return self.traders.get(trader)

    def trader_index(self, trader: str) -> Optional[int]:
        return self.trader_pubkey_to_index.get(trader)

    def trader_pubkey(self, index: int) -> Optional[str]:
        return self.trader_index_to_pubkey.get(index)

    def order_count(self) -> tuple[int, int]:
        """Return (bid_count, ask_count), expired orders included."""
        return len(self.bids), len(self.asks)


def _decode_order_tree(data: bytes) -> list[tuple[OrderId, RestingOrder]]:
    tree = decode_arena_tree(data, _ORDER_ID.size, _RESTING_ORDER.size)
    orders = []
    for entry in tree:
        order_id = OrderId(*_ORDER_ID.unpack(entry.key))
        order = RestingOrder(*_RESTING_ORDER.unpack(entry.value))
        if order.num_base_lots == 0:
            raise CorruptionError(f"Live order {order_id} at node {entry.address} has zero base lots")
        orders.append((order_id, order))
    return orders


def _price_time_priority(
    orders: list[tuple[OrderId, RestingOrder]], descending_price: bool
) -> tuple[tuple[OrderId, RestingOrder], ...]:
    # Bids use negative price keys for reverse sort; oldest first within a price
    book: SortedDict = SortedDict()
    for order_id, order in orders:
        price = -order_id.price_in_ticks if descending_price else order_id.price_in_ticks
        key = (price, ui_order_sequence_number(order_id))
        if key in book:
            raise CorruptionError(f"Duplicate order id {order_id}")
        book[key] = (order_id, order)
    return tuple(book.values())


def decode_market(data: bytes, expected_discriminant: Optional[int] = None) -> MarketSnapshot:
    """
    Decode a market account into a MarketSnapshot.

    Args:
        data: Full market account bytes
        expected_discriminant: Optional header discriminant to pin the layout version

    Returns:
        MarketSnapshot with sorted bids/asks and trader lookups

    Raises:
        SizeMismatchError: Buffer shorter than the header, scalars or trees need
        FreeListCycleError: A tree's free list does not terminate
        InvalidScaleError: A scale constant used as a divisor is zero
        MarketVersionError: Header status/discriminant not recognised
    """
    data = memoryview(data)
    header = decode_market_header(data, expected_discriminant)

    offset = MARKET_HEADER_SIZE + MARKET_PADDING_SIZE
    if len(data) < offset + _MARKET_SCALARS.size:
        raise SizeMismatchError(
            f"Market account too short for market scalars: {len(data)} < {offset + _MARKET_SCALARS.size}"
        )
    (
        base_lots_per_base_unit,
        quote_lots_per_base_unit_per_tick,
        sequence_number,
        taker_fee_bps,
        collected_quote_lot_fees,
        unclaimed_quote_lot_fees,
    ) = _MARKET_SCALARS.unpack_from(data, offset)
    offset += _MARKET_SCALARS.size

    scale = MarketScale.from_header(header, base_lots_per_base_unit, quote_lots_per_base_unit_per_tick)

    size_params = header.market_size_params
    order_node = (_ORDER_ID.size, _RESTING_ORDER.size)
    bids_size = arena_tree_size(*order_node, size_params.bids_size)
    asks_size = arena_tree_size(*order_node, size_params.asks_size)
    traders_size = arena_tree_size(PUBKEY_SIZE, _TRADER_STATE.size, size_params.num_seats)

    end = offset + bids_size + asks_size + traders_size
    if end > len(data):
        raise SizeMismatchError(
            f"Market trees need {end} bytes but account has {len(data)} "
            f"(bids={size_params.bids_size}, asks={size_params.asks_size}, seats={size_params.num_seats})"
        )

    bid_buffer = data[offset : offset + bids_size]
    offset += bids_size
    ask_buffer = data[offset : offset + asks_size]
    offset += asks_size
    trader_buffer = data[offset : offset + traders_size]

    bids = _price_time_priority(_decode_order_tree(bid_buffer), descending_price=True)
    asks = _price_time_priority(_decode_order_tree(ask_buffer), descending_price=False)

    traders: dict[str, TraderState] = {}
    pubkey_to_index: dict[str, int] = {}
    index_to_pubkey: dict[int, str] = {}
    for entry in decode_arena_tree(trader_buffer, PUBKEY_SIZE, _TRADER_STATE.size):
        trader = str(Pubkey.from_bytes(entry.key))
        traders[trader] = TraderState(*_TRADER_STATE.unpack(entry.value))
        pubkey_to_index[trader] = entry.address
        index_to_pubkey[entry.address] = trader

    logger.debug(
        "Decoded market seq=%d: %d bids, %d asks, %d traders",
        sequence_number,
        len(bids),
        len(asks),
        len(traders),
    )

    return MarketSnapshot(
        header=header,
        base_lots_per_base_unit=base_lots_per_base_unit,
        quote_lots_per_base_unit_per_tick=quote_lots_per_base_unit_per_tick,
        sequence_number=sequence_number,
        taker_fee_bps=taker_fee_bps,
        collected_quote_lot_fees=collected_quote_lot_fees,
        unclaimed_quote_lot_fees=unclaimed_quote_lot_fees,
        bids=bids,
        asks=asks,
        traders=MappingProxyType(traders),
        trader_pubkey_to_index=MappingProxyType(pubkey_to_index),
        trader_index_to_pubkey=MappingProxyType(index_to_pubkey),
        scale=scale,
    )
