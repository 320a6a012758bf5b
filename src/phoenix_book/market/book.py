"""
L3 books: one entry per live resting order.

Unlike the L2 ladder, nothing is aggregated. Each entry keeps the maker's
pubkey and the order's arrival sequence number, so queue position at a price
can be read directly off the book.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from .ladder import Side, live_orders
from .snapshot import MarketSnapshot, OrderId, RestingOrder, ui_order_sequence_number
from .units import base_lots_to_raw_base_units, ticks_to_float_price

logger = logging.getLogger(__name__)

# Default book depth to use when fetching an L3 book
DEFAULT_L3_BOOK_DEPTH = 20


@dataclass(frozen=True)
class L3Order:
    """Single order in ticks and base lots. `maker` is None if the seat could not be resolved."""

    price_in_ticks: int
    size_in_base_lots: int
    side: Side
    maker: Optional[str]
    order_sequence_number: int


@dataclass(frozen=True)
class L3UiOrder:
    """Single order in quote units per raw base unit and raw base units."""

    price: float
    size: float
    side: Side
    maker: Optional[str]
    order_sequence_number: int


@dataclass(frozen=True)
class L3Book:
    bids: tuple[L3Order, ...]
    asks: tuple[L3Order, ...]

    def orders_by_maker(self, maker: str, side: Optional[Side] = None) -> list[L3Order]:
        """
        Get all orders from a specific maker.

        Args:
            maker: Base58 trader pubkey
            side: Optional filter, Side.BID or Side.ASK, None for both
        """
        orders = [o for o in self.bids + self.asks if o.maker == maker]
        if side is not None:
            orders = [o for o in orders if o.side == side]
        return orders


@dataclass(frozen=True)
class L3UiBook:
    bids: tuple[L3UiOrder, ...]
    asks: tuple[L3UiOrder, ...]


def _side_orders(
    snapshot: MarketSnapshot,
    orders: Iterable[tuple[OrderId, RestingOrder]],
    side: Side,
    slot: int,
    unix_timestamp: int,
    orders_per_side: Optional[int],
) -> tuple[L3Order, ...]:
    if orders_per_side == 0:
        return ()

    out: list[L3Order] = []
    for order_id, order in live_orders(orders, slot, unix_timestamp):
        maker = snapshot.trader_pubkey(order.trader_index)
        if maker is None:
            # Resting order references a seat that is not live in the traders tree
            logger.warning(
                "Unresolved maker for %s order %d at %d ticks (trader index %d)",
                side.name.lower(),
                ui_order_sequence_number(order_id),
                order_id.price_in_ticks,
                order.trader_index,
            )
        out.append(
            L3Order(
                price_in_ticks=order_id.price_in_ticks,
                size_in_base_lots=order.num_base_lots,
                side=side,
                maker=maker,
                order_sequence_number=ui_order_sequence_number(order_id),
            )
        )
        if orders_per_side is not None and orders_per_side > 0 and len(out) == orders_per_side:
            break
    return tuple(out)


def get_l3_book(
    snapshot: MarketSnapshot,
    slot: int = 0,
    unix_timestamp: int = 0,
    orders_per_side: Optional[int] = DEFAULT_L3_BOOK_DEPTH,
) -> L3Book:
    """
    Get the L3 book in ticks and base lots.

    Args:
        snapshot: Decoded market
        slot: Current slot, expiry is inclusive of last_valid_slot
        unix_timestamp: Current unix time in seconds
        orders_per_side: Max orders per side. None or negative for the whole book

    Example:
        >>> book = get_l3_book(snapshot, clock.slot, clock.unix_timestamp)
        >>> mine = book.orders_by_maker(str(my_pubkey))
    """
    return L3Book(
        bids=_side_orders(snapshot, snapshot.bids, Side.BID, slot, unix_timestamp, orders_per_side),
        asks=_side_orders(snapshot, snapshot.asks, Side.ASK, slot, unix_timestamp, orders_per_side),
    )


def l3_order_to_ui(snapshot: MarketSnapshot, order: L3Order) -> L3UiOrder:
    return L3UiOrder(
        price=ticks_to_float_price(snapshot.scale, order.price_in_ticks),
        size=base_lots_to_raw_base_units(snapshot.scale, order.size_in_base_lots),
        side=order.side,
        maker=order.maker,
        order_sequence_number=order.order_sequence_number,
    )


def get_l3_ui_book(
    snapshot: MarketSnapshot,
    slot: int = 0,
    unix_timestamp: int = 0,
    orders_per_side: Optional[int] = DEFAULT_L3_BOOK_DEPTH,
) -> L3UiBook:
    """Get the L3 book in human-readable units."""
    book = get_l3_book(snapshot, slot, unix_timestamp, orders_per_side)
    return L3UiBook(
        bids=tuple(l3_order_to_ui(snapshot, o) for o in book.bids),
        asks=tuple(l3_order_to_ui(snapshot, o) for o in book.asks),
    )
