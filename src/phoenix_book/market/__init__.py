"""
Phoenix market decoding and views.

Decodes a market account into an immutable snapshot and builds L2 ladders,
L3 books and swap quotes from it. Nothing here performs I/O.
"""

from .book import (
    DEFAULT_L3_BOOK_DEPTH,
    L3Book,
    L3Order,
    L3UiBook,
    L3UiOrder,
    get_l3_book,
    get_l3_ui_book,
)
from .header import (
    MARKET_HEADER_SIZE,
    MarketHeader,
    MarketSizeParams,
    MarketStatus,
    TokenParams,
    decode_market_header,
)
from .ladder import (
    DEFAULT_L2_LADDER_DEPTH,
    Ladder,
    LadderLevel,
    Side,
    UiLadder,
    UiLadderLevel,
    get_ladder,
    get_ui_ladder,
)
from .packet import (
    ImmediateOrCancelPacket,
    LimitPacket,
    OrderPacket,
    OrderPacketType,
    PostOnlyPacket,
    decode_ioc_packet,
    decode_limit_packet,
    decode_order_packet,
    decode_post_only_packet,
)
from .quote import (
    DEFAULT_MATCH_LIMIT,
    DEFAULT_SLIPPAGE_PERCENT,
    SelfTradeBehavior,
    SimulationSummary,
    SwapOrderPacket,
    SwapQuote,
    expected_out_amount,
    get_swap_order_packet,
    get_swap_quote,
    simulate_market_sell,
)
from .snapshot import (
    MarketSnapshot,
    OrderId,
    RestingOrder,
    TraderState,
    decode_market,
    ui_order_sequence_number,
)
from .units import MarketScale

__all__ = [
    # Decoding
    "decode_market",
    "decode_market_header",
    "MarketSnapshot",
    "MarketHeader",
    "MarketSizeParams",
    "MarketStatus",
    "TokenParams",
    "MARKET_HEADER_SIZE",
    "OrderId",
    "RestingOrder",
    "TraderState",
    "ui_order_sequence_number",
    # L2
    "Side",
    "Ladder",
    "LadderLevel",
    "UiLadder",
    "UiLadderLevel",
    "get_ladder",
    "get_ui_ladder",
    "DEFAULT_L2_LADDER_DEPTH",
    # L3
    "L3Book",
    "L3Order",
    "L3UiBook",
    "L3UiOrder",
    "get_l3_book",
    "get_l3_ui_book",
    "DEFAULT_L3_BOOK_DEPTH",
    # Quoting
    "SwapQuote",
    "get_swap_quote",
    "expected_out_amount",
    "SimulationSummary",
    "simulate_market_sell",
    "SelfTradeBehavior",
    "SwapOrderPacket",
    "get_swap_order_packet",
    "DEFAULT_MATCH_LIMIT",
    "DEFAULT_SLIPPAGE_PERCENT",
    # Order packets
    "OrderPacket",
    "OrderPacketType",
    "PostOnlyPacket",
    "LimitPacket",
    "ImmediateOrCancelPacket",
    "decode_order_packet",
    "decode_post_only_packet",
    "decode_limit_packet",
    "decode_ioc_packet",
    # Units
    "MarketScale",
]
