"""
Phoenix Book SDK

Decode Phoenix limit-order-book market accounts into ladders, L3 books and
swap quotes.

Offline example (bytes from anywhere):
    >>> from phoenix_book import decode_market, get_ui_ladder
    >>> snapshot = decode_market(account_bytes)
    >>> ladder = get_ui_ladder(snapshot, slot, unix_timestamp, levels=5)
    >>> print(ladder.best_bid(), ladder.best_ask())

Client example:
    >>> from phoenix_book import PhoenixClient, Side
    >>> client = await PhoenixClient().load()
    >>> quote = client.get_swap_quote(market, Side.BID, in_amount=100.0)
    >>> print(f"Out: {quote.out_amount} (exhausted={quote.liquidity_exhausted})")
"""

from .client import MarketCache, PhoenixClient
from .clock import Clock, decode_clock
from .config import ClusterConfig, TokenConfig, cluster_from_endpoint, parse_market_config
from .errors import (
    CorruptionError,
    DataUnavailableError,
    DecodeError,
    FreeListCycleError,
    InvalidScaleError,
    MarketNotFoundError,
    MarketVersionError,
    PhoenixBookError,
    RateLimitError,
    RpcError,
    SizeMismatchError,
)
from .market import (
    DEFAULT_L2_LADDER_DEPTH,
    DEFAULT_L3_BOOK_DEPTH,
    ImmediateOrCancelPacket,
    L3Book,
    L3Order,
    L3UiBook,
    L3UiOrder,
    Ladder,
    LadderLevel,
    LimitPacket,
    MarketHeader,
    MarketScale,
    MarketSnapshot,
    OrderId,
    OrderPacket,
    OrderPacketType,
    PostOnlyPacket,
    RestingOrder,
    SelfTradeBehavior,
    Side,
    SimulationSummary,
    SwapOrderPacket,
    SwapQuote,
    TraderState,
    UiLadder,
    UiLadderLevel,
    decode_ioc_packet,
    decode_limit_packet,
    decode_market,
    decode_order_packet,
    decode_post_only_packet,
    expected_out_amount,
    get_l3_book,
    get_l3_ui_book,
    get_ladder,
    get_swap_order_packet,
    get_swap_quote,
    get_ui_ladder,
    simulate_market_sell,
    ui_order_sequence_number,
)
from .market import units

__version__ = "0.1.0"

__all__ = [
    # Client (fetches bytes, caches snapshots)
    "PhoenixClient",
    "MarketCache",
    # Decoding
    "decode_market",
    "decode_clock",
    "MarketSnapshot",
    "MarketHeader",
    "OrderId",
    "RestingOrder",
    "TraderState",
    "Clock",
    "ui_order_sequence_number",
    # Views
    "Side",
    "Ladder",
    "LadderLevel",
    "UiLadder",
    "UiLadderLevel",
    "get_ladder",
    "get_ui_ladder",
    "L3Book",
    "L3Order",
    "L3UiBook",
    "L3UiOrder",
    "get_l3_book",
    "get_l3_ui_book",
    "DEFAULT_L2_LADDER_DEPTH",
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
    "units",
    # Config
    "TokenConfig",
    "ClusterConfig",
    "cluster_from_endpoint",
    "parse_market_config",
    # Exceptions
    "PhoenixBookError",
    "DecodeError",
    "CorruptionError",
    "FreeListCycleError",
    "SizeMismatchError",
    "InvalidScaleError",
    "MarketVersionError",
    "DataUnavailableError",
    "MarketNotFoundError",
    "RpcError",
    "RateLimitError",
    # Version
    "__version__",
]
