"""
Phoenix market client.

Fetches market accounts over Solana JSON-RPC and keeps one decoded snapshot
per market:
1. Fetch the market config for the RPC's cluster (market addresses, tokens)
2. getMultipleAccounts for the markets plus the Clock sysvar
3. Decode every market concurrently, then install all snapshots together
4. refresh_market() decodes a fresh snapshot and swaps it in atomically

All decoding lives in `phoenix_book.market`; this module only moves bytes.
"""

import asyncio
import base64
import logging
import os
import threading
from typing import Callable, Optional

import aiohttp
import zstandard as zstd
from sortedcontainers import SortedDict

from .clock import Clock, decode_clock
from .config import (
    CLOCK_SYSVAR_ID,
    DEFAULT_CONFIG_URL,
    DEFAULT_RPC_URL,
    ClusterConfig,
    TokenConfig,
    cluster_from_endpoint,
    parse_market_config,
)
from .errors import DataUnavailableError, MarketNotFoundError, RateLimitError, RpcError
from .market import (
    DEFAULT_L2_LADDER_DEPTH,
    DEFAULT_L3_BOOK_DEPTH,
    L3Book,
    L3UiBook,
    Ladder,
    MarketSnapshot,
    Side,
    SwapQuote,
    UiLadder,
    decode_market,
    get_l3_book,
    get_l3_ui_book,
    get_ladder,
    get_swap_quote,
    get_ui_ladder,
)

logger = logging.getLogger(__name__)


class MarketCache:
    """
    Thread-safe map of market address -> MarketSnapshot.

    Snapshots are immutable, so readers never see a partially refreshed
    market: a refresh swaps the whole snapshot under the lock.
    """

    def __init__(self):
        self._snapshots: SortedDict[str, MarketSnapshot] = SortedDict()
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._snapshots)

    def __contains__(self, address: str) -> bool:
        with self._lock:
            return address in self._snapshots

    def get(self, address: str) -> Optional[MarketSnapshot]:
        with self._lock:
            return self._snapshots.get(address)

    def replace(self, address: str, snapshot: MarketSnapshot) -> Optional[MarketSnapshot]:
        """Install `snapshot` for `address`. Returns the snapshot it replaced, if any."""
        with self._lock:
            previous = self._snapshots.get(address)
            self._snapshots[address] = snapshot
            return previous

    def replace_many(self, snapshots: dict[str, MarketSnapshot]):
        """Install several snapshots so readers see all of them or none."""
        with self._lock:
            self._snapshots.update(snapshots)

    def remove(self, address: str) -> bool:
        with self._lock:
            return self._snapshots.pop(address, None) is not None

    def addresses(self) -> list[str]:
        with self._lock:
            return list(self._snapshots.keys())


class PhoenixClient:
    """
    Async Phoenix market client.

    Args:
        rpc_url: Solana RPC URL. Reads from PHOENIX_RPC_URL env var, defaults to mainnet-beta.
        config_url: Market config URL. Reads from PHOENIX_CONFIG_URL env var.
        commitment: RPC commitment level for account reads.
        use_zstd: Request base64+zstd account encoding (smaller payloads).
        expected_discriminant: Optional market header discriminant to enforce when decoding.
        on_refresh: Optional callback after a market snapshot is installed.
                    Signature: (client: PhoenixClient, address: str, snapshot: MarketSnapshot) -> None

    Example:
        >>> client = await PhoenixClient().load()
        >>> ladder = client.get_ui_ladder("4DoNfFBfF7UokCC2FQzriy7yHK6DY6NVdYpuekQ5pRgg")
    """

    # Decompressed size cap for base64+zstd account payloads
    MAX_ACCOUNT_DATA_SIZE = 1 << 23

    def __init__(
        self,
        rpc_url: str | None = None,
        config_url: str | None = None,
        commitment: str = "confirmed",
        use_zstd: bool = True,
        expected_discriminant: int | None = None,
        on_refresh: Optional[Callable[["PhoenixClient", str, MarketSnapshot], None]] = None,
    ):
        self.rpc_url = rpc_url or os.getenv("PHOENIX_RPC_URL", DEFAULT_RPC_URL)
        self.config_url = config_url or os.getenv("PHOENIX_CONFIG_URL", DEFAULT_CONFIG_URL)
        self.cluster = cluster_from_endpoint(self.rpc_url)
        self.commitment = commitment
        self.use_zstd = use_zstd
        self.expected_discriminant = expected_discriminant
        self.on_refresh = on_refresh

        self.markets = MarketCache()
        self.config = ClusterConfig()
        self.clock: Optional[Clock] = None

    # =========================================================================
    # Transport
    # =========================================================================

    async def _post_rpc(self, method: str, params: list) -> dict:
        """POST a JSON-RPC request and return its `result`."""
        body = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
        async with aiohttp.ClientSession() as session:
            async with session.post(
                self.rpc_url,
                json=body,
                headers={"Content-Type": "application/json"},
            ) as resp:
                if resp.status == 429:
                    text = await resp.text()
                    raise RateLimitError(f"Rate limit exceeded: {text}")
                elif resp.status != 200:
                    text = await resp.text()
                    raise RpcError(f"{method} failed: {resp.status} - {text}")
                data = await resp.json()

        if "error" in data:
            raise RpcError(f"{method} failed: {data['error']}")
        return data["result"]

    async def _get_json(self, url: str) -> dict:
        async with aiohttp.ClientSession() as session:
            async with session.get(url) as resp:
                if resp.status != 200:
                    text = await resp.text()
                    raise RpcError(f"Config fetch failed: {resp.status} - {text}")
                return await resp.json(content_type=None)

    def _decode_account_data(self, data: list) -> bytes:
        payload, encoding = data[0], data[1]
        raw = base64.b64decode(payload)
        if encoding == "base64+zstd":
            # max_output_size needed when zstd frame lacks content size
            dctx = zstd.ZstdDecompressor()
            return dctx.decompress(raw, max_output_size=self.MAX_ACCOUNT_DATA_SIZE)
        return raw

    async def fetch_market_config(self) -> ClusterConfig:
        """Fetch the market config and return the entry for this client's cluster."""
        clusters = parse_market_config(await self._get_json(self.config_url))
        if self.cluster not in clusters:
            raise RpcError(f"Market config has no entry for cluster {self.cluster}")
        return clusters[self.cluster]

    async def get_multiple_accounts(self, addresses: list[str]) -> list[bytes]:
        """
        Fetch raw account data for `addresses`, in order.

        Raises:
            DataUnavailableError: Fewer accounts returned than requested, or a missing account
        """
        encoding = "base64+zstd" if self.use_zstd else "base64"
        result = await self._post_rpc(
            "getMultipleAccounts",
            [addresses, {"encoding": encoding, "commitment": self.commitment}],
        )
        values = result["value"]
        if len(values) < len(addresses):
            raise DataUnavailableError(
                f"Requested {len(addresses)} accounts but received {len(values)}"
            )

        buffers = []
        for address, value in zip(addresses, values):
            if value is None:
                raise DataUnavailableError(f"Unable to get account data for {address}")
            buffers.append(self._decode_account_data(value["data"]))
        return buffers

    # =========================================================================
    # Loading
    # =========================================================================

    async def _decode_markets(self, addresses: list[str], buffers: list[bytes]) -> dict[str, MarketSnapshot]:
        """Decode one market per worker thread and wait for all before returning."""
        snapshots = await asyncio.gather(
            *(
                asyncio.to_thread(decode_market, buffer, self.expected_discriminant)
                for buffer in buffers
            )
        )
        return dict(zip(addresses, snapshots))

    def _install(self, snapshots: dict[str, MarketSnapshot]):
        self.markets.replace_many(snapshots)
        if self.on_refresh:
            for address, snapshot in snapshots.items():
                self.on_refresh(self, address, snapshot)

    async def load(self, market_addresses: list[str] | None = None) -> "PhoenixClient":
        """
        Load tokens, markets and the clock.

        Args:
            market_addresses: Markets to load, or None for every market in the config

        Returns:
            self, for chaining
        """
        config = await self.fetch_market_config()
        self.config = config
        addresses = list(market_addresses) if market_addresses is not None else list(config.markets)

        buffers = await self.get_multiple_accounts([*addresses, CLOCK_SYSVAR_ID])
        clock_buffer = buffers.pop()
        snapshots = await self._decode_markets(addresses, buffers)

        self.clock = decode_clock(clock_buffer)
        self._install(snapshots)
        logger.info(
            "Loaded %d markets on %s at slot %d", len(snapshots), self.cluster, self.clock.slot
        )
        return self

    async def add_market(self, address: str, force_reload: bool = False) -> MarketSnapshot:
        """Load a market that is not in the config (e.g. on localnet)."""
        existing = self.markets.get(address)
        if existing is not None:
            if force_reload:
                return await self.refresh_market(address)
            logger.info("Market already loaded: %s", address)
            return existing
        return await self._fetch_and_install(address)

    async def refresh_market(self, address: str) -> MarketSnapshot:
        """Re-fetch a loaded market and the clock, replacing the market's snapshot."""
        if address not in self.markets:
            raise MarketNotFoundError(f"Market does not exist: {address}")
        return await self._fetch_and_install(address)

    async def _fetch_and_install(self, address: str) -> MarketSnapshot:
        market_buffer, clock_buffer = await self.get_multiple_accounts([address, CLOCK_SYSVAR_ID])
        snapshot = decode_market(market_buffer, self.expected_discriminant)
        self.clock = decode_clock(clock_buffer)
        self._install({address: snapshot})
        logger.debug("Refreshed market %s (seq=%d)", address, snapshot.sequence_number)
        return snapshot

    async def refresh_clock(self) -> Clock:
        (clock_buffer,) = await self.get_multiple_accounts([CLOCK_SYSVAR_ID])
        self.clock = decode_clock(clock_buffer)
        return self.clock

    # =========================================================================
    # Views
    # =========================================================================

    def get_snapshot(self, address: str) -> MarketSnapshot:
        snapshot = self.markets.get(address)
        if snapshot is None:
            raise MarketNotFoundError(f"Market not found: {address}")
        return snapshot

    def _now(self) -> tuple[int, int]:
        if self.clock is None:
            return 0, 0
        return self.clock.slot, self.clock.unix_timestamp

    def get_ladder(self, address: str, levels: Optional[int] = DEFAULT_L2_LADDER_DEPTH) -> Ladder:
        """L2 ladder for a market, filtered at the last fetched clock."""
        return get_ladder(self.get_snapshot(address), *self._now(), levels)

    def get_ui_ladder(self, address: str, levels: Optional[int] = DEFAULT_L2_LADDER_DEPTH) -> UiLadder:
        return get_ui_ladder(self.get_snapshot(address), *self._now(), levels)

    def get_l3_book(self, address: str, orders_per_side: Optional[int] = DEFAULT_L3_BOOK_DEPTH) -> L3Book:
        return get_l3_book(self.get_snapshot(address), *self._now(), orders_per_side)

    def get_l3_ui_book(self, address: str, orders_per_side: Optional[int] = DEFAULT_L3_BOOK_DEPTH) -> L3UiBook:
        return get_l3_ui_book(self.get_snapshot(address), *self._now(), orders_per_side)

    def get_swap_quote(self, address: str, side: Side, in_amount: float) -> SwapQuote:
        """Quote a swap against the full live book using the market's taker fee."""
        snapshot = self.get_snapshot(address)
        ladder = get_ui_ladder(snapshot, *self._now(), levels=None)
        return get_swap_quote(ladder, snapshot.taker_fee_bps, side, in_amount)

    def get_expected_out_amount(self, address: str, side: Side, in_amount: float) -> float:
        return self.get_swap_quote(address, side, in_amount).out_amount

    def token_for_mint(self, mint: str) -> Optional[TokenConfig]:
        return self.config.token_for_mint(mint)
