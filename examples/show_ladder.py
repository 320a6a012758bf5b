#!/usr/bin/env python3
"""
Print the L2 ladder and the top of the L3 book for Phoenix markets.

Usage:
    uv run examples/show_ladder.py
    uv run examples/show_ladder.py 4DoNfFBfF7UokCC2FQzriy7yHK6DY6NVdYpuekQ5pRgg
    uv run examples/show_ladder.py ALL --levels 5 --watch 2

Environment:
    PHOENIX_RPC_URL: Solana RPC URL (defaults to mainnet-beta)
"""

import argparse
import asyncio
import logging

from phoenix_book import PhoenixBookError, PhoenixClient

SOL_USDC = "4DoNfFBfF7UokCC2FQzriy7yHK6DY6NVdYpuekQ5pRgg"


def print_market(client: PhoenixClient, address: str, levels: int):
    snapshot = client.get_snapshot(address)
    base = client.token_for_mint(str(snapshot.header.base_params.mint_key))
    quote = client.token_for_mint(str(snapshot.header.quote_params.mint_key))
    name = f"{base.symbol if base else '?'}/{quote.symbol if quote else '?'}"

    ladder = client.get_ui_ladder(address, levels=levels)
    print(f"{name} ({address})  seq={snapshot.sequence_number}  fee={snapshot.taker_fee_bps}bps")

    # Asks printed top-down so the spread sits in the middle
    for price, quantity in reversed(ladder.asks):
        print(f"  ask {price:>14.6f}  {quantity:>14.4f}")
    print("  " + "-" * 34)
    for price, quantity in ladder.bids:
        print(f"  bid {price:>14.6f}  {quantity:>14.4f}")

    book = client.get_l3_ui_book(address, orders_per_side=3)
    for order in book.bids + book.asks:
        maker = order.maker[:8] if order.maker else "unknown"
        print(f"    {order.side.name:<3} {order.price:.6f} x {order.size:.4f}  maker={maker}  seq={order.order_sequence_number}")
    print()


async def run(markets: list[str] | None, levels: int, watch: float | None):
    client = await PhoenixClient().load(markets)
    addresses = client.markets.addresses()

    while True:
        for address in addresses:
            print_market(client, address, levels)
        print(f"slot: {client.clock.slot}  markets: {len(addresses)}")
        print("=" * 50)

        if watch is None:
            break
        await asyncio.sleep(watch)
        for address in addresses:
            await client.refresh_market(address)


def main():
    parser = argparse.ArgumentParser(description="Show Phoenix market ladders")
    parser.add_argument("markets", nargs="*", default=[SOL_USDC], help="Market addresses, or ALL")
    parser.add_argument("--levels", type=int, default=10, help="Ladder levels per side")
    parser.add_argument("--watch", type=float, default=None, help="Refresh every N seconds")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    markets = None if [m.upper() for m in args.markets] == ["ALL"] else args.markets
    try:
        asyncio.run(run(markets, args.levels, args.watch))
    except PhoenixBookError as e:
        print(f"Error: {e}")
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
