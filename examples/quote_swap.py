#!/usr/bin/env python3
"""
Quote a swap on a Phoenix market and size the matching market order.

Usage:
    uv run examples/quote_swap.py buy 100          # spend 100 USDC on SOL
    uv run examples/quote_swap.py sell 2.5         # sell 2.5 SOL for USDC
    uv run examples/quote_swap.py sell 2.5 --market <address> --slippage 0.01

Environment:
    PHOENIX_RPC_URL: Solana RPC URL (defaults to mainnet-beta)
"""

import argparse
import asyncio

from phoenix_book import (
    PhoenixBookError,
    PhoenixClient,
    Side,
    get_ladder,
    get_swap_order_packet,
    simulate_market_sell,
)

SOL_USDC = "4DoNfFBfF7UokCC2FQzriy7yHK6DY6NVdYpuekQ5pRgg"


async def run(market: str, side: Side, amount: float, slippage: float):
    client = PhoenixClient()
    await client.add_market(market)
    snapshot = client.get_snapshot(market)
    slot, unix_timestamp = client.clock.slot, client.clock.unix_timestamp

    quote = client.get_swap_quote(market, side, amount)
    print(f"In (after {snapshot.taker_fee_bps}bps fee): {quote.in_amount}")
    print(f"Expected out: {quote.out_amount}")
    if quote.liquidity_exhausted:
        print(f"  Book too thin: {quote.unfilled_in_amount} of the input would not fill")

    packet = get_swap_order_packet(
        snapshot, side, amount, slippage=slippage, slot=slot, unix_timestamp=unix_timestamp
    )
    print(f"\nOrder packet ({side.name}, slippage {slippage:.2%}):")
    print(f"  base lots:  {packet.num_base_lots}  min fill {packet.min_base_lots_to_fill}")
    print(f"  quote lots: {packet.num_quote_lots}  min fill {packet.min_quote_lots_to_fill}")

    # Lot-exact fill for the same input, before fees
    ladder = get_ladder(snapshot, slot, unix_timestamp, levels=None)
    size_in_lots = packet.num_quote_lots if side == Side.BID else packet.num_base_lots
    summary = simulate_market_sell(ladder, snapshot.scale, side, size_in_lots)
    print(f"  simulated:  {summary.base_lots_filled} base lots / {summary.quote_lots_filled} quote lots")


def main():
    parser = argparse.ArgumentParser(description="Quote a Phoenix swap")
    parser.add_argument("direction", choices=["buy", "sell"], help="buy base with quote, or sell base")
    parser.add_argument("amount", type=float, help="Input amount in human units")
    parser.add_argument("--market", default=SOL_USDC)
    parser.add_argument("--slippage", type=float, default=0.005)
    args = parser.parse_args()

    side = Side.BID if args.direction == "buy" else Side.ASK
    try:
        asyncio.run(run(args.market, side, args.amount, args.slippage))
    except PhoenixBookError as e:
        print(f"Error: {e}")


if __name__ == "__main__":
    main()
